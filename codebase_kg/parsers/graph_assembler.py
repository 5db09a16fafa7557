from __future__ import annotations

from collections.abc import Iterable

from loguru import logger

from codebase_kg.core import logs as ls
from codebase_kg.data_models.models import (
    ExtractorOutput,
    KGNode,
    KGRelation,
    KnowledgeGraph,
)


class GraphAssembler:
    """
    Merges the outputs of independent extractors into one graph.

    Relations are deduplicated on `(from, to, type)`, keeping the first
    occurrence and the original order. Nodes are concatenated as they are;
    two nodes sharing an id are reported, since they indicate either an
    identifier collision or the same entity emitted twice.
    """

    def assemble(self, outputs: Iterable[ExtractorOutput]) -> KnowledgeGraph:
        nodes: list[KGNode] = []
        relations: list[KGRelation] = []
        seen_nodes: dict[str, KGNode] = {}
        seen_relations: set[str] = set()
        total_relations = 0

        for output in outputs:
            for node in output.nodes:
                if (first := seen_nodes.get(node.id)) is not None:
                    logger.warning(
                        ls.DUPLICATE_NODE_ID.format(
                            id=node.id, first=first.name, second=node.name, kind=node.kind
                        )
                    )
                else:
                    seen_nodes[node.id] = node
                nodes.append(node)
            for relation in output.relations:
                total_relations += 1
                if relation.key in seen_relations:
                    continue
                seen_relations.add(relation.key)
                relations.append(relation)

        counts = KnowledgeGraph.count_kinds(nodes)
        logger.info(
            ls.ASSEMBLY_SUMMARY.format(
                nodes=len(nodes),
                relations=len(relations),
                dropped=total_relations - len(relations),
            )
        )
        for kind, count in sorted(counts.items()):
            logger.info(ls.ASSEMBLY_KIND_COUNT.format(kind=kind, count=count))
        return KnowledgeGraph(nodes, relations, counts)
