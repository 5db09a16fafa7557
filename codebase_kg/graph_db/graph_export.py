"""
Reading and writing extracted knowledge graphs as JSON.

The file layout is the serialised `KnowledgeGraph`: `{"nodes": [...],
"relations": [...], "counts": {...}}` with nodes in their camelCase form
(`id, kind, name, filePath, parentId, subtype, meta`) and relations as
`{from, to, type}`. It lets extraction and ingestion run as separate steps.
"""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger

from codebase_kg.core import constants as cs
from codebase_kg.core import logs as ls
from codebase_kg.data_models.models import KGNode, KGRelation, KnowledgeGraph
from codebase_kg.infrastructure import exceptions as ex


def save_graph(graph: KnowledgeGraph, file_path: str | Path) -> Path:
    """
    Writes a knowledge graph to a JSON file, creating parent directories.

    Args:
        graph (KnowledgeGraph): The graph to write.
        file_path (str | Path): Destination file.

    Returns:
        Path: The written file.
    """
    path = Path(file_path)
    logger.info(ls.GRAPH_EXPORTING.format(path=path))
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding=cs.ENCODING_UTF8) as f:
        json.dump(graph.to_dict(), f, indent=cs.JSON_INDENT, ensure_ascii=False)
    logger.info(
        ls.GRAPH_EXPORTED.format(
            nodes=len(graph.nodes), relations=len(graph.relations), path=path
        )
    )
    return path


def load_graph(file_path: str | Path) -> KnowledgeGraph:
    """
    Reads a knowledge graph written by `save_graph`.

    Missing `counts` are recomputed from the nodes.

    Args:
        file_path (str | Path): The JSON file.

    Returns:
        KnowledgeGraph: The graph.

    Raises:
        GraphFileError: If the file is missing, is not JSON, or an entry does
            not describe a valid node or relation.
    """
    path = Path(file_path)
    if not path.is_file():
        raise ex.GraphFileError(ex.GRAPH_FILE_NOT_FOUND.format(path=path))

    logger.info(ls.GRAPH_LOADING.format(path=path))
    try:
        with open(path, encoding=cs.ENCODING_UTF8) as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ex.GraphFileError(ex.GRAPH_FILE_INVALID.format(path=path, error=e)) from e
    if not isinstance(data, dict):
        raise ex.GraphFileError(
            ex.GRAPH_FILE_INVALID.format(path=path, error=type(data).__name__)
        )

    nodes: list[KGNode] = []
    for entry in data.get(cs.KEY_NODES, []):
        try:
            nodes.append(KGNode.from_dict(entry))
        except (KeyError, TypeError, ValueError) as e:
            raise ex.GraphFileError(ex.GRAPH_NODE_INVALID.format(entry=entry)) from e

    relations: list[KGRelation] = []
    for entry in data.get(cs.KEY_RELATIONS, []):
        try:
            relations.append(KGRelation.from_dict(entry))
        except (KeyError, TypeError, ValueError) as e:
            raise ex.GraphFileError(
                ex.GRAPH_RELATION_INVALID.format(entry=entry)
            ) from e

    counts = data.get(cs.KEY_COUNTS) or KnowledgeGraph.count_kinds(nodes)
    logger.info(ls.GRAPH_LOADED.format(nodes=len(nodes), relations=len(relations)))
    return KnowledgeGraph(nodes, relations, dict(counts))
