from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from codebase_kg.core import constants as cs
from codebase_kg.data_models.types_defs import (
    GraphDict,
    MetaDict,
    NodeDict,
    RelationDict,
)


@dataclass
class KGNode:
    """A structural code entity in the extracted graph.

    Attributes:
        id (str): Deterministic identifier, see `parsers.id_generator`.
        kind (cs.NodeKind): The entity kind, also used as the store label.
        name (str): Display name (class name, method name, file base name...).
        file_path (str | None): Project-relative, forward-slash path of the
            declaring file.
        parent_id (str | None): Id of the immediately enclosing entity.
        subtype (str | None): File subtype, only set on `File` nodes.
        meta (MetaDict): Kind-specific facts.
    """

    id: str
    kind: cs.NodeKind
    name: str
    file_path: str | None = None
    parent_id: str | None = None
    subtype: str | None = None
    meta: MetaDict = field(default_factory=dict)

    def to_dict(self) -> NodeDict:
        data = NodeDict(id=self.id, kind=str(self.kind), name=self.name)
        if self.file_path is not None:
            data["filePath"] = self.file_path
        if self.parent_id is not None:
            data["parentId"] = self.parent_id
        if self.subtype is not None:
            data["subtype"] = self.subtype
        if self.meta:
            data["meta"] = self.meta
        return data

    @classmethod
    def from_dict(cls, data: NodeDict) -> KGNode:
        return cls(
            id=data[cs.KEY_ID],
            kind=cs.NodeKind(data[cs.KEY_KIND]),
            name=data[cs.KEY_NAME],
            file_path=data.get(cs.KEY_FILE_PATH),
            parent_id=data.get(cs.KEY_PARENT_ID),
            subtype=data.get(cs.KEY_SUBTYPE),
            meta=dict(data.get(cs.KEY_META) or {}),
        )


@dataclass(frozen=True, slots=True)
class KGRelation:
    """A directed, typed edge between two node ids. Either end may dangle."""

    from_id: str
    to_id: str
    type: cs.RelationshipType

    @property
    def key(self) -> str:
        return cs.SEPARATOR_PIPE.join((self.from_id, self.to_id, self.type))

    def to_dict(self) -> RelationDict:
        return {
            cs.KEY_FROM: self.from_id,
            cs.KEY_TO: self.to_id,
            cs.KEY_TYPE: str(self.type),
        }

    @classmethod
    def from_dict(cls, data: RelationDict) -> KGRelation:
        return cls(
            from_id=data[cs.KEY_FROM],
            to_id=data[cs.KEY_TO],
            type=cs.RelationshipType(data[cs.KEY_TYPE]),
        )


@dataclass
class ExtractorOutput:
    """The private output collection of one extractor run."""

    extractor: str
    nodes: list[KGNode] = field(default_factory=list)
    relations: list[KGRelation] = field(default_factory=list)

    def add_node(self, node: KGNode) -> None:
        self.nodes.append(node)

    def add_relation(
        self, from_id: str, to_id: str, rel_type: cs.RelationshipType
    ) -> None:
        self.relations.append(KGRelation(from_id, to_id, rel_type))


@dataclass
class KnowledgeGraph:
    """The assembled extraction result: nodes, deduplicated relations, counts."""

    nodes: list[KGNode]
    relations: list[KGRelation]
    counts: dict[str, int] = field(default_factory=dict)

    @staticmethod
    def count_kinds(nodes: list[KGNode]) -> dict[str, int]:
        return dict(Counter(str(node.kind) for node in nodes))

    def nodes_of_kind(self, kind: cs.NodeKind) -> list[KGNode]:
        return [node for node in self.nodes if node.kind == kind]

    def relations_of_type(self, rel_type: cs.RelationshipType) -> list[KGRelation]:
        return [rel for rel in self.relations if rel.type == rel_type]

    def to_dict(self) -> GraphDict:
        return GraphDict(
            nodes=[node.to_dict() for node in self.nodes],
            relations=[rel.to_dict() for rel in self.relations],
            counts=dict(self.counts),
        )
