from __future__ import annotations

from collections.abc import Sequence
from typing import Any, NamedTuple, Protocol, TypedDict

from tree_sitter import Node

type ASTNode = Node

type ScalarValue = str | int | float | bool
type MetaValue = (
    ScalarValue | None | list[MetaValue] | dict[str, MetaValue]
)
type MetaDict = dict[str, MetaValue]
type PropertyValue = ScalarValue | list[ScalarValue] | None
type PropertyDict = dict[str, PropertyValue]
type ResultValue = Any
type ResultRow = dict[str, ResultValue]


class ParameterSignature(TypedDict):
    name: str
    type: str


class NodeDict(TypedDict, total=False):
    id: str
    kind: str
    name: str
    filePath: str
    parentId: str
    subtype: str
    meta: MetaDict


RelationDict = TypedDict("RelationDict", {"from": str, "to": str, "type": str})


class GraphDict(TypedDict):
    nodes: list[NodeDict]
    relations: list[RelationDict]
    counts: dict[str, int]


class NodeBatchRow(TypedDict):
    id: str
    props: PropertyDict


class RelBatchRow(TypedDict):
    from_val: str
    to_val: str


type BatchParams = NodeBatchRow | RelBatchRow


class BatchWrapper(TypedDict):
    batch: Sequence[BatchParams]


class RelationGroupKey(NamedTuple):
    rel_type: str
    from_label: str | None
    to_label: str | None


class ColumnDescription(Protocol):
    name: str


class CursorProtocol(Protocol):
    description: Sequence[ColumnDescription] | None

    def execute(
        self,
        query: str,
        params: dict[str, Any] | BatchWrapper | None = None,
    ) -> None: ...

    def close(self) -> None: ...

    def fetchall(self) -> list[tuple[Any, ...]]: ...
