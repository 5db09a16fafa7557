"""
This module defines the protocols the ingestion engine relies on.

The engine only needs a DB-API style connection (`cursor`, `commit`,
`rollback`, `close` and an `autocommit` switch), which is what `mgclient`
returns. Tests and alternative drivers plug in through `ConnectionFactory`.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from codebase_kg.data_models.models import KnowledgeGraph
from codebase_kg.data_models.types_defs import CursorProtocol


@runtime_checkable
class ConnectionProtocol(Protocol):
    """
    A protocol for graph-store connections.

    With `autocommit` off, statements accumulate in one transaction until
    `commit` or `rollback` is called.
    """

    autocommit: bool

    def cursor(self) -> CursorProtocol: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None: ...


type ConnectionFactory = Callable[..., ConnectionProtocol]


@runtime_checkable
class IngestorProtocol(Protocol):
    """A protocol for services that load a knowledge graph into a database."""

    def ingest(self, graph: KnowledgeGraph, database_name: str) -> None:
        """
        Replaces the content of a database with the given graph.

        Args:
            graph (KnowledgeGraph): The extracted graph.
            database_name (str): The target database.
        """
        ...
