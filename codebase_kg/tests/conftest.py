from __future__ import annotations

import re
import textwrap
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from codebase_kg.core import constants as cs
from codebase_kg.data_models.models import KGNode, KnowledgeGraph
from codebase_kg.parsers.pipeline import KnowledgeGraphExtractor


@pytest.fixture
def temp_repo(tmp_path: Path) -> Path:
    """A project directory with an empty `src/` source root."""
    repo = tmp_path / "repo"
    (repo / "src").mkdir(parents=True)
    return repo


def write_ts(repo: Path, rel_path: str, source: str) -> Path:
    """Writes a dedented TypeScript file under the project's `src/` directory."""
    path = repo / "src" / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(source).lstrip(), encoding="utf-8")
    return path


def extract_graph(repo: Path, **kwargs: Any) -> KnowledgeGraph:
    return KnowledgeGraphExtractor(**kwargs).extract(repo)


def get_node(graph: KnowledgeGraph, kind: cs.NodeKind, name: str) -> KGNode:
    matches = [n for n in graph.nodes_of_kind(kind) if n.name == name]
    assert len(matches) == 1, f"expected one {kind} named {name}, got {matches}"
    return matches[0]


def get_node_names(graph: KnowledgeGraph, kind: cs.NodeKind) -> set[str]:
    return {n.name for n in graph.nodes_of_kind(kind)}


def rel_pairs(
    graph: KnowledgeGraph, rel_type: cs.RelationshipType
) -> set[tuple[str, str]]:
    return {(r.from_id, r.to_id) for r in graph.relations_of_type(rel_type)}


def has_relation(
    graph: KnowledgeGraph,
    rel_type: cs.RelationshipType,
    source: KGNode | str,
    target: KGNode | str,
) -> bool:
    from_id = source if isinstance(source, str) else source.id
    to_id = target if isinstance(target, str) else target.id
    return (from_id, to_id) in rel_pairs(graph, rel_type)


# --- In-memory stand-in for a Memgraph connection ---

_CREATE_DB_RE = re.compile(r"^CREATE DATABASE `((?:[^`]|``)+)`;$")
_USE_DB_RE = re.compile(r"^USE DATABASE `((?:[^`]|``)+)`;$")
_INDEX_RE = re.compile(r"^CREATE INDEX ON :(\w+)\((\w+)\);$")
_MERGE_NODE_RE = re.compile(r"MERGE \(n:(\w+) \{id: row\.id\}\)\nSET n \+= row\.props")
_MERGE_REL_RE = re.compile(
    r"MATCH \(a(?::(\w+))? \{id: row\.from_val\}\), "
    r"\(b(?::(\w+))? \{id: row\.to_val\}\)\n"
    r"MERGE \(a\)-\[r:(\w+)\]->\(b\)"
)


@dataclass
class GraphState:
    nodes: dict[tuple[str, str], dict[str, Any]] = field(default_factory=dict)
    relations: set[tuple[str, str, str]] = field(default_factory=set)

    def copy(self) -> GraphState:
        return GraphState(
            {key: dict(props) for key, props in self.nodes.items()},
            set(self.relations),
        )

    def find(self, label: str | None, node_id: str) -> bool:
        return any(
            nid == node_id and (label is None or node_label == label)
            for node_label, nid in self.nodes
        )


@dataclass
class _Failure:
    fragment: str
    error: Exception
    times: int | None


class FakeGraphStore:
    """
    Understands the statements issued by `KnowledgeGraphIngestor`.

    Keeps one graph per database, applies writes made with autocommit off only
    on commit, and can be told to fail statements or to report a database as
    not ready for a number of attempts.
    """

    def __init__(self) -> None:
        self.databases: dict[str, GraphState] = {cs.MEMGRAPH_DEFAULT_DATABASE: GraphState()}
        self.indexes: set[tuple[str, str, str]] = set()
        self.queries: list[str] = []
        self.not_ready_attempts = 0
        self.connections: list[FakeConnection] = []
        self._failures: list[_Failure] = []

    def connect(self, **kwargs: Any) -> FakeConnection:
        conn = FakeConnection(self, kwargs)
        self.connections.append(conn)
        return conn

    def fail_on(self, fragment: str, error: Exception, times: int | None = None) -> None:
        self._failures.append(_Failure(fragment, error, times))

    def check_failure(self, query: str) -> None:
        for failure in self._failures:
            if failure.fragment in query and failure.times != 0:
                if failure.times is not None:
                    failure.times -= 1
                raise failure.error

    def graph(self, database: str = cs.MEMGRAPH_DEFAULT_DATABASE) -> GraphState:
        return self.databases[database]


class FakeCursor:
    def __init__(self, conn: FakeConnection) -> None:
        self._conn = conn
        self.description = None
        self.closed = False

    def execute(self, query: str, params: Any = None) -> None:
        conn = self._conn
        store = conn.store
        store.queries.append(query)
        store.check_failure(query)
        statement = query.strip()

        if match := _CREATE_DB_RE.match(statement):
            name = match.group(1).replace("``", "`")
            if name in store.databases:
                raise RuntimeError(f"Database {name} already exists.")
            store.databases[name] = GraphState()
            return
        if match := _USE_DB_RE.match(statement):
            if store.not_ready_attempts > 0:
                store.not_ready_attempts -= 1
                raise RuntimeError("Database is starting up")
            name = match.group(1).replace("``", "`")
            if name not in store.databases:
                raise RuntimeError(f"Database {name} does not exist")
            conn.database = name
            return
        if statement.startswith("RETURN 1"):
            return
        if match := _INDEX_RE.match(statement):
            store.indexes.add((conn.database, match.group(1), match.group(2)))
            return

        state = conn.writable_state()
        if statement == "MATCH (n) DETACH DELETE n;":
            state.nodes.clear()
            state.relations.clear()
            return
        rows = (params or {}).get(cs.KEY_BATCH, [])
        if match := _MERGE_NODE_RE.search(statement):
            label = match.group(1)
            for row in rows:
                props = state.nodes.setdefault((label, row[cs.KEY_ID]), {cs.KEY_ID: row[cs.KEY_ID]})
                props.update(row[cs.KEY_PROPS])
            return
        if match := _MERGE_REL_RE.search(statement):
            from_label, to_label, rel_type = match.groups()
            for row in rows:
                if state.find(from_label, row[cs.KEY_FROM_VAL]) and state.find(
                    to_label, row[cs.KEY_TO_VAL]
                ):
                    state.relations.add(
                        (row[cs.KEY_FROM_VAL], rel_type, row[cs.KEY_TO_VAL])
                    )
            return
        raise AssertionError(f"unexpected query: {query}")

    def fetchall(self) -> list[tuple[Any, ...]]:
        return []

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    def __init__(self, store: FakeGraphStore, kwargs: dict[str, Any]) -> None:
        self.store = store
        self.kwargs = kwargs
        self.database = cs.MEMGRAPH_DEFAULT_DATABASE
        self.closed = False
        self.commits = 0
        self.rollbacks = 0
        self._autocommit = True
        self._tx: GraphState | None = None

    @property
    def autocommit(self) -> bool:
        return self._autocommit

    @autocommit.setter
    def autocommit(self, value: bool) -> None:
        if self._tx is not None:
            raise RuntimeError("cannot change autocommit inside a transaction")
        self._autocommit = value

    def writable_state(self) -> GraphState:
        if self._autocommit:
            return self.store.databases[self.database]
        if self._tx is None:
            self._tx = self.store.databases[self.database].copy()
        return self._tx

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def commit(self) -> None:
        if self._tx is not None:
            self.store.databases[self.database] = self._tx
            self._tx = None
        self.commits += 1

    def rollback(self) -> None:
        self._tx = None
        self.rollbacks += 1

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def graph_store() -> Iterator[FakeGraphStore]:
    yield FakeGraphStore()
