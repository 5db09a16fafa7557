from __future__ import annotations

import json

import pytest

from codebase_kg.core import constants as cs
from codebase_kg.data_models.models import KGNode, KGRelation, KnowledgeGraph
from codebase_kg.graph_db.cypher_queries import (
    build_create_database_query,
    build_use_database_query,
)
from codebase_kg.infrastructure.exceptions import GraphIngestionError, IngestionPhase
from codebase_kg.parsers import id_generator as idg
from codebase_kg.services.graph_service import (
    KnowledgeGraphIngestor,
    flatten_meta_value,
    node_properties,
    validate_database_name,
)
from codebase_kg.tests.conftest import FakeConnection, FakeGraphStore

FILE_ID = idg.file_id("src/a.service.ts", "service")
CLASS_ID = idg.class_id("AService", "src/a.service.ts")
METHOD_ID = idg.method_id("AService", "run", "src/a.service.ts")


def _graph() -> KnowledgeGraph:
    nodes = [
        KGNode(
            FILE_ID,
            cs.NodeKind.FILE,
            "a.service.ts",
            file_path="src/a.service.ts",
            subtype="service",
            meta={"subtype": "service", "extension": ".ts"},
        ),
        KGNode(
            CLASS_ID,
            cs.NodeKind.CLASS,
            "AService",
            file_path="src/a.service.ts",
            meta={"decorators": ["Injectable"], "isExported": True},
        ),
        KGNode(
            METHOD_ID,
            cs.NodeKind.METHOD,
            "run",
            file_path="src/a.service.ts",
            parent_id=CLASS_ID,
            meta={"parameters": [{"name": "id", "type": "string"}], "returnType": "void"},
        ),
    ]
    relations = [
        KGRelation(FILE_ID, CLASS_ID, cs.RelationshipType.DECLARES),
        KGRelation(CLASS_ID, METHOD_ID, cs.RelationshipType.HAS_METHOD),
        KGRelation(CLASS_ID, "decorator:Injectable", cs.RelationshipType.DECORATED_BY),
        KGRelation(METHOD_ID, "met-deadbeef", cs.RelationshipType.CALLS),
    ]
    return KnowledgeGraph(nodes, relations, KnowledgeGraph.count_kinds(nodes))


def _ingestor(store: FakeGraphStore, **kwargs) -> tuple[KnowledgeGraphIngestor, list[float]]:
    sleeps: list[float] = []
    options = {
        "batch_size": 2,
        "ready_retries": 3,
        "ready_delay": 0.5,
        "multi_tenant": True,
        "connection_factory": store.connect,
        "sleep": sleeps.append,
    }
    options.update(kwargs)
    return KnowledgeGraphIngestor(**options), sleeps


def test_ingest_creates_database_and_imports(graph_store: FakeGraphStore) -> None:
    ingestor, _ = _ingestor(graph_store)

    ingestor.ingest(_graph(), "project_a")

    state = graph_store.graph("project_a")
    assert set(state.nodes) == {
        ("File", FILE_ID),
        ("Class", CLASS_ID),
        ("Method", METHOD_ID),
    }
    assert state.relations == {
        (FILE_ID, "DECLARES", CLASS_ID),
        (CLASS_ID, "HAS_METHOD", METHOD_ID),
    }
    assert graph_store.graph().nodes == {}
    assert ("project_a", "Class", "id") in graph_store.indexes
    assert all(conn.closed for conn in graph_store.connections)


def test_node_properties_are_flattened(graph_store: FakeGraphStore) -> None:
    ingestor, _ = _ingestor(graph_store)

    ingestor.ingest(_graph(), "project_a")

    method = graph_store.graph("project_a").nodes[("Method", METHOD_ID)]
    assert method["name"] == "run"
    assert method["parentId"] == CLASS_ID
    assert method["returnType"] == "void"
    assert json.loads(method["parameters"]) == [{"name": "id", "type": "string"}]
    klass = graph_store.graph("project_a").nodes[("Class", CLASS_ID)]
    assert klass["decorators"] == ["Injectable"]
    assert klass["isExported"] is True


def test_reingest_replaces_previous_content(graph_store: FakeGraphStore) -> None:
    ingestor, _ = _ingestor(graph_store)
    ingestor.ingest(_graph(), "project_a")
    first = graph_store.graph("project_a").copy()

    ingestor.ingest(_graph(), "project_a")
    assert graph_store.graph("project_a") == first

    smaller = _graph()
    smaller.nodes = smaller.nodes[:1]
    ingestor.ingest(smaller, "project_a")
    assert set(graph_store.graph("project_a").nodes) == {("File", FILE_ID)}
    assert graph_store.graph("project_a").relations == set()


def test_existing_database_is_reused(graph_store: FakeGraphStore) -> None:
    ingestor, _ = _ingestor(graph_store)
    ingestor.ingest(_graph(), "project_a")

    ingestor.ingest(_graph(), "project_a")

    creates = [q for q in graph_store.queries if q.startswith("CREATE DATABASE")]
    assert len(creates) == 2
    assert len(graph_store.graph("project_a").nodes) == 3


def test_failed_node_import_rolls_back(graph_store: FakeGraphStore) -> None:
    ingestor, _ = _ingestor(graph_store)
    graph_store.fail_on("MERGE (n:Method", RuntimeError("disk full"))

    with pytest.raises(GraphIngestionError) as exc_info:
        ingestor.ingest(_graph(), "project_a")

    assert exc_info.value.phase == IngestionPhase.NODE_IMPORT
    assert exc_info.value.database == "project_a"
    assert graph_store.graph("project_a").nodes == {}
    assert graph_store.connections[-1].rollbacks == 1
    assert graph_store.connections[-1].closed


def test_failed_rollback_keeps_phase_error(graph_store: FakeGraphStore) -> None:
    def connect(**kwargs: object) -> FakeConnection:
        conn = graph_store.connect(**kwargs)

        def broken_rollback() -> None:
            raise ConnectionResetError("connection lost")

        conn.rollback = broken_rollback  # ty: ignore[invalid-assignment]
        return conn

    ingestor, _ = _ingestor(graph_store, connection_factory=connect)
    graph_store.fail_on("MERGE (n:Method", RuntimeError("disk full"))

    with pytest.raises(GraphIngestionError) as exc_info:
        ingestor.ingest(_graph(), "project_a")

    assert exc_info.value.phase == IngestionPhase.NODE_IMPORT
    assert str(exc_info.value.cause) == "disk full"
    assert graph_store.graph("project_a").nodes == {}
    assert graph_store.connections[-1].closed


def test_failed_relation_import_keeps_nodes(graph_store: FakeGraphStore) -> None:
    ingestor, _ = _ingestor(graph_store)
    graph_store.fail_on(":HAS_METHOD]", RuntimeError("constraint"))

    with pytest.raises(GraphIngestionError) as exc_info:
        ingestor.ingest(_graph(), "project_a")

    assert exc_info.value.phase == IngestionPhase.RELATION_IMPORT
    assert len(graph_store.graph("project_a").nodes) == 3
    assert graph_store.graph("project_a").relations == set()


def test_waits_until_database_is_ready(graph_store: FakeGraphStore) -> None:
    ingestor, sleeps = _ingestor(graph_store)
    graph_store.not_ready_attempts = 2

    ingestor.ingest(_graph(), "project_a")

    assert sleeps == [0.5, 0.5]
    assert len(graph_store.graph("project_a").nodes) == 3


def test_gives_up_when_database_never_ready(graph_store: FakeGraphStore) -> None:
    ingestor, sleeps = _ingestor(graph_store)
    graph_store.not_ready_attempts = 10

    with pytest.raises(GraphIngestionError) as exc_info:
        ingestor.ingest(_graph(), "project_a")

    assert exc_info.value.phase == IngestionPhase.WAIT_READY
    assert sleeps == [0.5, 0.5]
    assert graph_store.graph("project_a").nodes == {}


def test_create_failure_other_than_exists(graph_store: FakeGraphStore) -> None:
    ingestor, _ = _ingestor(graph_store)
    graph_store.fail_on("CREATE DATABASE", RuntimeError("permission denied"))

    with pytest.raises(GraphIngestionError) as exc_info:
        ingestor.ingest(_graph(), "project_a")

    assert exc_info.value.phase == IngestionPhase.ENSURE_EXISTS
    assert "project_a" not in graph_store.databases


def test_clean_failure(graph_store: FakeGraphStore) -> None:
    ingestor, _ = _ingestor(graph_store)
    graph_store.fail_on("DETACH DELETE", RuntimeError("locked"))

    with pytest.raises(GraphIngestionError) as exc_info:
        ingestor.ingest(_graph(), "project_a")

    assert exc_info.value.phase == IngestionPhase.CLEAN


def test_connection_failure() -> None:
    def refuse(**kwargs: object) -> None:
        raise ConnectionRefusedError("no server")

    ingestor = KnowledgeGraphIngestor(connection_factory=refuse)

    with pytest.raises(GraphIngestionError) as exc_info:
        ingestor.ingest(_graph(), "project_a")

    assert exc_info.value.phase == IngestionPhase.CONNECT
    assert isinstance(exc_info.value.cause, ConnectionRefusedError)


def test_single_tenant_mode_uses_default_database(graph_store: FakeGraphStore) -> None:
    ingestor, _ = _ingestor(graph_store, multi_tenant=False)

    ingestor.ingest(_graph(), "project_a")

    assert not any("DATABASE" in q for q in graph_store.queries)
    assert len(graph_store.graph().nodes) == 3


def test_batches_respect_batch_size(graph_store: FakeGraphStore) -> None:
    ingestor, _ = _ingestor(graph_store, batch_size=1)
    graph = _graph()
    graph.nodes.append(
        KGNode(
            idg.method_id("AService", "stop", "src/a.service.ts"),
            cs.NodeKind.METHOD,
            "stop",
        )
    )

    ingestor.ingest(graph, "project_a")

    method_batches = [q for q in graph_store.queries if "MERGE (n:Method" in q]
    assert len(method_batches) == 2


def test_empty_database_name_is_rejected(graph_store: FakeGraphStore) -> None:
    ingestor, _ = _ingestor(graph_store)
    with pytest.raises(ValueError):
        ingestor.ingest(_graph(), "")
    assert graph_store.connections == []


@pytest.mark.parametrize("name", ["project_1", "code-atlas", "my app", "1project"])
def test_validate_database_name_accepts_non_empty(name: str) -> None:
    assert validate_database_name(name) == name


@pytest.mark.parametrize("name", ["code-atlas", "we`ird name"])
def test_ingest_into_database_with_special_characters(
    graph_store: FakeGraphStore, name: str
) -> None:
    ingestor, _ = _ingestor(graph_store)

    ingestor.ingest(_graph(), name)

    assert len(graph_store.graph(name).nodes) == 3
    assert build_create_database_query(name) in graph_store.queries


def test_single_tenant_mode_accepts_any_database_name(
    graph_store: FakeGraphStore,
) -> None:
    ingestor, _ = _ingestor(graph_store, multi_tenant=False)

    ingestor.ingest(_graph(), "code-atlas")

    assert len(graph_store.graph().nodes) == 3
    assert "code-atlas" not in graph_store.databases


def test_database_names_are_quoted() -> None:
    assert build_create_database_query("code-atlas") == "CREATE DATABASE `code-atlas`;"
    assert build_use_database_query("a`b") == "USE DATABASE `a``b`;"


@pytest.mark.parametrize(
    "kwargs", [{"ready_retries": 0}, {"ready_delay": -1.0}, {"batch_size": 0}]
)
def test_invalid_ingestor_options(kwargs: dict[str, float]) -> None:
    with pytest.raises(ValueError):
        KnowledgeGraphIngestor(**kwargs)


def test_flatten_meta_value() -> None:
    assert flatten_meta_value("x") == "x"
    assert flatten_meta_value(3) == 3
    assert flatten_meta_value(["a", "b"]) == ["a", "b"]
    assert flatten_meta_value({"a": 1}) == '{"a": 1}'
    assert flatten_meta_value([{"name": "x"}]) == '[{"name": "x"}]'


def test_node_properties_skip_none_and_keep_base_fields() -> None:
    node = KGNode(
        "cls-1",
        cs.NodeKind.CLASS,
        "A",
        file_path="src/a.ts",
        meta={"name": "shadow", "id": "other", "value": None, "isExported": False},
    )

    assert node_properties(node) == {
        "name": "A",
        "filePath": "src/a.ts",
        "isExported": False,
    }
