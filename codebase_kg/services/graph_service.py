from __future__ import annotations

import json
import time
from collections import defaultdict
from collections.abc import Callable, Generator, Iterable, Sequence
from contextlib import contextmanager

import mgclient  # ty: ignore[unresolved-import]
from loguru import logger

from codebase_kg.core import constants as cs
from codebase_kg.core import logs as ls
from codebase_kg.core.config import settings
from codebase_kg.data_models.models import KGNode, KGRelation, KnowledgeGraph
from codebase_kg.data_models.types_defs import (
    BatchParams,
    BatchWrapper,
    CursorProtocol,
    MetaValue,
    NodeBatchRow,
    PropertyDict,
    PropertyValue,
    RelationGroupKey,
    RelBatchRow,
)
from codebase_kg.graph_db.cypher_queries import (
    CYPHER_DELETE_ALL,
    CYPHER_PING,
    build_create_database_query,
    build_index_query,
    build_merge_node_query,
    build_merge_relationship_query,
    build_use_database_query,
    wrap_with_unwind,
)
from codebase_kg.parsers.id_generator import kind_from_id

from ..infrastructure import exceptions as ex
from ..infrastructure.exceptions import GraphIngestionError, IngestionPhase
from .protocols import ConnectionFactory, ConnectionProtocol


def validate_database_name(database_name: str) -> str:
    if not database_name:
        raise ValueError(ex.DATABASE_NAME_EMPTY)
    return database_name


def flatten_meta_value(value: MetaValue) -> PropertyValue:
    """
    Converts a metadata value into something a graph property can hold.

    Scalars and lists of scalars are stored as they are; mappings and lists
    containing mappings or lists are stored as JSON strings.
    """
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, list) and any(isinstance(v, dict | list) for v in value):
        return json.dumps(value, ensure_ascii=False)
    return value  # ty: ignore[invalid-return-type]


def node_properties(node: KGNode) -> PropertyDict:
    """
    Builds the property map stored on a node, the id excepted.

    Args:
        node (KGNode): The node.

    Returns:
        PropertyDict: `name`, `filePath`, `parentId`, `subtype` and the
            flattened `meta` entries; None values are dropped and the top-level
            fields win over meta entries of the same name.
    """
    props: PropertyDict = {cs.KEY_NAME: node.name}
    for key, value in (
        (cs.KEY_FILE_PATH, node.file_path),
        (cs.KEY_PARENT_ID, node.parent_id),
        (cs.KEY_SUBTYPE, node.subtype),
    ):
        if value is not None:
            props[key] = value
    for key, value in node.meta.items():
        if value is None or key in props or key == cs.KEY_ID:
            continue
        props[key] = flatten_meta_value(value)
    return props


def _label_of(node_id: str) -> str | None:
    kind = kind_from_id(node_id)
    return str(kind) if kind is not None else None


def _chunks(rows: Sequence[BatchParams], size: int) -> Iterable[Sequence[BatchParams]]:
    for start in range(0, len(rows), size):
        yield rows[start : start + size]


class KnowledgeGraphIngestor:
    """
    Loads knowledge graphs into Memgraph, replacing what a database held before.

    Every `ingest` call opens its own connection and runs the phases
    ensure-exists, wait-ready, clean, node import and relation import in that
    order. Nodes and relations are each imported in a single transaction, so a
    failed import leaves no partial batch behind. Nodes are merged on their
    id, which makes re-importing the same graph converge to the same content.

    Args:
        host (str | None): Memgraph host. Defaults to `settings.MEMGRAPH_HOST`.
        port (int | None): Memgraph port. Defaults to `settings.MEMGRAPH_PORT`.
        username (str | None): Optional user name.
        password (str | None): Optional password.
        batch_size (int | None): Rows per `UNWIND` batch.
        ready_retries (int | None): Readiness attempts before giving up.
        ready_delay (float | None): Seconds between readiness attempts.
        multi_tenant (bool | None): Whether the server supports
            `CREATE DATABASE` / `USE DATABASE`. Without it every database name
            maps to the server's single database.
        connection_factory (ConnectionFactory | None): Opens connections;
            defaults to `mgclient.connect`.
        sleep (Callable[[float], None]): Used to wait between readiness attempts.
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        batch_size: int | None = None,
        ready_retries: int | None = None,
        ready_delay: float | None = None,
        multi_tenant: bool | None = None,
        connection_factory: ConnectionFactory | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._host = host or settings.MEMGRAPH_HOST
        self._port = port or settings.MEMGRAPH_PORT
        self._username = username if username is not None else settings.MEMGRAPH_USERNAME
        self._password = password if password is not None else settings.MEMGRAPH_PASSWORD
        self.batch_size = settings.resolve_batch_size(batch_size)
        self.ready_retries = (
            settings.GRAPH_DB_READY_RETRIES if ready_retries is None else ready_retries
        )
        if self.ready_retries < 1:
            raise ValueError(ex.READY_RETRIES)
        self.ready_delay = (
            settings.GRAPH_DB_READY_DELAY if ready_delay is None else ready_delay
        )
        if self.ready_delay < 0:
            raise ValueError(ex.READY_DELAY)
        self.multi_tenant = (
            settings.MEMGRAPH_MULTI_TENANT if multi_tenant is None else multi_tenant
        )
        self._connection_factory: ConnectionFactory = (
            connection_factory or mgclient.connect
        )
        self._sleep = sleep

    def ingest(self, graph: KnowledgeGraph, database_name: str) -> None:
        """
        Replaces the content of `database_name` with `graph`.

        Args:
            graph (KnowledgeGraph): The extracted graph.
            database_name (str): The target database.

        Raises:
            ValueError: If the server is multi-tenant and the database name is
                empty.
            GraphIngestionError: If any phase fails; the error names the phase.
        """
        self.clean_and_import(graph.nodes, graph.relations, database_name)

    def clean_and_import(
        self,
        nodes: Sequence[KGNode],
        relations: Sequence[KGRelation],
        database_name: str,
    ) -> None:
        database = (
            validate_database_name(database_name)
            if self.multi_tenant
            else database_name
        )
        with self._connect(database) as conn:
            self.ensure_database(conn, database)
            self.wait_until_ready(conn, database)
            self.clean_database(conn, database)
            self.ensure_indexes(conn, database, {str(node.kind) for node in nodes})
            self.import_nodes(conn, database, nodes)
            self.import_relations(conn, database, relations)
        logger.info(ls.MG_INGEST_DONE.format(database=database))

    @contextmanager
    def _connect(self, database: str) -> Generator[ConnectionProtocol, None, None]:
        logger.info(ls.MG_CONNECTING.format(host=self._host, port=self._port))
        kwargs: dict[str, str | int] = {"host": self._host, "port": self._port}
        if self._username:
            kwargs["username"] = self._username
        if self._password:
            kwargs["password"] = self._password
        try:
            conn = self._connection_factory(**kwargs)
            conn.autocommit = True
        except Exception as e:
            raise GraphIngestionError(IngestionPhase.CONNECT, database, e) from e
        logger.info(ls.MG_CONNECTED)
        try:
            yield conn
        finally:
            conn.close()
            logger.info(ls.MG_DISCONNECTED)

    @contextmanager
    def _get_cursor(
        self, conn: ConnectionProtocol
    ) -> Generator[CursorProtocol, None, None]:
        """
        Provides a database cursor within a context manager.

        Yields:
            CursorProtocol: The database cursor.
        """
        cursor: CursorProtocol | None = None
        try:
            cursor = conn.cursor()
            yield cursor
        finally:
            if cursor:
                cursor.close()

    def _execute_query(
        self, conn: ConnectionProtocol, query: str, quiet_if_exists: bool = False
    ) -> None:
        with self._get_cursor(conn) as cursor:
            try:
                cursor.execute(query, {})
            except Exception as e:
                if not (
                    quiet_if_exists and cs.ERR_SUBSTR_ALREADY_EXISTS in str(e).lower()
                ):
                    logger.error(ls.MG_CYPHER_ERROR.format(error=e))
                    logger.error(ls.MG_CYPHER_QUERY.format(query=query))
                raise

    def _execute_batch(
        self, conn: ConnectionProtocol, query: str, params_list: Sequence[BatchParams]
    ) -> None:
        """
        Executes a batch query using `UNWIND`.

        Args:
            conn (ConnectionProtocol): The open connection.
            query (str): The core Cypher query to run for each item in the batch.
            params_list (Sequence[BatchParams]): A list of parameter dictionaries.
        """
        if not params_list:
            return
        with self._get_cursor(conn) as cursor:
            try:
                cursor.execute(wrap_with_unwind(query), BatchWrapper(batch=params_list))
            except Exception as e:
                logger.error(ls.MG_BATCH_ERROR.format(error=e))
                logger.error(ls.MG_CYPHER_QUERY.format(query=query))
                if len(params_list) > cs.BATCH_LOG_PREVIEW:
                    logger.error(
                        ls.MG_BATCH_PARAMS_TRUNCATED.format(
                            count=len(params_list),
                            params=params_list[: cs.BATCH_LOG_PREVIEW],
                        )
                    )
                else:
                    logger.error(ls.MG_CYPHER_PARAMS.format(params=params_list))
                raise

    @contextmanager
    def _transaction(
        self, conn: ConnectionProtocol, phase: IngestionPhase, database: str
    ) -> Generator[None, None, None]:
        conn.autocommit = False
        try:
            yield
            conn.commit()
        except Exception as e:
            self._rollback(conn, phase)
            logger.error(ls.MG_TX_ROLLED_BACK.format(phase=phase, error=e))
            raise GraphIngestionError(phase, database, e) from e
        conn.autocommit = True

    def _rollback(self, conn: ConnectionProtocol, phase: IngestionPhase) -> None:
        # The import error is re-raised by the caller either way.
        try:
            conn.rollback()
            conn.autocommit = True
        except Exception as e:
            logger.error(ls.MG_ROLLBACK_FAILED.format(phase=phase, error=e))

    def ensure_database(self, conn: ConnectionProtocol, database: str) -> None:
        """
        Creates the database unless it exists already.

        Raises:
            GraphIngestionError: If creation fails for another reason.
        """
        if not self.multi_tenant:
            return
        logger.info(ls.MG_ENSURE_DATABASE.format(database=database))
        try:
            self._execute_query(
                conn, build_create_database_query(database), quiet_if_exists=True
            )
        except Exception as e:
            if cs.ERR_SUBSTR_ALREADY_EXISTS in str(e).lower():
                logger.info(ls.MG_DATABASE_EXISTS.format(database=database))
                return
            raise GraphIngestionError(
                IngestionPhase.ENSURE_EXISTS, database, e
            ) from e

    def wait_until_ready(self, conn: ConnectionProtocol, database: str) -> None:
        """
        Switches to the database and polls it until it answers a trivial query.

        Makes at most `ready_retries` attempts, sleeping `ready_delay` seconds
        between them.

        Raises:
            GraphIngestionError: If the database is still not ready after the
                last attempt.
        """
        last_error: Exception | None = None
        for attempt in range(1, self.ready_retries + 1):
            logger.debug(
                ls.MG_WAITING_READY.format(
                    database=database, attempt=attempt, retries=self.ready_retries
                )
            )
            try:
                if self.multi_tenant:
                    self._execute_query(conn, build_use_database_query(database))
                self._execute_query(conn, CYPHER_PING)
            except Exception as e:
                last_error = e
                logger.warning(ls.MG_NOT_READY.format(database=database, error=e))
                if attempt < self.ready_retries:
                    self._sleep(self.ready_delay)
                continue
            logger.info(ls.MG_READY.format(database=database))
            return
        raise GraphIngestionError(IngestionPhase.WAIT_READY, database, last_error)

    def clean_database(self, conn: ConnectionProtocol, database: str) -> None:
        """Deletes all nodes and relationships from the database."""
        logger.info(ls.MG_CLEANING_DB.format(database=database))
        try:
            self._execute_query(conn, CYPHER_DELETE_ALL)
        except Exception as e:
            raise GraphIngestionError(IngestionPhase.CLEAN, database, e) from e
        logger.info(ls.MG_DB_CLEANED.format(database=database))

    def ensure_indexes(
        self, conn: ConnectionProtocol, database: str, labels: Iterable[str]
    ) -> None:
        """Creates an index on `id` for each label; existing indexes are kept."""
        ordered = sorted(set(labels))
        logger.info(ls.MG_ENSURING_INDEXES.format(count=len(ordered)))
        for label in ordered:
            try:
                self._execute_query(
                    conn,
                    build_index_query(label, cs.NODE_ID_PROPERTY),
                    quiet_if_exists=True,
                )
            except Exception as e:
                if cs.ERR_SUBSTR_ALREADY_EXISTS in str(e).lower():
                    continue
                raise GraphIngestionError(IngestionPhase.CLEAN, database, e) from e

    def import_nodes(
        self, conn: ConnectionProtocol, database: str, nodes: Sequence[KGNode]
    ) -> None:
        """
        Merges all nodes in one transaction, batched per label.

        Args:
            conn (ConnectionProtocol): The open connection.
            database (str): The target database, for error reporting.
            nodes (Sequence[KGNode]): The nodes to merge.

        Raises:
            GraphIngestionError: If any batch fails; nothing is committed then.
        """
        logger.info(ls.MG_IMPORTING_NODES.format(count=len(nodes), database=database))
        rows_by_label: defaultdict[str, list[NodeBatchRow]] = defaultdict(list)
        for node in nodes:
            rows_by_label[str(node.kind)].append(
                NodeBatchRow(id=node.id, props=node_properties(node))
            )
        with self._transaction(conn, IngestionPhase.NODE_IMPORT, database):
            for label, rows in rows_by_label.items():
                query = build_merge_node_query(label, cs.NODE_ID_PROPERTY)
                for chunk in _chunks(rows, self.batch_size):
                    self._execute_batch(conn, query, chunk)
        logger.info(ls.MG_NODES_IMPORTED.format(count=len(nodes)))

    def import_relations(
        self,
        conn: ConnectionProtocol,
        database: str,
        relations: Sequence[KGRelation],
    ) -> None:
        """
        Merges all relations in one transaction.

        Relations are grouped by type and by the labels their endpoint ids
        imply. Endpoints whose id prefix is unknown (such as decorator ids) are
        matched without a label. A relation whose endpoint does not exist
        matches nothing and is skipped by the store.

        Raises:
            GraphIngestionError: If any batch fails; nothing is committed then.
        """
        logger.info(
            ls.MG_IMPORTING_RELS.format(count=len(relations), database=database)
        )
        groups: defaultdict[RelationGroupKey, list[RelBatchRow]] = defaultdict(list)
        for relation in relations:
            key = RelationGroupKey(
                str(relation.type),
                _label_of(relation.from_id),
                _label_of(relation.to_id),
            )
            groups[key].append(
                RelBatchRow(from_val=relation.from_id, to_val=relation.to_id)
            )
        with self._transaction(conn, IngestionPhase.RELATION_IMPORT, database):
            for key, rows in groups.items():
                query = build_merge_relationship_query(
                    key.from_label, key.rel_type, key.to_label, cs.NODE_ID_PROPERTY
                )
                for chunk in _chunks(rows, self.batch_size):
                    self._execute_batch(conn, query, chunk)
        logger.info(
            ls.MG_RELS_IMPORTED.format(count=len(relations), groups=len(groups))
        )
