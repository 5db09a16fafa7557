from __future__ import annotations

from enum import StrEnum

# (H) Configuration errors
BATCH_SIZE = "batch_size must be a positive integer"
READY_RETRIES = "ready_retries must be a positive integer"
READY_DELAY = "ready_delay must not be negative"
WORKERS = "max_workers must be a positive integer"

# (H) Project errors
PROJECT_NOT_FOUND = "Project path does not exist: {path}"
PROJECT_NOT_DIR = "Project path is not a directory: {path}"
PARSER_UNAVAILABLE = "No tree-sitter grammar available for '{suffix}' files"

# (H) Graph file errors
GRAPH_FILE_NOT_FOUND = "Graph file not found: {path}"
GRAPH_FILE_INVALID = "Graph file {path} is not a valid knowledge graph: {error}"
GRAPH_NODE_INVALID = "Invalid node entry: {entry}"
GRAPH_RELATION_INVALID = "Invalid relation entry: {entry}"

# (H) Ingestion errors
DATABASE_NAME_EMPTY = "Database name must not be empty"
INGEST_PHASE_FAILED = "Ingestion into '{database}' failed during {phase}: {cause}"
DATABASE_NOT_READY = "Database '{database}' did not become ready in time."


class IngestionPhase(StrEnum):
    CONNECT = "connect"
    ENSURE_EXISTS = "ensure-exists"
    WAIT_READY = "wait-ready"
    CLEAN = "clean"
    NODE_IMPORT = "node-import"
    RELATION_IMPORT = "relation-import"


class ProjectLoadError(ValueError):
    """Raised when a project directory cannot be opened for extraction."""


class GraphFileError(ValueError):
    """Raised when a serialised knowledge graph cannot be read."""


class GraphIngestionError(RuntimeError):
    """Raised when a phase of the ingestion state machine fails.

    Attributes:
        phase (IngestionPhase): The phase that failed.
        database (str): The target database name.
        cause (BaseException | None): The underlying driver error, if any.
    """

    def __init__(
        self,
        phase: IngestionPhase,
        database: str,
        cause: BaseException | None = None,
    ) -> None:
        self.phase = phase
        self.database = database
        self.cause = cause
        if phase == IngestionPhase.WAIT_READY:
            message = DATABASE_NOT_READY.format(database=database)
        else:
            message = INGEST_PHASE_FAILED.format(
                database=database, phase=phase, cause=cause
            )
        super().__init__(message)
