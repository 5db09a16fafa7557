from __future__ import annotations

# (H) Project loading
PROJECT_LOADING = "Loading TypeScript project from {path}"
PROJECT_LOADED = "Loaded {count} source files from {root}"
PROJECT_NO_SOURCE_DIR = (
    "No '{source_dir}' directory under {path}; using the project root as source root"
)
FILE_READ_FAILED = "Skipping {path}: could not read file ({error})"
FILE_DECODE_FAILED = "Skipping {path}: could not decode as UTF-8 ({error})"
FILE_PARSE_FAILED = "Skipping {path}: parser failed ({error})"
FILE_HAS_SYNTAX_ERRORS = "{path} contains syntax errors; extracting valid regions only"
TSCONFIG_LOADED = "Loaded module resolution settings from {path}"
TSCONFIG_INVALID = "Ignoring unreadable tsconfig at {path}: {error}"
PARSER_LOADED = "Loaded tree-sitter grammar for {lang}"

# (H) Extraction
EXTRACTION_START = "Running {count} extractors over {files} files (parallel={parallel})"
EXTRACTOR_START = "Running extractor: {name}"
EXTRACTOR_DONE = "Extractor {name} produced {nodes} nodes and {relations} relations"
EXTRACTOR_FILE_FAILED = "Extractor {name} failed on {path}: {error}"

# (H) Assembly
ASSEMBLY_SUMMARY = "Assembled {nodes} nodes and {relations} relations ({dropped} duplicate relations dropped)"
ASSEMBLY_KIND_COUNT = "  {kind}: {count}"
DUPLICATE_NODE_ID = "Duplicate node id {id}: '{first}' and '{second}' ({kind})"

# (H) Graph export
GRAPH_EXPORTING = "Writing knowledge graph to {path}"
GRAPH_EXPORTED = "Wrote {nodes} nodes and {relations} relations to {path}"
GRAPH_LOADING = "Loading knowledge graph from {path}"
GRAPH_LOADED = "Loaded {nodes} nodes and {relations} relations"

# (H) Memgraph ingestion
MG_CONNECTING = "Connecting to Memgraph at {host}:{port}..."
MG_CONNECTED = "Successfully connected to Memgraph."
MG_DISCONNECTED = "Disconnected from Memgraph."
MG_ENSURE_DATABASE = "Ensuring database '{database}' exists"
MG_DATABASE_EXISTS = "Database '{database}' already exists"
MG_WAITING_READY = "Waiting for database '{database}' (attempt {attempt}/{retries})"
MG_NOT_READY = "Database '{database}' not ready: {error}"
MG_READY = "Database '{database}' is ready"
MG_CLEANING_DB = "--- Cleaning database '{database}'... ---"
MG_DB_CLEANED = "--- Database '{database}' cleaned. ---"
MG_ENSURING_INDEXES = "Ensuring id indexes for {count} labels"
MG_IMPORTING_NODES = "--- Importing {count} nodes into '{database}' ---"
MG_NODES_IMPORTED = "--- {count} nodes imported ---"
MG_IMPORTING_RELS = "--- Importing {count} relations into '{database}' ---"
MG_RELS_IMPORTED = "--- {count} relations submitted ({groups} groups) ---"
MG_TX_ROLLED_BACK = "Transaction for {phase} rolled back: {error}"
MG_ROLLBACK_FAILED = "Rollback of the {phase} transaction failed: {error}"
MG_INGEST_DONE = "Ingestion into '{database}' finished"
MG_CYPHER_ERROR = "!!! Cypher Error: {error}"
MG_CYPHER_QUERY = "    Query: {query}"
MG_CYPHER_PARAMS = "    Params: {params}"
MG_BATCH_ERROR = "!!! Batch Cypher Error: {error}"
MG_BATCH_PARAMS_TRUNCATED = "    Params (first 10 of {count}): {params}..."

# (H) CLI
CLI_PARSING = "Extracting knowledge graph from {path}"
CLI_INGESTING = "Ingesting knowledge graph into database '{database}'"
