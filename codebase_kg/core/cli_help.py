from __future__ import annotations

APP_DESCRIPTION = (
    "Extracts a knowledge graph from a TypeScript codebase and loads it into Memgraph."
)

CMD_PARSE = "Extract the knowledge graph of a project and write it as JSON."
CMD_INGEST = "Replace the content of a database with a previously extracted graph."
CMD_SCAN = "Extract a project's knowledge graph and ingest it in one step."
CMD_SUBTYPES = "List the file subtypes found in an extracted graph."

HELP_QUIET = (
    "Suppress non-essential output (progress messages, tables, informational logs)."
)
HELP_REPO_PATH = "Path to the project to scan. Defaults to TARGET_REPO_PATH."
HELP_SOURCE_DIR = (
    "Source directory relative to the project. Defaults to SOURCE_DIR; the project "
    "root is used when it does not exist."
)
HELP_OUTPUT = "File the extracted graph is written to."
HELP_INPUT = "Graph file produced by the parse command."
HELP_DATABASE = "Target database name. Defaults to DEFAULT_DATABASE."
HELP_BATCH_SIZE = "Number of rows per batch when importing (overrides MEMGRAPH_BATCH_SIZE)."
HELP_PARALLEL = "Run the extractors on a thread pool."
