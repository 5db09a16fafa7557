from __future__ import annotations

import typer

from codebase_kg.core import cli_help as ch
from codebase_kg.core import constants as cs
from codebase_kg.data_models.models import KnowledgeGraph
from codebase_kg.graph_db.graph_export import load_graph
from codebase_kg.infrastructure.exceptions import (
    GraphFileError,
    GraphIngestionError,
    ProjectLoadError,
)
from codebase_kg.parsers.file_classifier import get_subtype_stats

from .config import settings
from .main import (
    configure_logging,
    console,
    count_table,
    extract_graph,
    ingest_graph,
    style,
)

app = typer.Typer(
    name="codebase-kg",
    help=ch.APP_DESCRIPTION,
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def _global_options(
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help=ch.HELP_QUIET,
        is_eager=True,
    ),
) -> None:
    """
    Global CLI callback to handle common options like 'quiet' mode.

    Args:
        quiet (bool): If True, suppresses non-error output.
    """
    settings.QUIET = quiet
    configure_logging("ERROR" if quiet else None)


def _info(msg: str) -> None:
    """Wrapper to print messages to the console only if quiet mode is disabled.

    Args:
        msg (str): The message to print.
    """
    if not settings.QUIET:
        console.print(msg)


def _fail(template: str, error: Exception) -> typer.Exit:
    console.print(style(template.format(error=error), cs.Color.RED))
    return typer.Exit(1)


def _extract(
    repo_path: str | None, source_dir: str | None, output: str | None, parallel: bool
) -> KnowledgeGraph:
    target = repo_path or settings.TARGET_REPO_PATH
    _info(style(cs.CLI_MSG_EXTRACTING.format(path=target), cs.Color.GREEN))
    try:
        graph = extract_graph(target, source_dir, output, parallel or None)
    except (ProjectLoadError, OSError) as e:
        raise _fail(cs.CLI_ERR_EXTRACTION, e) from e
    _info(
        style(
            cs.CLI_MSG_EXTRACTED.format(
                nodes=len(graph.nodes), relations=len(graph.relations)
            ),
            cs.Color.GREEN,
        )
    )
    if not settings.QUIET:
        console.print(count_table(cs.TABLE_TITLE_COUNTS, cs.TABLE_COL_KIND, graph.counts))
    if output is not None:
        _info(style(cs.CLI_MSG_SAVED.format(path=output), cs.Color.CYAN))
    return graph


def _ingest(graph: KnowledgeGraph, database: str | None, batch_size: int | None) -> None:
    target = database or settings.DEFAULT_DATABASE
    _info(style(cs.CLI_MSG_INGESTING.format(database=target), cs.Color.YELLOW))
    try:
        ingest_graph(graph, target, batch_size)
    except (GraphIngestionError, ValueError) as e:
        raise _fail(cs.CLI_ERR_INGESTION, e) from e
    _info(style(cs.CLI_MSG_INGESTED.format(database=target), cs.Color.GREEN))


def _load(input_file: str) -> KnowledgeGraph:
    try:
        return load_graph(input_file)
    except GraphFileError as e:
        raise _fail(cs.CLI_ERR_GRAPH_FILE, e) from e


@app.command(help=ch.CMD_PARSE)
def parse(
    repo_path: str | None = typer.Option(None, "--repo-path", help=ch.HELP_REPO_PATH),
    source_dir: str | None = typer.Option(
        None, "--source-dir", help=ch.HELP_SOURCE_DIR
    ),
    output: str = typer.Option(
        cs.DEFAULT_OUTPUT_FILE, "-o", "--output", help=ch.HELP_OUTPUT
    ),
    parallel: bool = typer.Option(False, "--parallel", help=ch.HELP_PARALLEL),
) -> None:
    """
    Extracts a project's knowledge graph into a JSON file.

    Args:
        repo_path (str | None): Path to the project (defaults to TARGET_REPO_PATH).
        source_dir (str | None): Source directory relative to the project.
        output (str): Destination of the graph JSON.
        parallel (bool): Whether to run the extractors concurrently.
    """
    _extract(repo_path, source_dir, output, parallel)


@app.command(help=ch.CMD_INGEST)
def ingest(
    input_file: str = typer.Option(
        cs.DEFAULT_OUTPUT_FILE, "-i", "--input", help=ch.HELP_INPUT
    ),
    database: str | None = typer.Option(None, "--database", help=ch.HELP_DATABASE),
    batch_size: int | None = typer.Option(
        None, "--batch-size", min=1, help=ch.HELP_BATCH_SIZE
    ),
) -> None:
    _ingest(_load(input_file), database, batch_size)


@app.command(help=ch.CMD_SCAN)
def scan(
    repo_path: str | None = typer.Option(None, "--repo-path", help=ch.HELP_REPO_PATH),
    source_dir: str | None = typer.Option(
        None, "--source-dir", help=ch.HELP_SOURCE_DIR
    ),
    database: str | None = typer.Option(None, "--database", help=ch.HELP_DATABASE),
    output: str | None = typer.Option(None, "-o", "--output", help=ch.HELP_OUTPUT),
    batch_size: int | None = typer.Option(
        None, "--batch-size", min=1, help=ch.HELP_BATCH_SIZE
    ),
    parallel: bool = typer.Option(False, "--parallel", help=ch.HELP_PARALLEL),
) -> None:
    """
    Extracts a project's knowledge graph and ingests it into a database.

    Args:
        repo_path (str | None): Path to the project (defaults to TARGET_REPO_PATH).
        source_dir (str | None): Source directory relative to the project.
        database (str | None): Target database (defaults to DEFAULT_DATABASE).
        output (str | None): Optional path to also write the graph JSON.
        batch_size (int | None): Batch size for the import.
        parallel (bool): Whether to run the extractors concurrently.
    """
    graph = _extract(repo_path, source_dir, output, parallel)
    _ingest(graph, database, batch_size)


@app.command(help=ch.CMD_SUBTYPES)
def subtypes(
    input_file: str = typer.Option(
        cs.DEFAULT_OUTPUT_FILE, "-i", "--input", help=ch.HELP_INPUT
    ),
) -> None:
    stats = get_subtype_stats(_load(input_file).nodes)
    if not stats:
        console.print(style(cs.CLI_MSG_NO_SUBTYPES, cs.Color.YELLOW))
        return
    console.print(count_table(cs.TABLE_TITLE_SUBTYPES, cs.TABLE_COL_SUBTYPE, stats))
