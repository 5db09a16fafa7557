from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.table import Table

from codebase_kg.core import constants as cs
from codebase_kg.core import logs as ls
from codebase_kg.data_models.models import KnowledgeGraph
from codebase_kg.graph_db.graph_export import save_graph
from codebase_kg.parsers.pipeline import KnowledgeGraphExtractor
from codebase_kg.services.graph_service import KnowledgeGraphIngestor

from .config import settings

console = Console()


def style(
    text: str, color: cs.Color, modifier: cs.StyleModifier = cs.StyleModifier.BOLD
) -> str:
    """Applies Rich styling to a text string.

    Args:
        text (str): The text to style.
        color (cs.Color): The color to apply.
        modifier (cs.StyleModifier): The style modifier (e.g., 'bold', 'dim').

    Returns:
        str: The Rich-formatted string.
    """
    if modifier == cs.StyleModifier.NONE:
        return f"[{color}]{text}[/{color}]"
    return f"[{modifier} {color}]{text}[/{modifier} {color}]"


def configure_logging(level: str | None = None) -> None:
    logger.remove()
    logger.add(sys.stderr, format=cs.LOG_FORMAT, level=level or settings.LOG_LEVEL)


def count_table(title: str, column: str, counts: dict[str, int]) -> Table:
    """Builds a two-column table of counts, largest first."""
    table = Table(title=style(title, cs.Color.GREEN))
    table.add_column(column, style=cs.Color.CYAN)
    table.add_column(cs.TABLE_COL_COUNT, style=cs.Color.MAGENTA, justify="right")
    for key, count in sorted(counts.items(), key=lambda item: (-item[1], item[0])):
        table.add_row(key, str(count))
    return table


def extract_graph(
    repo_path: str | Path,
    source_dir: str | None = None,
    output: str | Path | None = None,
    parallel: bool | None = None,
) -> KnowledgeGraph:
    """
    Extracts a project's knowledge graph and optionally writes it to a file.

    Args:
        repo_path (str | Path): The project to scan.
        source_dir (str | None): Source directory relative to the project.
        output (str | Path | None): Where to write the graph JSON, if anywhere.
        parallel (bool | None): Run extractors concurrently.

    Returns:
        KnowledgeGraph: The extracted graph.
    """
    logger.info(ls.CLI_PARSING.format(path=repo_path))
    graph = KnowledgeGraphExtractor(parallel=parallel).extract(repo_path, source_dir)
    if output is not None:
        save_graph(graph, output)
    return graph


def ingest_graph(
    graph: KnowledgeGraph, database: str, batch_size: int | None = None
) -> None:
    logger.info(ls.CLI_INGESTING.format(database=database))
    ingestor = KnowledgeGraphIngestor(batch_size=batch_size)
    ingestor.ingest(graph, database)
