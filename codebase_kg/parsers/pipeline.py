from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from loguru import logger

from codebase_kg.core import logs as ls
from codebase_kg.core.config import settings
from codebase_kg.data_models.models import ExtractorOutput, KnowledgeGraph
from codebase_kg.infrastructure import exceptions as ex

from .extractors import DEFAULT_EXTRACTORS, BaseExtractor
from .graph_assembler import GraphAssembler
from .heuristics import DEFAULT_CLASSIFIER, NameClassifier
from .project import ParsedProject, load_project


class KnowledgeGraphExtractor:
    """
    Turns a TypeScript project into a knowledge graph.

    The project is parsed once; every extractor then reads the same immutable
    `ParsedProject` and writes to its own output, so extractors can run on a
    thread pool. The outputs are merged by a `GraphAssembler`.

    Args:
        extractors (Sequence[BaseExtractor] | None): Extractor instances to run.
            Defaults to one instance of each built-in extractor.
        classifier (NameClassifier): Name heuristics for the default extractors.
        parallel (bool | None): Run extractors concurrently. Defaults to
            `settings.EXTRACT_PARALLEL`.
        max_workers (int | None): Thread pool size. Defaults to
            `settings.EXTRACT_WORKERS`.
    """

    def __init__(
        self,
        extractors: Sequence[BaseExtractor] | None = None,
        classifier: NameClassifier = DEFAULT_CLASSIFIER,
        parallel: bool | None = None,
        max_workers: int | None = None,
    ) -> None:
        self.extractors: list[BaseExtractor] = (
            list(extractors)
            if extractors is not None
            else [extractor_cls(classifier) for extractor_cls in DEFAULT_EXTRACTORS]
        )
        self.parallel = settings.EXTRACT_PARALLEL if parallel is None else parallel
        self.max_workers = (
            settings.EXTRACT_WORKERS if max_workers is None else max_workers
        )
        if self.max_workers < 1:
            raise ValueError(ex.WORKERS)
        self.assembler = GraphAssembler()

    def extract(
        self,
        project_path: str | Path,
        source_dir: str | None = None,
        exclude_dirs: frozenset[str] | None = None,
    ) -> KnowledgeGraph:
        """
        Loads a project from disk and extracts its knowledge graph.

        Args:
            project_path (str | Path): Path to an already checked-out project.
            source_dir (str | None): Source directory relative to the project.
            exclude_dirs (frozenset[str] | None): Directory names to skip.

        Returns:
            KnowledgeGraph: Nodes, deduplicated relations and per-kind counts.

        Raises:
            ProjectLoadError: If the project path is missing or not a directory.
        """
        project = load_project(project_path, source_dir, exclude_dirs)
        return self.extract_project(project)

    def extract_project(self, project: ParsedProject) -> KnowledgeGraph:
        logger.info(
            ls.EXTRACTION_START.format(
                count=len(self.extractors), files=len(project), parallel=self.parallel
            )
        )
        outputs: list[ExtractorOutput]
        if self.parallel and len(self.extractors) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                futures = [
                    executor.submit(extractor.extract, project)
                    for extractor in self.extractors
                ]
                outputs = [future.result() for future in futures]
        else:
            outputs = [extractor.extract(project) for extractor in self.extractors]
        return self.assembler.assemble(outputs)


def extract_knowledge_graph(
    project_path: str | Path, source_dir: str | None = None
) -> KnowledgeGraph:
    return KnowledgeGraphExtractor().extract(project_path, source_dir)
