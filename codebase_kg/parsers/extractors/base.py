from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import ClassVar, NamedTuple

from loguru import logger

from codebase_kg.core import constants as cs
from codebase_kg.core import logs as ls
from codebase_kg.data_models.models import ExtractorOutput
from codebase_kg.data_models.types_defs import ASTNode

from .. import id_generator as idg
from ..heuristics import DEFAULT_CLASSIFIER, NameClassifier
from ..project import ParsedProject
from ..ts.declarations import Declaration, SourceFile
from ..ts.utils import class_members, is_method, name_of


class CodeUnit(NamedTuple):
    """A method or function whose body is analysed, with its graph id."""

    node_id: str
    node: ASTNode
    owner: Declaration | None


class BaseExtractor(ABC):
    """
    One independent pass over a parsed project.

    Subclasses implement `process_file`; the base class runs it for every file
    and isolates failures: an unexpected error inside one file is logged and
    that file's partial output is discarded, the other files are unaffected.
    """

    name: ClassVar[str]

    def __init__(self, classifier: NameClassifier = DEFAULT_CLASSIFIER) -> None:
        self.classifier = classifier

    def extract(self, project: ParsedProject) -> ExtractorOutput:
        logger.debug(ls.EXTRACTOR_START.format(name=self.name))
        output = ExtractorOutput(self.name)
        for source_file in project.files.values():
            file_output = ExtractorOutput(self.name)
            try:
                self.process_file(project, source_file, file_output)
            except Exception as e:
                logger.warning(
                    ls.EXTRACTOR_FILE_FAILED.format(
                        name=self.name, path=source_file.path, error=e
                    )
                )
                continue
            output.nodes.extend(file_output.nodes)
            output.relations.extend(file_output.relations)
        logger.info(
            ls.EXTRACTOR_DONE.format(
                name=self.name,
                nodes=len(output.nodes),
                relations=len(output.relations),
            )
        )
        return output

    @abstractmethod
    def process_file(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        output: ExtractorOutput,
    ) -> None:
        """Appends the nodes and relations found in one file to `output`."""


def methods_of(class_decl: Declaration) -> Iterator[tuple[str, ASTNode]]:
    """Yields `(method name, node)` for the methods of a class, constructors excluded."""
    for member in class_members(class_decl.node):
        if is_method(member.node) and (method_name := name_of(member.node)):
            yield method_name, member.node


def method_node_id(class_decl: Declaration, method_name: str) -> str:
    return idg.method_id(class_decl.name, method_name, class_decl.file_path)


def code_units(source_file: SourceFile) -> Iterator[CodeUnit]:
    """Every class method and standalone function of a file."""
    for class_decl in source_file.of_kind(cs.NodeKind.CLASS):
        for method_name, node in methods_of(class_decl):
            yield CodeUnit(method_node_id(class_decl, method_name), node, class_decl)
    for function_decl in source_file.of_kind(cs.NodeKind.FUNCTION):
        yield CodeUnit(function_decl.node_id, function_decl.node, None)
