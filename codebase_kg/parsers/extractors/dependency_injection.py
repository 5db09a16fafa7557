from __future__ import annotations

from collections.abc import Iterator
from typing import ClassVar

from codebase_kg.core import constants as cs
from codebase_kg.data_models.models import ExtractorOutput

from ..project import ParsedProject
from ..ts.declarations import Declaration, SourceFile
from ..ts.utils import annotated_type, constructors, parameter_nodes
from .base import BaseExtractor


def injected_classes(
    project: ParsedProject, source_file: SourceFile, class_decl: Declaration
) -> Iterator[Declaration]:
    """Project classes named as parameter types of the first constructor."""
    for ctor in constructors(class_decl.node)[:1]:
        for param in parameter_nodes(ctor):
            target = project.resolve_type(
                project.type_ref(source_file, annotated_type(param))
            )
            if target is not None and target.kind == cs.NodeKind.CLASS:
                yield target


class DependencyInjectionExtractor(BaseExtractor):
    name: ClassVar[str] = "dependency-injection"

    def process_file(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        output: ExtractorOutput,
    ) -> None:
        for class_decl in source_file.of_kind(cs.NodeKind.CLASS):
            for target in injected_classes(project, source_file, class_decl):
                output.add_relation(
                    class_decl.node_id, target.node_id, cs.RelationshipType.INJECTS
                )
