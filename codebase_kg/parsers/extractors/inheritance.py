from __future__ import annotations

from typing import ClassVar

from codebase_kg.core import constants as cs
from codebase_kg.data_models.models import ExtractorOutput

from ..project import ParsedProject
from ..ts.declarations import Declaration, SourceFile
from ..ts.utils import class_decorators, decorator_name
from .base import BaseExtractor
from .structure import interface_bases


def decorator_node_id(decorator: str) -> str:
    return f"{cs.DECORATOR_ID_PREFIX}{decorator}"


class InheritanceExtractor(BaseExtractor):
    """EXTENDS, IMPLEMENTS and DECORATED_BY edges of classes and interfaces."""

    name: ClassVar[str] = "inheritance"

    def process_file(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        output: ExtractorOutput,
    ) -> None:
        for class_decl in source_file.of_kind(cs.NodeKind.CLASS):
            self._class(project, source_file, class_decl, output)
        for interface in source_file.of_kind(cs.NodeKind.INTERFACE):
            for base in interface_bases(project, source_file, interface):
                output.add_relation(
                    interface.node_id, base.node_id, cs.RelationshipType.EXTENDS
                )

    def _class(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        class_decl: Declaration,
        output: ExtractorOutput,
    ) -> None:
        if (base := project.base_class(class_decl)) is not None:
            output.add_relation(
                class_decl.node_id, base.node_id, cs.RelationshipType.EXTENDS
            )

        for heritage in class_decl.node.named_children:
            if heritage.type != cs.TS_CLASS_HERITAGE:
                continue
            for clause in heritage.named_children:
                if clause.type != cs.TS_IMPLEMENTS_CLAUSE:
                    continue
                for type_node in clause.named_children:
                    target = project.resolve_type(project.type_ref(source_file, type_node))
                    if target is not None and target.kind in (
                        cs.NodeKind.INTERFACE,
                        cs.NodeKind.CLASS,
                    ):
                        output.add_relation(
                            class_decl.node_id,
                            target.node_id,
                            cs.RelationshipType.IMPLEMENTS,
                        )

        for decorator in class_decorators(class_decl.node):
            if name := decorator_name(decorator):
                output.add_relation(
                    class_decl.node_id,
                    decorator_node_id(name),
                    cs.RelationshipType.DECORATED_BY,
                )
