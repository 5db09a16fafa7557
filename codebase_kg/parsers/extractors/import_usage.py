from __future__ import annotations

from typing import ClassVar

from codebase_kg.core import constants as cs
from codebase_kg.data_models.models import ExtractorOutput

from ..project import ParsedProject
from ..ts.declarations import Declaration, ImportBinding, SourceFile
from ..ts.utils import annotated_type, class_members
from .base import BaseExtractor
from .dependency_injection import injected_classes

_IMPORT_EDGES: dict[cs.NodeKind, cs.RelationshipType] = {
    cs.NodeKind.CLASS: cs.RelationshipType.IMPORTS_CLASS,
    cs.NodeKind.INTERFACE: cs.RelationshipType.IMPORTS_INTERFACE,
    cs.NodeKind.ENUM: cs.RelationshipType.IMPORTS_ENUM,
    cs.NodeKind.FUNCTION: cs.RelationshipType.IMPORTS_FUNCTION,
    cs.NodeKind.TYPE_ALIAS: cs.RelationshipType.IMPORTS_TYPE,
    cs.NodeKind.VARIABLE: cs.RelationshipType.IMPORTS_VARIABLE,
}


class ImportUsageExtractor(BaseExtractor):
    """
    File-level import edges and class-level cross-file dependencies.

    Every import of a project file yields `IMPORTS`; bindings that are
    referenced in the importing file additionally yield an edge typed by what
    they import. Imports of external packages are ignored.
    """

    name: ClassVar[str] = "import-usage"

    def process_file(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        output: ExtractorOutput,
    ) -> None:
        file_id = source_file.file_id
        for _, target in source_file.import_targets:
            if target is None or target == source_file.path or target not in project.files:
                continue
            output.add_relation(
                file_id, project.files[target].file_id, cs.RelationshipType.IMPORTS
            )

        for binding in source_file.imports:
            if (
                binding.target not in project.files
                or binding.local_name not in source_file.referenced_names
            ):
                continue
            self._used_binding(project, source_file, binding, output)

        for class_decl in source_file.of_kind(cs.NodeKind.CLASS):
            self._class_dependencies(project, source_file, class_decl, output)

    def _used_binding(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        binding: ImportBinding,
        output: ExtractorOutput,
    ) -> None:
        target_file = project.files[binding.target].file_id
        match binding.style:
            case cs.ImportStyle.NAMESPACE:
                output.add_relation(
                    source_file.file_id, target_file, cs.RelationshipType.IMPORTS_NAMESPACE
                )
                return
            case cs.ImportStyle.DEFAULT:
                output.add_relation(
                    source_file.file_id, target_file, cs.RelationshipType.IMPORTS_DEFAULT
                )
        declaration = project.resolve_binding(binding)
        if declaration is not None and (rel_type := _IMPORT_EDGES.get(declaration.kind)):
            output.add_relation(source_file.file_id, declaration.node_id, rel_type)

    def _class_dependencies(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        class_decl: Declaration,
        output: ExtractorOutput,
    ) -> None:
        for target in injected_classes(project, source_file, class_decl):
            if target.file_path != source_file.path:
                output.add_relation(
                    class_decl.node_id, target.node_id, cs.RelationshipType.DEPENDS_ON
                )
        for member in class_members(class_decl.node):
            if member.node.type != cs.TS_PUBLIC_FIELD_DEFINITION:
                continue
            target = project.resolve_type(
                project.type_ref(source_file, annotated_type(member.node))
            )
            if (
                target is not None
                and target.kind == cs.NodeKind.CLASS
                and target.file_path != source_file.path
            ):
                output.add_relation(
                    class_decl.node_id,
                    target.node_id,
                    cs.RelationshipType.HAS_DEPENDENCY,
                )
