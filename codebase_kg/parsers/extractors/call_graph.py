from __future__ import annotations

from typing import ClassVar

from codebase_kg.core import constants as cs
from codebase_kg.data_models.models import ExtractorOutput
from codebase_kg.data_models.types_defs import ASTNode

from ..project import ParsedProject
from ..scope import LocalScope
from ..ts.declarations import Declaration, SourceFile
from ..utils import iter_descendants, safe_decode_text
from .base import BaseExtractor, CodeUnit, code_units, method_node_id

_CALLABLE_KINDS = frozenset({cs.NodeKind.FUNCTION})


class CallGraphExtractor(BaseExtractor):
    """
    Links methods and functions to the project methods and functions they call.

    Receivers are resolved from declared types only: `this`, class members,
    typed parameters and locals, `new X()` initialisers, classes (static
    calls) and namespace imports. Calls that cannot be resolved this way are
    skipped.
    """

    name: ClassVar[str] = "call-graph"

    def process_file(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        output: ExtractorOutput,
    ) -> None:
        for unit in code_units(source_file):
            scope = LocalScope(unit.node, source_file)
            for node in iter_descendants(unit.node):
                if node.type == cs.TS_CALL_EXPRESSION:
                    self._call(project, source_file, unit, scope, node, output)

    def _call(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        unit: CodeUnit,
        scope: LocalScope,
        call: ASTNode,
        output: ExtractorOutput,
    ) -> None:
        callee = call.child_by_field_name(cs.FIELD_FUNCTION)
        if callee is None:
            return
        match callee.type:
            case cs.TS_IDENTIFIER:
                name = safe_decode_text(callee) or ""
                if name in scope:
                    return
                target = project.resolve_name(source_file, name)
                if target is not None and target.kind in _CALLABLE_KINDS:
                    output.add_relation(
                        unit.node_id, target.node_id, cs.RelationshipType.CALLS
                    )
            case cs.TS_MEMBER_EXPRESSION:
                self._member_call(project, source_file, unit, scope, callee, output)

    def _member_call(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        unit: CodeUnit,
        scope: LocalScope,
        callee: ASTNode,
        output: ExtractorOutput,
    ) -> None:
        receiver = callee.child_by_field_name(cs.FIELD_OBJECT)
        method_name = safe_decode_text(callee.child_by_field_name(cs.FIELD_PROPERTY))
        if receiver is None or not method_name:
            return

        if receiver.type == cs.TS_THIS:
            if unit.owner is not None:
                self._calls_method(project, unit, unit.owner, method_name, output)
            return

        receiver_class: Declaration | None = None
        if receiver.type == cs.TS_MEMBER_EXPRESSION:
            inner = receiver.child_by_field_name(cs.FIELD_OBJECT)
            if inner is None or inner.type != cs.TS_THIS or unit.owner is None:
                return
            member = safe_decode_text(receiver.child_by_field_name(cs.FIELD_PROPERTY))
            if member:
                receiver_class = project.resolve_type(
                    project.member_type(unit.owner, member)
                )
        elif receiver.type == cs.TS_IDENTIFIER:
            name = safe_decode_text(receiver) or ""
            if name in scope:
                receiver_class = project.resolve_type(scope.type_of(name))
            else:
                target = project.resolve_name(
                    source_file, f"{name}{cs.SEPARATOR_DOT}{method_name}"
                )
                if target is not None and target.kind in _CALLABLE_KINDS:
                    output.add_relation(
                        unit.node_id, target.node_id, cs.RelationshipType.CALLS
                    )
                    return
                static_owner = project.resolve_name(source_file, name)
                if static_owner is not None and static_owner.kind == cs.NodeKind.CLASS:
                    self._calls_method(project, unit, static_owner, method_name, output)
                return

        if receiver_class is None or receiver_class.kind != cs.NodeKind.CLASS:
            return
        if self._calls_method(project, unit, receiver_class, method_name, output):
            if unit.owner is not None and unit.owner.node_id != receiver_class.node_id:
                output.add_relation(
                    unit.owner.node_id,
                    receiver_class.node_id,
                    cs.RelationshipType.USES,
                )

    def _calls_method(
        self,
        project: ParsedProject,
        unit: CodeUnit,
        class_decl: Declaration,
        method_name: str,
        output: ExtractorOutput,
    ) -> bool:
        method = project.find_method(class_decl, method_name)
        if method is None:
            return False
        output.add_relation(
            unit.node_id,
            method_node_id(method.owner, method.name),
            cs.RelationshipType.CALLS,
        )
        return True
