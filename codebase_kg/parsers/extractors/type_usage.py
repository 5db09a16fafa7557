from __future__ import annotations

from typing import ClassVar

from codebase_kg.core import constants as cs
from codebase_kg.data_models.models import ExtractorOutput
from codebase_kg.data_models.types_defs import ASTNode

from ..project import ParsedProject, TypeRef
from ..scope import LocalScope
from ..ts.declarations import Declaration, SourceFile
from ..ts.utils import primary_type_name, type_arguments
from ..utils import iter_descendants, safe_decode_text
from .base import BaseExtractor, CodeUnit, code_units

_TYPE_USAGE: dict[cs.NodeKind, cs.RelationshipType] = {
    cs.NodeKind.CLASS: cs.RelationshipType.USES_CLASS,
    cs.NodeKind.INTERFACE: cs.RelationshipType.USES_INTERFACE,
    cs.NodeKind.ENUM: cs.RelationshipType.USES_ENUM,
    cs.NodeKind.TYPE_ALIAS: cs.RelationshipType.USES_TYPE,
}


class TypeUsageExtractor(BaseExtractor):
    """
    Records which project types each method or function refers to.

    Looks at type annotations, value references, property accesses on
    model-typed receivers and `new` expressions, in signatures and bodies.
    Names declared locally (parameters, variables, generic type parameters)
    shadow project declarations.
    """

    name: ClassVar[str] = "type-usage"

    def process_file(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        output: ExtractorOutput,
    ) -> None:
        for unit in code_units(source_file):
            scope = LocalScope(unit.node, source_file)
            for node in iter_descendants(unit.node):
                match node.type:
                    case cs.TS_TYPE_IDENTIFIER | cs.TS_NESTED_TYPE_IDENTIFIER:
                        self._type_reference(project, source_file, unit, scope, node, output)
                    case cs.TS_IDENTIFIER:
                        self._value_reference(project, source_file, unit, scope, node, output)
                    case cs.TS_MEMBER_EXPRESSION:
                        self._property_access(project, source_file, unit, scope, node, output)
                    case cs.TS_NEW_EXPRESSION:
                        self._instantiation(project, source_file, unit, scope, node, output)

    def _type_reference(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        unit: CodeUnit,
        scope: LocalScope,
        node: ASTNode,
        output: ExtractorOutput,
    ) -> None:
        parent = node.parent
        if parent is not None and parent.type == cs.TS_NESTED_TYPE_IDENTIFIER:
            return
        name = safe_decode_text(node) or ""
        if name in scope.type_parameters:
            return
        target = project.resolve_name(source_file, name)
        if target is None or (rel_type := _TYPE_USAGE.get(target.kind)) is None:
            return
        if target.kind == cs.NodeKind.CLASS and self.classifier.is_model(target.name):
            rel_type = cs.RelationshipType.USES_MODEL
        output.add_relation(unit.node_id, target.node_id, rel_type)

    def _value_reference(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        unit: CodeUnit,
        scope: LocalScope,
        node: ASTNode,
        output: ExtractorOutput,
    ) -> None:
        name = safe_decode_text(node) or ""
        if name in scope:
            return
        target = project.resolve_name(source_file, name)
        if target is None:
            return
        if target.kind == cs.NodeKind.CLASS and self.classifier.is_model(target.name):
            output.add_relation(
                unit.node_id, target.node_id, cs.RelationshipType.USES_MODEL
            )
        elif target.kind == cs.NodeKind.ENUM:
            output.add_relation(
                unit.node_id, target.node_id, cs.RelationshipType.USES_ENUM
            )

    def _property_access(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        unit: CodeUnit,
        scope: LocalScope,
        node: ASTNode,
        output: ExtractorOutput,
    ) -> None:
        receiver = node.child_by_field_name(cs.FIELD_OBJECT)
        if receiver is None:
            return
        if receiver.type == cs.TS_IDENTIFIER:
            name = safe_decode_text(receiver) or ""
            if (ref := scope.type_of(name)) is None:
                return
            for model in self._model_types(project, ref, require_model=True):
                output.add_relation(
                    unit.node_id, model.node_id, cs.RelationshipType.USES_MODEL
                )
        elif receiver.type == cs.TS_THIS and unit.owner is not None:
            parent = node.parent
            if parent is None or parent.type != cs.TS_MEMBER_EXPRESSION:
                return
            if parent.child_by_field_name(cs.FIELD_OBJECT) != node:
                return
            member = safe_decode_text(node.child_by_field_name(cs.FIELD_PROPERTY)) or ""
            if not (
                self.classifier.is_repository(member) or self.classifier.is_model(member)
            ):
                return
            ref = project.member_type(unit.owner, member)
            if ref is None:
                return
            for model in self._model_types(project, ref, require_model=False):
                output.add_relation(
                    unit.node_id, model.node_id, cs.RelationshipType.USES_MODEL
                )

    def _model_types(
        self, project: ParsedProject, ref: TypeRef, require_model: bool
    ) -> list[Declaration]:
        """
        Classes a declared type stands for, as far as model usage is concerned.

        Args:
            project (ParsedProject): The project.
            ref (TypeRef): The declared type, e.g. `Repository<UserEntity>`.
            require_model (bool): Whether the type itself must be model-named to
                count; model-named type arguments always count.

        Returns:
            list[Declaration]: The matching project classes.
        """
        found: list[Declaration] = []
        own = project.resolve_type(ref)
        if (
            own is not None
            and own.kind == cs.NodeKind.CLASS
            and (not require_model or self.classifier.is_model(own.name))
        ):
            found.append(own)
        for argument in type_arguments(ref.node):
            if (arg_name := primary_type_name(argument)) is None:
                continue
            target = project.resolve_name(ref.file, arg_name)
            if (
                target is not None
                and target.kind == cs.NodeKind.CLASS
                and self.classifier.is_model(target.name)
            ):
                found.append(target)
        return found

    def _instantiation(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        unit: CodeUnit,
        scope: LocalScope,
        node: ASTNode,
        output: ExtractorOutput,
    ) -> None:
        constructor = node.child_by_field_name(cs.FIELD_CONSTRUCTOR)
        if constructor is None or constructor.type not in (
            cs.TS_IDENTIFIER,
            cs.TS_MEMBER_EXPRESSION,
        ):
            return
        name = safe_decode_text(constructor) or ""
        if name.partition(cs.SEPARATOR_DOT)[0] in scope:
            return
        target = project.resolve_name(source_file, name)
        if target is None or target.kind != cs.NodeKind.CLASS:
            return
        creates_model = self.classifier.is_entity(target.name) or self.classifier.is_model(
            target.name
        )
        output.add_relation(
            unit.node_id,
            target.node_id,
            cs.RelationshipType.CREATES_MODEL
            if creates_model
            else cs.RelationshipType.CREATES_INSTANCE,
        )
