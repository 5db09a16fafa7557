from __future__ import annotations

from typing import ClassVar

from codebase_kg.core import constants as cs
from codebase_kg.data_models.models import ExtractorOutput, KGNode
from codebase_kg.data_models.types_defs import (
    ASTNode,
    MetaDict,
    MetaValue,
    ParameterSignature,
)

from .. import id_generator as idg
from ..project import ParsedProject
from ..ts.declarations import Declaration, SourceFile
from ..ts.utils import (
    ClassMember,
    accessibility,
    annotated_type,
    class_decorators,
    class_members,
    decorator_name,
    has_keyword,
    is_method,
    name_of,
    parameter_name,
    parameter_nodes,
    string_literal_value,
    type_text,
)
from ..utils import safe_decode_text, safe_decode_with_fallback
from .base import BaseExtractor, method_node_id

_TYPE_TARGET_KINDS = frozenset(
    {
        cs.NodeKind.CLASS,
        cs.NodeKind.INTERFACE,
        cs.NodeKind.ENUM,
        cs.NodeKind.TYPE_ALIAS,
    }
)


def parameter_signatures(function_node: ASTNode) -> list[ParameterSignature]:
    return [
        ParameterSignature(
            name=parameter_name(p) or "",
            type=type_text(annotated_type(p), cs.DEFAULT_VALUE_TYPE),
        )
        for p in parameter_nodes(function_node)
    ]


def return_type(function_node: ASTNode) -> str:
    return type_text(
        annotated_type(function_node, cs.FIELD_RETURN_TYPE), cs.DEFAULT_RETURN_TYPE
    )


def decorator_names(decorators: list[ASTNode]) -> list[str]:
    return [name for d in decorators if (name := decorator_name(d))]


def inferred_value_type(declarator: ASTNode) -> str:
    """Declared type of a variable, or the type of a literal initializer."""
    if (type_node := annotated_type(declarator)) is not None:
        return safe_decode_with_fallback(type_node, cs.DEFAULT_VALUE_TYPE)
    value = declarator.child_by_field_name(cs.FIELD_VALUE)
    if value is None:
        return cs.DEFAULT_VALUE_TYPE
    match value.type:
        case cs.TS_NUMBER:
            return cs.LITERAL_TYPE_NUMBER
        case cs.TS_STRING | cs.TS_TEMPLATE_STRING:
            return cs.LITERAL_TYPE_STRING
        case cs.TS_TRUE | cs.TS_FALSE:
            return cs.LITERAL_TYPE_BOOLEAN
        case cs.TS_NEW_EXPRESSION:
            return safe_decode_with_fallback(
                value.child_by_field_name(cs.FIELD_CONSTRUCTOR), cs.DEFAULT_VALUE_TYPE
            )
        case _:
            return cs.DEFAULT_VALUE_TYPE


def _number_literal(node: ASTNode | None) -> int | float | None:
    if node is None:
        return None
    if node.type == cs.TS_UNARY_EXPRESSION and node.named_children:
        operand = _number_literal(node.named_children[0])
        text = safe_decode_text(node) or ""
        if operand is not None and text.startswith("-"):
            return -operand
        return operand if text.startswith("+") else None
    if node.type != cs.TS_NUMBER:
        return None
    text = (safe_decode_text(node) or "").replace("_", "")
    try:
        return int(text, 0)
    except ValueError:
        try:
            return float(text)
        except ValueError:
            return None


def enum_member_values(enum_node: ASTNode) -> list[tuple[str, MetaValue, ASTNode]]:
    """
    Lists enum members with their values as TypeScript assigns them.

    Members without an initializer continue numbering from the previous numeric
    member (starting at 0); after a string or computed member the value is
    unknown and reported as None.

    Args:
        enum_node (ASTNode): An `enum_declaration` node.

    Returns:
        list[tuple[str, MetaValue, ASTNode]]: `(name, value, member node)` triples.
    """
    body = enum_node.child_by_field_name(cs.FIELD_BODY)
    if body is None:
        return []
    members: list[tuple[str, MetaValue, ASTNode]] = []
    next_value: int | float | None = 0
    for member in body.named_children:
        match member.type:
            case cs.TS_PROPERTY_IDENTIFIER | cs.TS_STRING:
                name_node, value_node = member, None
            case cs.TS_ENUM_ASSIGNMENT:
                name_node = member.child_by_field_name(cs.FIELD_NAME)
                value_node = member.child_by_field_name(cs.FIELD_VALUE)
            case _:
                continue
        if name_node is None:
            continue
        name = (
            string_literal_value(name_node)
            if name_node.type == cs.TS_STRING
            else safe_decode_text(name_node)
        )
        if not name:
            continue
        value: MetaValue
        if value_node is None:
            value = next_value
        elif (number := _number_literal(value_node)) is not None:
            value = number
        else:
            value = string_literal_value(value_node)
        next_value = value + 1 if isinstance(value, int | float) else None
        members.append((name, value, member))
    return members


class StructureExtractor(BaseExtractor):
    """Emits the declaration nodes of every file and their containment edges."""

    name: ClassVar[str] = "structure"

    def process_file(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        output: ExtractorOutput,
    ) -> None:
        file_meta: MetaDict = {}
        if source_file.subtype:
            file_meta[cs.META_SUBTYPE] = source_file.subtype
        file_meta[cs.META_EXTENSION] = _extension(source_file.name)
        output.add_node(
            KGNode(
                id=source_file.file_id,
                kind=cs.NodeKind.FILE,
                name=source_file.name,
                file_path=source_file.path,
                subtype=source_file.subtype,
                meta=file_meta,
            )
        )

        for decl in source_file.declarations:
            match decl.kind:
                case cs.NodeKind.CLASS:
                    self._class(project, source_file, decl, output)
                case cs.NodeKind.FUNCTION:
                    self._declare(
                        source_file,
                        decl,
                        {
                            cs.META_IS_ASYNC: has_keyword(decl.node, cs.KEYWORD_ASYNC),
                            cs.META_IS_EXPORTED: decl.exported,
                            cs.META_RETURN_TYPE: return_type(decl.node),
                            cs.META_PARAMETERS: parameter_signatures(decl.node),
                            cs.META_SOURCE_CODE: safe_decode_text(decl.node),
                        },
                        output,
                    )
                case cs.NodeKind.INTERFACE:
                    self._interface(project, source_file, decl, output)
                case cs.NodeKind.ENUM:
                    self._enum(source_file, decl, output)
                case cs.NodeKind.TYPE_ALIAS:
                    self._declare(
                        source_file,
                        decl,
                        {
                            cs.META_IS_EXPORTED: decl.exported,
                            cs.META_DEFINITION: safe_decode_text(
                                decl.node.child_by_field_name(cs.FIELD_VALUE)
                            ),
                            cs.META_SOURCE_CODE: safe_decode_text(decl.node),
                        },
                        output,
                    )
                case cs.NodeKind.VARIABLE:
                    statement = decl.node.parent
                    self._declare(
                        source_file,
                        decl,
                        {
                            cs.META_IS_EXPORTED: decl.exported,
                            cs.META_TYPE: inferred_value_type(decl.node),
                            cs.META_DECLARATION_TYPE: _declaration_keyword(statement),
                            cs.META_SOURCE_CODE: safe_decode_text(decl.node),
                        },
                        output,
                    )

    def _declare(
        self,
        source_file: SourceFile,
        decl: Declaration,
        meta: MetaDict,
        output: ExtractorOutput,
    ) -> None:
        output.add_node(
            KGNode(
                id=decl.node_id,
                kind=decl.kind,
                name=decl.name,
                file_path=source_file.path,
                meta=meta,
            )
        )
        output.add_relation(
            source_file.file_id, decl.node_id, cs.RelationshipType.DECLARES
        )

    def _uses_type(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        from_id: str,
        type_node: ASTNode | None,
        output: ExtractorOutput,
    ) -> None:
        target = project.resolve_type(project.type_ref(source_file, type_node))
        if target is not None and target.kind in _TYPE_TARGET_KINDS:
            output.add_relation(from_id, target.node_id, cs.RelationshipType.USES_TYPE)

    def _class(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        decl: Declaration,
        output: ExtractorOutput,
    ) -> None:
        self._declare(
            source_file,
            decl,
            {
                cs.META_IS_EXPORTED: decl.exported,
                cs.META_IS_ABSTRACT: decl.node.type
                == cs.TS_ABSTRACT_CLASS_DECLARATION,
                cs.META_DECORATORS: decorator_names(class_decorators(decl.node)),
            },
            output,
        )
        for member in class_members(decl.node):
            node = member.node
            member_name = name_of(node)
            if not member_name:
                continue
            if is_method(node):
                self._method(project, source_file, decl, member_name, member, output)
            elif node.type == cs.TS_PUBLIC_FIELD_DEFINITION:
                prop_id = idg.property_id(decl.name, member_name, source_file.path)
                type_node = annotated_type(node)
                output.add_node(
                    KGNode(
                        id=prop_id,
                        kind=cs.NodeKind.PROPERTY,
                        name=member_name,
                        file_path=source_file.path,
                        parent_id=decl.node_id,
                        meta={
                            cs.META_TYPE: type_text(type_node, cs.DEFAULT_VALUE_TYPE),
                            cs.META_IS_STATIC: has_keyword(node, cs.KEYWORD_STATIC),
                            cs.META_IS_READONLY: has_keyword(node, cs.KEYWORD_READONLY),
                            cs.META_VISIBILITY: accessibility(node),
                            cs.META_DECORATORS: decorator_names(member.decorators),
                            cs.META_SOURCE_CODE: safe_decode_text(node),
                        },
                    )
                )
                output.add_relation(
                    decl.node_id, prop_id, cs.RelationshipType.HAS_PROPERTY
                )
                self._uses_type(project, source_file, prop_id, type_node, output)

    def _method(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        class_decl: Declaration,
        method_name: str,
        member: ClassMember,
        output: ExtractorOutput,
    ) -> None:
        node = member.node
        method_id = method_node_id(class_decl, method_name)
        output.add_node(
            KGNode(
                id=method_id,
                kind=cs.NodeKind.METHOD,
                name=method_name,
                file_path=source_file.path,
                parent_id=class_decl.node_id,
                meta={
                    cs.META_IS_ASYNC: has_keyword(node, cs.KEYWORD_ASYNC),
                    cs.META_IS_STATIC: has_keyword(node, cs.KEYWORD_STATIC),
                    cs.META_IS_ABSTRACT: node.type == cs.TS_ABSTRACT_METHOD_SIGNATURE,
                    cs.META_VISIBILITY: accessibility(node),
                    cs.META_RETURN_TYPE: return_type(node),
                    cs.META_PARAMETERS: parameter_signatures(node),
                    cs.META_DECORATORS: decorator_names(member.decorators),
                    cs.META_SOURCE_CODE: safe_decode_text(node),
                },
            )
        )
        output.add_relation(
            class_decl.node_id, method_id, cs.RelationshipType.HAS_METHOD
        )

        for param in parameter_nodes(node):
            param_name = parameter_name(param)
            if not param_name:
                continue
            param_id = idg.parameter_id(method_id, param_name, source_file.path)
            type_node = annotated_type(param)
            output.add_node(
                KGNode(
                    id=param_id,
                    kind=cs.NodeKind.PARAMETER,
                    name=param_name,
                    file_path=source_file.path,
                    parent_id=method_id,
                    meta={
                        cs.META_TYPE: type_text(type_node, cs.DEFAULT_VALUE_TYPE),
                        cs.META_OPTIONAL: param.type == cs.TS_OPTIONAL_PARAMETER,
                        cs.META_SOURCE_CODE: safe_decode_text(param),
                    },
                )
            )
            output.add_relation(method_id, param_id, cs.RelationshipType.HAS_PARAMETER)
            self._uses_type(project, source_file, param_id, type_node, output)

    def _interface(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        decl: Declaration,
        output: ExtractorOutput,
    ) -> None:
        properties: list[MetaValue] = []
        body = decl.node.child_by_field_name(cs.FIELD_BODY)
        for member in body.named_children if body is not None else []:
            if member.type == cs.TS_PROPERTY_SIGNATURE and (
                prop_name := name_of(member)
            ):
                properties.append(
                    {
                        cs.META_NAME: prop_name,
                        cs.META_TYPE: type_text(
                            annotated_type(member), cs.DEFAULT_VALUE_TYPE
                        ),
                    }
                )
        self._declare(
            source_file,
            decl,
            {
                cs.META_IS_EXPORTED: decl.exported,
                cs.META_PROPERTIES: properties,
                cs.META_SOURCE_CODE: safe_decode_text(decl.node),
            },
            output,
        )
        for base in interface_bases(project, source_file, decl):
            output.add_relation(decl.node_id, base.node_id, cs.RelationshipType.EXTENDS)

    def _enum(
        self, source_file: SourceFile, decl: Declaration, output: ExtractorOutput
    ) -> None:
        self._declare(
            source_file,
            decl,
            {
                cs.META_IS_EXPORTED: decl.exported,
                cs.META_IS_CONST: has_keyword(decl.node, cs.KEYWORD_CONST),
            },
            output,
        )
        for member_name, value, member in enum_member_values(decl.node):
            member_id = idg.enum_member_id(decl.name, member_name, source_file.path)
            output.add_node(
                KGNode(
                    id=member_id,
                    kind=cs.NodeKind.ENUM_MEMBER,
                    name=member_name,
                    file_path=source_file.path,
                    parent_id=decl.node_id,
                    meta={
                        cs.META_VALUE: value,
                        cs.META_SOURCE_CODE: safe_decode_text(member),
                    },
                )
            )
            output.add_relation(decl.node_id, member_id, cs.RelationshipType.HAS_MEMBER)


def interface_bases(
    project: ParsedProject, source_file: SourceFile, decl: Declaration
) -> list[Declaration]:
    """Project interfaces (or classes) named in an interface's `extends` clause."""
    bases: list[Declaration] = []
    for clause in decl.node.named_children:
        if clause.type != cs.TS_EXTENDS_TYPE_CLAUSE:
            continue
        for type_node in clause.named_children:
            base = project.resolve_type(project.type_ref(source_file, type_node))
            if base is not None and base.kind in (
                cs.NodeKind.INTERFACE,
                cs.NodeKind.CLASS,
            ):
                bases.append(base)
    return bases


def _extension(file_name: str) -> str:
    if file_name.endswith(cs.DECLARATION_SUFFIX):
        return cs.DECLARATION_SUFFIX
    _, dot, ext = file_name.rpartition(cs.SEPARATOR_DOT)
    return f"{dot}{ext}" if dot else ""


def _declaration_keyword(statement: ASTNode | None) -> str:
    if statement is not None:
        for child in statement.children:
            if not child.is_named and child.type in cs.DECLARATION_KEYWORDS:
                return child.type
    return cs.KEYWORD_CONST
