from __future__ import annotations

from typing import NamedTuple

from codebase_kg.core import constants as cs
from codebase_kg.data_models.types_defs import ASTNode

from ..utils import safe_decode_text, safe_decode_with_fallback


class ClassMember(NamedTuple):
    """A member of a class body together with the decorators applied to it."""

    node: ASTNode
    decorators: list[ASTNode]


def has_keyword(node: ASTNode, keyword: str) -> bool:
    """Checks for an anonymous keyword token (`static`, `async`...) among children."""
    return any(not child.is_named and child.type == keyword for child in node.children)


def accessibility(node: ASTNode) -> str:
    for child in node.children:
        if child.type == cs.TS_ACCESSIBILITY_MODIFIER:
            return safe_decode_with_fallback(child, cs.VISIBILITY_PUBLIC)
    return cs.VISIBILITY_PUBLIC


def name_of(node: ASTNode) -> str | None:
    """
    Returns the declared name of a node, with quotes stripped from string keys.

    Args:
        node (ASTNode): Any node with a `name` field.

    Returns:
        str | None: The name, or None if the node has no name field.
    """
    name_node = node.child_by_field_name(cs.FIELD_NAME)
    if name_node is None:
        return None
    if name_node.type == cs.TS_STRING:
        return string_literal_value(name_node)
    return safe_decode_text(name_node)


def own_decorators(node: ASTNode) -> list[ASTNode]:
    return [child for child in node.children if child.type == cs.TS_DECORATOR]


def class_decorators(class_node: ASTNode) -> list[ASTNode]:
    """Decorators of a class, including those written before `export`."""
    decorators = own_decorators(class_node)
    parent = class_node.parent
    if parent is not None and parent.type == cs.TS_EXPORT_STATEMENT:
        decorators = own_decorators(parent) + decorators
    return decorators


def class_members(class_node: ASTNode) -> list[ClassMember]:
    """
    Lists the methods and fields of a class body.

    Method decorators are siblings that precede the method inside the class
    body, field decorators are children of the field; both end up attached to
    their member here.

    Args:
        class_node (ASTNode): A class declaration or class expression.

    Returns:
        list[ClassMember]: Members in source order.
    """
    body = class_node.child_by_field_name(cs.FIELD_BODY)
    if body is None:
        return []
    members: list[ClassMember] = []
    pending: list[ASTNode] = []
    for child in body.named_children:
        match child.type:
            case cs.TS_DECORATOR:
                pending.append(child)
            case cs.TS_METHOD_DEFINITION | cs.TS_ABSTRACT_METHOD_SIGNATURE:
                members.append(ClassMember(child, pending + own_decorators(child)))
                pending = []
            case cs.TS_PUBLIC_FIELD_DEFINITION:
                members.append(ClassMember(child, pending + own_decorators(child)))
                pending = []
            case _:
                pending = []
    return members


def is_constructor(member: ASTNode) -> bool:
    return (
        member.type == cs.TS_METHOD_DEFINITION
        and name_of(member) == cs.KEYWORD_CONSTRUCTOR
    )


def is_accessor(member: ASTNode) -> bool:
    name_node = member.child_by_field_name(cs.FIELD_NAME)
    for child in member.children:
        if child == name_node:
            return False
        if not child.is_named and child.type in cs.ACCESSOR_KEYWORDS:
            return True
    return False


def is_method(member: ASTNode) -> bool:
    return (
        member.type in cs.METHOD_NODE_TYPES
        and not is_constructor(member)
        and not is_accessor(member)
    )


def constructors(class_node: ASTNode) -> list[ASTNode]:
    """Constructor implementations of a class, overload signatures excluded."""
    return [
        member.node
        for member in class_members(class_node)
        if is_constructor(member.node)
    ]


def annotated_type(node: ASTNode, field: str = cs.FIELD_TYPE) -> ASTNode | None:
    """
    Returns the type node behind a `: T` annotation stored in `field`.

    Args:
        node (ASTNode): A parameter, field, variable declarator or signature.
        field (str): The field holding the type annotation.

    Returns:
        ASTNode | None: The annotated type, or None when there is no annotation.
    """
    annotation = node.child_by_field_name(field)
    if annotation is None:
        return None
    if annotation.type == cs.TS_TYPE_ANNOTATION:
        return annotation.named_children[0] if annotation.named_children else None
    return annotation


def type_text(type_node: ASTNode | None, default: str) -> str:
    return safe_decode_with_fallback(type_node, default) if type_node else default


def primary_type_name(type_node: ASTNode | None) -> str | None:
    """
    Names the declaration a type expression refers to.

    `Foo`, `Foo<Bar>` and `ns.Foo` yield `Foo`, `Foo` and `ns.Foo`; unions,
    arrays, literals and built-in types yield None.

    Args:
        type_node (ASTNode | None): A type expression.

    Returns:
        str | None: The referenced type name, if any.
    """
    if type_node is None:
        return None
    match type_node.type:
        case cs.TS_TYPE_IDENTIFIER | cs.TS_NESTED_TYPE_IDENTIFIER:
            return safe_decode_text(type_node)
        case cs.TS_GENERIC_TYPE:
            return primary_type_name(type_node.child_by_field_name(cs.FIELD_NAME))
        case _:
            return None


def type_arguments(type_node: ASTNode | None) -> list[ASTNode]:
    if type_node is None or type_node.type != cs.TS_GENERIC_TYPE:
        return []
    args = type_node.child_by_field_name(cs.FIELD_TYPE_ARGUMENTS)
    if args is None:
        args = next(
            (c for c in type_node.children if c.type == cs.TS_TYPE_ARGUMENTS), None
        )
    return list(args.named_children) if args is not None else []


def parameter_nodes(function_node: ASTNode) -> list[ASTNode]:
    params = function_node.child_by_field_name(cs.FIELD_PARAMETERS)
    if params is None:
        return []
    return [p for p in params.named_children if p.type in cs.PARAMETER_NODE_TYPES]


def parameter_name(param: ASTNode) -> str | None:
    pattern = param.child_by_field_name(cs.FIELD_PATTERN)
    if pattern is None:
        return None
    if pattern.type == cs.TS_REST_PATTERN:
        for child in pattern.named_children:
            if child.type == cs.TS_IDENTIFIER:
                return safe_decode_text(child)
    return safe_decode_text(pattern)


def is_parameter_property(param: ASTNode) -> bool:
    """True for constructor parameters that also declare a class member."""
    return any(
        child.type == cs.TS_ACCESSIBILITY_MODIFIER
        or (not child.is_named and child.type == cs.KEYWORD_READONLY)
        for child in param.children
    )


def decorator_call(decorator: ASTNode) -> ASTNode | None:
    expression = decorator.named_children[0] if decorator.named_children else None
    if expression is not None and expression.type == cs.TS_CALL_EXPRESSION:
        return expression
    return None


def decorator_name(decorator: ASTNode) -> str | None:
    """Name of a decorator: `@Foo`, `@Foo()` and `@ns.Foo()` all yield `Foo`."""
    if not decorator.named_children:
        return None
    expression = decorator.named_children[0]
    if expression.type == cs.TS_CALL_EXPRESSION:
        expression = expression.child_by_field_name(cs.FIELD_FUNCTION)
    if expression is None:
        return None
    match expression.type:
        case cs.TS_IDENTIFIER:
            return safe_decode_text(expression)
        case cs.TS_MEMBER_EXPRESSION:
            return safe_decode_text(expression.child_by_field_name(cs.FIELD_PROPERTY))
        case _:
            return None


def decorator_arguments(decorator: ASTNode) -> list[ASTNode]:
    call = decorator_call(decorator)
    if call is None:
        return []
    args = call.child_by_field_name(cs.FIELD_ARGUMENTS)
    return list(args.named_children) if args is not None else []


def find_decorator(decorators: list[ASTNode], names: frozenset[str]) -> ASTNode | None:
    return next((d for d in decorators if decorator_name(d) in names), None)


def string_literal_value(node: ASTNode | None) -> str | None:
    """Value of a string or substitution-free template literal, else None."""
    if node is None:
        return None
    text = safe_decode_text(node)
    if text is None or len(text) < 2:
        return None
    if node.type == cs.TS_STRING:
        return text[1:-1]
    if node.type == cs.TS_TEMPLATE_STRING and not any(
        c.type == cs.TS_TEMPLATE_SUBSTITUTION for c in node.named_children
    ):
        return text[1:-1]
    return None


def object_string_property(node: ASTNode, key: str) -> str | None:
    """Reads `{ key: 'value' }` from an object literal."""
    if node.type != cs.TS_OBJECT:
        return None
    for pair in node.named_children:
        if pair.type != cs.TS_PAIR:
            continue
        key_node = pair.child_by_field_name(cs.FIELD_KEY)
        key_text = (
            string_literal_value(key_node)
            if key_node is not None and key_node.type == cs.TS_STRING
            else safe_decode_text(key_node)
        )
        if key_text == key:
            return string_literal_value(pair.child_by_field_name(cs.FIELD_VALUE))
    return None
