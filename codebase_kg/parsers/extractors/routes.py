from __future__ import annotations

from typing import ClassVar

from codebase_kg.core import constants as cs
from codebase_kg.data_models.models import ExtractorOutput, KGNode
from codebase_kg.data_models.types_defs import ASTNode

from .. import id_generator as idg
from ..project import ParsedProject
from ..ts.declarations import SourceFile
from ..ts.utils import (
    class_decorators,
    class_members,
    decorator_arguments,
    decorator_name,
    find_decorator,
    is_method,
    name_of,
    object_string_property,
    string_literal_value,
)
from .base import BaseExtractor, method_node_id

_CONTROLLER_DECORATORS = frozenset({cs.CONTROLLER_DECORATOR})
_VERB_DECORATORS = frozenset(verb.value for verb in cs.HttpVerb)


def decorator_path(decorator: ASTNode) -> str:
    """Path argument of `@Get('x')` or `@Controller({ path: 'x' })`, else ''."""
    arguments = decorator_arguments(decorator)
    if not arguments:
        return ""
    first = arguments[0]
    if (value := string_literal_value(first)) is not None:
        return value
    return object_string_property(first, cs.ROUTE_PATH_KEY) or ""


def join_route_path(*segments: str) -> str:
    """
    Joins route segments into a normalised absolute path.

    Empty segments and repeated slashes are dropped: `("/users/", "", ":id")`
    becomes `/users/:id`, and no segments at all give `/`.
    """
    parts = [
        part
        for segment in segments
        for part in segment.split(cs.SEPARATOR_SLASH)
        if part
    ]
    return cs.SEPARATOR_SLASH + cs.SEPARATOR_SLASH.join(parts)


class RouteExtractor(BaseExtractor):
    """Route nodes for the HTTP handlers of controller classes."""

    name: ClassVar[str] = "routes"

    def process_file(
        self,
        project: ParsedProject,
        source_file: SourceFile,
        output: ExtractorOutput,
    ) -> None:
        for class_decl in source_file.of_kind(cs.NodeKind.CLASS):
            controller = find_decorator(
                class_decorators(class_decl.node), _CONTROLLER_DECORATORS
            )
            if controller is None:
                continue
            base_path = decorator_path(controller)
            for member in class_members(class_decl.node):
                if not is_method(member.node):
                    continue
                verb_decorator = find_decorator(member.decorators, _VERB_DECORATORS)
                handler = name_of(member.node)
                if verb_decorator is None or not handler:
                    continue
                http_method = (decorator_name(verb_decorator) or "").upper()
                full_path = join_route_path(base_path, decorator_path(verb_decorator))
                route_id = idg.route_id(http_method, full_path, source_file.path)
                output.add_node(
                    KGNode(
                        id=route_id,
                        kind=cs.NodeKind.ROUTE,
                        name=f"{http_method} {full_path}",
                        file_path=source_file.path,
                        meta={
                            cs.META_HTTP_METHOD: http_method,
                            cs.META_PATH: full_path,
                            cs.META_CONTROLLER: class_decl.name,
                            cs.META_HANDLER: handler,
                        },
                    )
                )
                output.add_relation(
                    method_node_id(class_decl, handler),
                    route_id,
                    cs.RelationshipType.HANDLES_ROUTE,
                )
