from __future__ import annotations

from codebase_kg.core import constants as cs
from codebase_kg.data_models.types_defs import ASTNode

from .project import TypeRef, initializer_type
from .ts.declarations import SourceFile
from .ts.utils import annotated_type, parameter_name, primary_type_name
from .utils import iter_descendants, safe_decode_text


class LocalScope:
    """
    Names declared inside one method or function.

    Parameters, local variables, catch bindings, nested callback parameters
    and generic type parameters shadow project declarations of the same name.
    Bindings whose declared type names a type carry a `TypeRef`.
    """

    def __init__(self, function_node: ASTNode, source_file: SourceFile) -> None:
        self._types: dict[str, TypeRef | None] = {}
        self.type_parameters: set[str] = set()
        for node in iter_descendants(function_node):
            match node.type:
                case cs.TS_REQUIRED_PARAMETER | cs.TS_OPTIONAL_PARAMETER:
                    if name := parameter_name(node):
                        self._bind(name, source_file, annotated_type(node))
                case cs.TS_VARIABLE_DECLARATOR:
                    name_node = node.child_by_field_name(cs.FIELD_NAME)
                    if name_node is None or name_node.type != cs.TS_IDENTIFIER:
                        continue
                    name = safe_decode_text(name_node) or ""
                    type_node = annotated_type(node)
                    if type_node is not None:
                        self._bind(name, source_file, type_node)
                    else:
                        self._types.setdefault(
                            name, initializer_type(source_file, node)
                        )
                case cs.TS_CATCH_CLAUSE:
                    param = node.child_by_field_name(cs.FIELD_PARAMETER)
                    if param is not None and param.type == cs.TS_IDENTIFIER:
                        self._types.setdefault(safe_decode_text(param) or "", None)
                case cs.TS_ARROW_FUNCTION:
                    param = node.child_by_field_name(cs.FIELD_PARAMETER)
                    if param is not None and param.type == cs.TS_IDENTIFIER:
                        self._types.setdefault(safe_decode_text(param) or "", None)
                case cs.TS_TYPE_PARAMETER:
                    if name := safe_decode_text(node.child_by_field_name(cs.FIELD_NAME)):
                        self.type_parameters.add(name)

    def _bind(
        self, name: str, source_file: SourceFile, type_node: ASTNode | None
    ) -> None:
        type_name = primary_type_name(type_node)
        ref = (
            TypeRef(type_name, type_node, source_file)
            if type_name is not None and type_node is not None
            else None
        )
        self._types.setdefault(name, ref)

    def __contains__(self, name: str) -> bool:
        return name in self._types

    def type_of(self, name: str) -> TypeRef | None:
        return self._types.get(name)
