from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from codebase_kg.core import constants as cs
from codebase_kg.data_models.types_defs import ASTNode

from .. import id_generator as idg
from ..utils import iter_descendants, safe_decode_text
from .utils import has_keyword, name_of, string_literal_value

type SpecifierResolver = Callable[[str], str | None]

_DECLARATION_KINDS: dict[str, cs.NodeKind] = {
    cs.TS_CLASS_DECLARATION: cs.NodeKind.CLASS,
    cs.TS_ABSTRACT_CLASS_DECLARATION: cs.NodeKind.CLASS,
    cs.TS_CLASS: cs.NodeKind.CLASS,
    cs.TS_FUNCTION_DECLARATION: cs.NodeKind.FUNCTION,
    cs.TS_GENERATOR_FUNCTION_DECLARATION: cs.NodeKind.FUNCTION,
    cs.TS_INTERFACE_DECLARATION: cs.NodeKind.INTERFACE,
    cs.TS_ENUM_DECLARATION: cs.NodeKind.ENUM,
    cs.TS_TYPE_ALIAS_DECLARATION: cs.NodeKind.TYPE_ALIAS,
}

_REFERENCE_NODE_TYPES = frozenset(
    {cs.TS_IDENTIFIER, cs.TS_TYPE_IDENTIFIER, cs.TS_SHORTHAND_PROPERTY_IDENTIFIER}
)
_IMPORT_STOP = frozenset({cs.TS_IMPORT_STATEMENT})


@dataclass(frozen=True)
class Declaration:
    """A top-level declaration of a source file."""

    kind: cs.NodeKind
    name: str
    file_path: str
    node: ASTNode
    exported: bool = False

    @property
    def node_id(self) -> str:
        return idg.declaration_id(self.kind, self.name, self.file_path)


@dataclass(frozen=True)
class ImportBinding:
    """
    One local name introduced by an import statement.

    Attributes:
        local_name (str): The name the binding is visible as in the file.
        imported_name (str): The exported name it refers to (`default` for
            default imports, `*` for namespace imports).
        style (cs.ImportStyle): Named, default or namespace import.
        specifier (str): The module specifier as written.
        target (str | None): Resolved project-relative file, None if external.
        name_node (ASTNode): The identifier that declares the local name.
    """

    local_name: str
    imported_name: str
    style: cs.ImportStyle
    specifier: str
    target: str | None
    name_node: ASTNode


@dataclass(frozen=True)
class ReExport:
    """`export ... from` clause; `names` is None for `export * from`."""

    specifier: str
    target: str | None
    names: dict[str, str] | None


@dataclass
class SourceFile:
    path: str
    name: str
    subtype: str | None
    root: ASTNode
    has_errors: bool = False
    declarations: list[Declaration] = field(default_factory=list)
    imports: list[ImportBinding] = field(default_factory=list)
    import_targets: list[tuple[str, str | None]] = field(default_factory=list)
    export_names: dict[str, str] = field(default_factory=dict)
    re_exports: list[ReExport] = field(default_factory=list)
    default_export: Declaration | None = None
    default_export_name: str | None = None
    referenced_names: frozenset[str] = frozenset()
    _by_name: dict[str, Declaration] = field(default_factory=dict, repr=False)

    @property
    def file_id(self) -> str:
        return idg.file_id(self.path, self.subtype)

    def declaration(self, name: str) -> Declaration | None:
        return self._by_name.get(name)

    def of_kind(self, kind: cs.NodeKind) -> list[Declaration]:
        return [d for d in self.declarations if d.kind == kind]

    def import_binding(self, local_name: str) -> ImportBinding | None:
        return next((b for b in self.imports if b.local_name == local_name), None)

    def default_declaration(self) -> Declaration | None:
        if self.default_export is not None:
            return self.default_export
        if self.default_export_name is not None:
            return self.declaration(self.default_export_name)
        return None

    def _add(self, declaration: Declaration, named: bool = True) -> None:
        self.declarations.append(declaration)
        if named:
            self._by_name.setdefault(declaration.name, declaration)


def index_source_file(
    path: str,
    subtype: str | None,
    root: ASTNode,
    resolve: SpecifierResolver,
) -> SourceFile:
    """
    Indexes the top-level declarations, imports and exports of a parsed file.

    Args:
        path (str): Project-relative path of the file.
        subtype (str | None): File subtype from the file classifier.
        root (ASTNode): The `program` node of the file's syntax tree.
        resolve (SpecifierResolver): Maps an import specifier to a project file.

    Returns:
        SourceFile: The indexed file.
    """
    source_file = SourceFile(
        path=path,
        name=path.rsplit(cs.SEPARATOR_SLASH, 1)[-1],
        subtype=subtype,
        root=root,
        has_errors=root.has_error,
    )
    for statement in root.named_children:
        _index_statement(source_file, statement, resolve, exported=False)
    source_file.referenced_names = _referenced_names(root)
    return source_file


def _referenced_names(root: ASTNode) -> frozenset[str]:
    """Identifier texts used anywhere in the file outside import statements."""
    return frozenset(
        text
        for node in iter_descendants(root, stop_types=_IMPORT_STOP)
        if node.type in _REFERENCE_NODE_TYPES and (text := safe_decode_text(node))
    )


def _index_statement(
    source_file: SourceFile,
    statement: ASTNode,
    resolve: SpecifierResolver,
    exported: bool,
) -> None:
    match statement.type:
        case cs.TS_IMPORT_STATEMENT:
            _index_import(source_file, statement, resolve)
        case cs.TS_EXPORT_STATEMENT:
            _index_export(source_file, statement, resolve)
        case cs.TS_AMBIENT_DECLARATION:
            for child in statement.named_children:
                _index_declaration(source_file, child, exported=True)
        case _:
            _index_declaration(source_file, statement, exported)


def _index_declaration(
    source_file: SourceFile,
    node: ASTNode,
    exported: bool,
    default: bool = False,
) -> list[Declaration]:
    if node.type in cs.VARIABLE_STATEMENT_TYPES:
        found = []
        for declarator in node.named_children:
            if declarator.type != cs.TS_VARIABLE_DECLARATOR:
                continue
            name_node = declarator.child_by_field_name(cs.FIELD_NAME)
            if name_node is None or name_node.type != cs.TS_IDENTIFIER:
                continue
            decl = Declaration(
                cs.NodeKind.VARIABLE,
                safe_decode_text(name_node) or "",
                source_file.path,
                declarator,
                exported,
            )
            source_file._add(decl)
            found.append(decl)
        return found

    if (kind := _DECLARATION_KINDS.get(node.type)) is None:
        return []
    name = name_of(node)
    if name is None and kind != cs.NodeKind.CLASS:
        return []
    decl = Declaration(
        kind, name or cs.ANONYMOUS_CLASS_NAME, source_file.path, node, exported
    )
    source_file._add(decl, named=name is not None)
    if default:
        source_file.default_export = decl
    return [decl]


def _index_import(
    source_file: SourceFile, statement: ASTNode, resolve: SpecifierResolver
) -> None:
    specifier = string_literal_value(statement.child_by_field_name(cs.FIELD_SOURCE))
    if specifier is None:
        return
    target = resolve(specifier)
    source_file.import_targets.append((specifier, target))
    clause = next(
        (c for c in statement.named_children if c.type == cs.TS_IMPORT_CLAUSE), None
    )
    if clause is None:
        return

    def bind(local: ASTNode, imported: str, style: cs.ImportStyle) -> None:
        if (local_name := safe_decode_text(local)) is None:
            return
        source_file.imports.append(
            ImportBinding(local_name, imported, style, specifier, target, local)
        )

    for part in clause.named_children:
        match part.type:
            case cs.TS_IDENTIFIER:
                bind(part, cs.KEYWORD_DEFAULT, cs.ImportStyle.DEFAULT)
            case cs.TS_NAMESPACE_IMPORT:
                ident = next(
                    (c for c in part.named_children if c.type == cs.TS_IDENTIFIER),
                    None,
                )
                if ident is not None:
                    bind(ident, cs.TSCONFIG_WILDCARD, cs.ImportStyle.NAMESPACE)
            case cs.TS_NAMED_IMPORTS:
                for item in part.named_children:
                    if item.type != cs.TS_IMPORT_SPECIFIER:
                        continue
                    name_node = item.child_by_field_name(cs.FIELD_NAME)
                    alias_node = item.child_by_field_name(cs.FIELD_ALIAS)
                    imported = _specifier_name(name_node)
                    if imported is None:
                        continue
                    bind(alias_node or name_node, imported, cs.ImportStyle.NAMED)


def _index_export(
    source_file: SourceFile, statement: ASTNode, resolve: SpecifierResolver
) -> None:
    is_default = has_keyword(statement, cs.KEYWORD_DEFAULT)
    source_node = statement.child_by_field_name(cs.FIELD_SOURCE)
    if source_node is not None:
        specifier = string_literal_value(source_node)
        if specifier is None:
            return
        target = resolve(specifier)
        source_file.import_targets.append((specifier, target))
        names: dict[str, str] | None = None
        for clause in statement.named_children:
            if clause.type == cs.TS_EXPORT_CLAUSE:
                names = _export_clause_names(clause)
            elif clause.type == cs.TS_NAMESPACE_EXPORT:
                names = {}
        source_file.re_exports.append(ReExport(specifier, target, names))
        return

    if (declaration := statement.child_by_field_name(cs.FIELD_DECLARATION)) is not None:
        for decl in _index_declaration(
            source_file, declaration, exported=True, default=is_default
        ):
            source_file.export_names[decl.name] = decl.name
        return

    if (value := statement.child_by_field_name(cs.FIELD_VALUE)) is not None:
        if value.type == cs.TS_IDENTIFIER:
            source_file.default_export_name = safe_decode_text(value)
        else:
            _index_declaration(source_file, value, exported=True, default=True)
        return

    for clause in statement.named_children:
        if clause.type == cs.TS_EXPORT_CLAUSE:
            source_file.export_names.update(_export_clause_names(clause))


def _export_clause_names(clause: ASTNode) -> dict[str, str]:
    """Maps exported name to local name for `{ a, b as c }`."""
    names: dict[str, str] = {}
    for item in clause.named_children:
        if item.type != cs.TS_EXPORT_SPECIFIER:
            continue
        local = _specifier_name(item.child_by_field_name(cs.FIELD_NAME))
        alias = _specifier_name(item.child_by_field_name(cs.FIELD_ALIAS))
        if local is not None:
            names[alias or local] = local
    return names


def _specifier_name(node: ASTNode | None) -> str | None:
    if node is None:
        return None
    if node.type == cs.TS_STRING:
        return string_literal_value(node)
    return safe_decode_text(node)
