"""
The parsed, symbol-resolving view of a TypeScript project.

`load_project` parses every source file under the project's source root once
and indexes its declarations, imports and exports. The resulting
`ParsedProject` is never mutated afterwards, so extractors may read it from
several threads. Symbol resolution is syntactic: names are looked up in the
file's own declarations, then through its imports and the exporting file's
export lists and re-exports. There is no type checker behind it.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import NamedTuple

from loguru import logger

from codebase_kg.core import constants as cs
from codebase_kg.core import logs as ls
from codebase_kg.core.config import settings
from codebase_kg.data_models.types_defs import ASTNode
from codebase_kg.infrastructure import exceptions as ex
from codebase_kg.infrastructure.parser_loader import create_parser
from codebase_kg.utils.path_utils import iter_source_files, relative_posix

from .file_classifier import detect_file_subtype
from .ts.declarations import Declaration, ImportBinding, SourceFile, index_source_file
from .ts.module_resolution import ModuleResolver, load_path_aliases
from .ts.utils import (
    annotated_type,
    class_members,
    constructors,
    is_method,
    is_parameter_property,
    name_of,
    parameter_name,
    parameter_nodes,
    primary_type_name,
)
from .utils import safe_decode_text


class TypeRef(NamedTuple):
    """A type expression together with the file its names are resolved in."""

    name: str
    node: ASTNode
    file: SourceFile


class MethodRef(NamedTuple):
    owner: Declaration
    node: ASTNode
    name: str


class ParsedProject:
    """
    Read-only view over the parsed source files of one project.

    Attributes:
        root (Path): The project directory.
        source_root (Path): The directory whose files were parsed.
        files (Mapping[str, SourceFile]): Files keyed by project-relative path.
    """

    def __init__(
        self, root: Path, source_root: Path, files: Mapping[str, SourceFile]
    ) -> None:
        self.root = root
        self.source_root = source_root
        self.files: Mapping[str, SourceFile] = MappingProxyType(dict(files))

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self) -> Iterator[SourceFile]:
        return iter(self.files.values())

    def file_of(self, declaration: Declaration) -> SourceFile:
        return self.files[declaration.file_path]

    def resolve_name(self, source_file: SourceFile, name: str) -> Declaration | None:
        """
        Resolves a name as seen from a file to its declaration.

        Dotted names (`ns.Foo`) are resolved through namespace imports.

        Args:
            source_file (SourceFile): The file in which the name appears.
            name (str): The identifier or dotted name.

        Returns:
            Declaration | None: The declaration, or None if it is not part of
                the project (library symbols, globals, typos).
        """
        head, dot, rest = name.partition(cs.SEPARATOR_DOT)
        if dot:
            binding = source_file.import_binding(head)
            if (
                binding is None
                or binding.style != cs.ImportStyle.NAMESPACE
                or binding.target is None
            ):
                return None
            return self.resolve_export(binding.target, rest)
        if (declaration := source_file.declaration(name)) is not None:
            return declaration
        if (binding := source_file.import_binding(name)) is not None:
            return self.resolve_binding(binding)
        return None

    def resolve_binding(self, binding: ImportBinding) -> Declaration | None:
        if binding.target is None or binding.style == cs.ImportStyle.NAMESPACE:
            return None
        return self.resolve_export(binding.target, binding.imported_name)

    def resolve_export(
        self,
        file_path: str,
        name: str,
        _seen: frozenset[tuple[str, str]] = frozenset(),
    ) -> Declaration | None:
        """
        Finds the declaration exported from a file under `name`.

        Follows local export lists, re-exported imports and `export ... from`
        chains; cycles between barrel files terminate.

        Args:
            file_path (str): Project-relative path of the exporting file.
            name (str): The exported name, `default` for the default export.

        Returns:
            Declaration | None: The exported declaration, if found.
        """
        key = (file_path, name)
        if key in _seen or (source_file := self.files.get(file_path)) is None:
            return None
        seen = _seen | {key}

        if name == cs.KEYWORD_DEFAULT:
            return source_file.default_declaration()

        if (local := source_file.export_names.get(name)) is not None:
            if (declaration := source_file.declaration(local)) is not None:
                return declaration
            if (binding := source_file.import_binding(local)) is not None:
                if binding.target is None or binding.style == cs.ImportStyle.NAMESPACE:
                    return None
                return self.resolve_export(binding.target, binding.imported_name, seen)

        for re_export in source_file.re_exports:
            if re_export.target is None:
                continue
            if re_export.names is None:
                if found := self.resolve_export(re_export.target, name, seen):
                    return found
            elif name in re_export.names:
                return self.resolve_export(
                    re_export.target, re_export.names[name], seen
                )
        return None

    def resolve_type(self, ref: TypeRef | None) -> Declaration | None:
        if ref is None:
            return None
        return self.resolve_name(ref.file, ref.name)

    def type_ref(self, source_file: SourceFile, type_node: ASTNode | None) -> TypeRef | None:
        if type_node is None or (name := primary_type_name(type_node)) is None:
            return None
        return TypeRef(name, type_node, source_file)

    def base_class(self, class_decl: Declaration) -> Declaration | None:
        """The class named in the `extends` clause, if it is a project class."""
        for child in class_decl.node.named_children:
            if child.type != cs.TS_CLASS_HERITAGE:
                continue
            for clause in child.named_children:
                if clause.type != cs.TS_EXTENDS_CLAUSE:
                    continue
                value = clause.child_by_field_name(cs.FIELD_VALUE)
                if value is None or value.type not in (
                    cs.TS_IDENTIFIER,
                    cs.TS_MEMBER_EXPRESSION,
                ):
                    return None
                base = self.resolve_name(
                    self.file_of(class_decl), safe_decode_text(value) or ""
                )
                return base if base and base.kind == cs.NodeKind.CLASS else None
        return None

    def class_chain(self, class_decl: Declaration) -> Iterator[Declaration]:
        """Yields the class followed by its project base classes."""
        seen: set[str] = set()
        current: Declaration | None = class_decl
        while current is not None and current.node_id not in seen:
            seen.add(current.node_id)
            yield current
            current = self.base_class(current)

    def find_method(self, class_decl: Declaration, method_name: str) -> MethodRef | None:
        """Looks a method up on a class and, failing that, its base classes."""
        for owner in self.class_chain(class_decl):
            for member in class_members(owner.node):
                if is_method(member.node) and name_of(member.node) == method_name:
                    return MethodRef(owner, member.node, method_name)
        return None

    def member_type(self, class_decl: Declaration, member_name: str) -> TypeRef | None:
        """
        Returns the declared type of a class member.

        Fields and constructor parameter properties (`constructor(private x: X)`)
        are considered, on the class and then on its base classes. A field
        without annotation initialised with `new X()` counts as typed `X`.

        Args:
            class_decl (Declaration): The class to search.
            member_name (str): The member name.

        Returns:
            TypeRef | None: The member's type, if it names a type.
        """
        for owner in self.class_chain(class_decl):
            owner_file = self.file_of(owner)
            for member in class_members(owner.node):
                node = member.node
                if node.type == cs.TS_PUBLIC_FIELD_DEFINITION:
                    if name_of(node) != member_name:
                        continue
                    if ref := self.type_ref(owner_file, annotated_type(node)):
                        return ref
                    return initializer_type(owner_file, node)
            for ctor in constructors(owner.node)[:1]:
                for param in parameter_nodes(ctor):
                    if is_parameter_property(param) and parameter_name(param) == member_name:
                        return self.type_ref(owner_file, annotated_type(param))
        return None


def initializer_type(source_file: SourceFile, node: ASTNode) -> TypeRef | None:
    """`X` for a declarator or field initialised with `new X(...)`."""
    value = node.child_by_field_name(cs.FIELD_VALUE)
    if value is None or value.type != cs.TS_NEW_EXPRESSION:
        return None
    constructor = value.child_by_field_name(cs.FIELD_CONSTRUCTOR)
    if constructor is None or constructor.type not in (
        cs.TS_IDENTIFIER,
        cs.TS_MEMBER_EXPRESSION,
    ):
        return None
    return TypeRef(safe_decode_text(constructor) or "", constructor, source_file)


def resolve_source_root(project_root: Path, source_dir: str) -> Path:
    candidate = project_root / source_dir
    if source_dir and candidate.is_dir():
        return candidate
    logger.warning(
        ls.PROJECT_NO_SOURCE_DIR.format(source_dir=source_dir, path=project_root)
    )
    return project_root


def load_project(
    project_path: str | Path,
    source_dir: str | None = None,
    exclude_dirs: frozenset[str] | None = None,
) -> ParsedProject:
    """
    Parses every TypeScript file under the project's source root.

    Files that cannot be read or decoded are skipped with a warning; files with
    syntax errors are kept, tree-sitter recovers the valid parts.

    Args:
        project_path (str | Path): Path to an already checked-out project.
        source_dir (str | None): Source directory relative to the project root.
            Defaults to `settings.SOURCE_DIR`.
        exclude_dirs (frozenset[str] | None): Directory names never descended
            into. Defaults to `settings.EXCLUDE_DIRS`.

    Returns:
        ParsedProject: The immutable project view.

    Raises:
        ProjectLoadError: If the project path does not exist or is not a directory.
    """
    root = Path(project_path).resolve()
    if not root.exists():
        raise ex.ProjectLoadError(ex.PROJECT_NOT_FOUND.format(path=root))
    if not root.is_dir():
        raise ex.ProjectLoadError(ex.PROJECT_NOT_DIR.format(path=root))
    logger.info(ls.PROJECT_LOADING.format(path=root))

    source_root = resolve_source_root(
        root, settings.SOURCE_DIR if source_dir is None else source_dir
    )
    excluded = settings.EXCLUDE_DIRS if exclude_dirs is None else exclude_dirs

    sources: dict[str, bytes] = {}
    for path in iter_source_files(source_root, excluded):
        rel_path = relative_posix(path, root)
        try:
            raw = path.read_bytes()
            raw.decode(cs.ENCODING_UTF8)
        except OSError as e:
            logger.warning(ls.FILE_READ_FAILED.format(path=rel_path, error=e))
            continue
        except UnicodeDecodeError as e:
            logger.warning(ls.FILE_DECODE_FAILED.format(path=rel_path, error=e))
            continue
        sources[rel_path] = raw

    resolver = ModuleResolver(sources.keys(), load_path_aliases(root))
    files: dict[str, SourceFile] = {}
    for rel_path, raw in sources.items():
        try:
            tree = create_parser(rel_path).parse(raw)
        except ValueError as e:
            logger.warning(ls.FILE_PARSE_FAILED.format(path=rel_path, error=e))
            continue
        if tree.root_node.has_error:
            logger.debug(ls.FILE_HAS_SYNTAX_ERRORS.format(path=rel_path))
        files[rel_path] = index_source_file(
            rel_path,
            detect_file_subtype(rel_path.rsplit(cs.SEPARATOR_SLASH, 1)[-1]),
            tree.root_node,
            lambda specifier, importer=rel_path: resolver.resolve(importer, specifier),
        )

    logger.info(ls.PROJECT_LOADED.format(count=len(files), root=source_root))
    return ParsedProject(root, source_root, files)
