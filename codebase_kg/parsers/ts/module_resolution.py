"""
Resolution of import specifiers to project files.

Specifiers are resolved the way the TypeScript compiler resolves them for a
project: relative paths against the importing file, `compilerOptions.paths`
aliases and `compilerOptions.baseUrl` from the project's `tsconfig.json`.
Extension-less specifiers try the TypeScript extensions and `index` files; ESM
style `.js` specifiers map back to their `.ts` sources. Anything that does not
land on a known project file (packages in `node_modules`, assets) is
unresolved.
"""

from __future__ import annotations

import json
import posixpath
import re
from collections.abc import Collection, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from codebase_kg.core import constants as cs
from codebase_kg.core import logs as ls

_JSONC_TOKEN_RE = re.compile(
    r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL
)
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")


def strip_json_comments(text: str) -> str:
    """Turns tsconfig-flavoured JSONC into plain JSON."""
    without_comments = _JSONC_TOKEN_RE.sub(lambda m: m.group(1) or "", text)
    return _TRAILING_COMMA_RE.sub(r"\1", without_comments)


@dataclass(frozen=True)
class PathAliases:
    """`baseUrl` and `paths` from a tsconfig, with paths relative to the project root."""

    base_url: str | None = None
    paths: Mapping[str, tuple[str, ...]] = field(default_factory=dict)


def load_path_aliases(project_root: Path) -> PathAliases:
    """
    Reads module resolution options from `<project_root>/tsconfig.json`.

    `extends` chains are not followed.

    Args:
        project_root (Path): The project directory.

    Returns:
        PathAliases: The configured aliases; empty when there is no usable tsconfig.
    """
    tsconfig = project_root / cs.TSCONFIG_FILENAME
    if not tsconfig.is_file():
        return PathAliases()
    try:
        data = json.loads(
            strip_json_comments(tsconfig.read_text(encoding=cs.ENCODING_UTF8))
        )
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(ls.TSCONFIG_INVALID.format(path=tsconfig, error=e))
        return PathAliases()

    options = data.get(cs.TSCONFIG_COMPILER_OPTIONS) if isinstance(data, dict) else None
    if not isinstance(options, dict):
        return PathAliases()

    raw_base = options.get(cs.TSCONFIG_BASE_URL)
    base_url = (
        posixpath.normpath(raw_base.replace("\\", "/"))
        if isinstance(raw_base, str)
        else None
    )
    paths: dict[str, tuple[str, ...]] = {}
    raw_paths = options.get(cs.TSCONFIG_PATHS)
    if isinstance(raw_paths, dict):
        for pattern, targets in raw_paths.items():
            if isinstance(targets, list):
                paths[pattern] = tuple(t for t in targets if isinstance(t, str))
    logger.debug(ls.TSCONFIG_LOADED.format(path=tsconfig))
    return PathAliases(base_url=base_url, paths=paths)


class ModuleResolver:
    """Maps `(importing file, specifier)` to a project-relative file path."""

    def __init__(self, known_files: Collection[str], aliases: PathAliases) -> None:
        self._known = frozenset(known_files)
        self._aliases = aliases

    def resolve(self, importer: str, specifier: str) -> str | None:
        """
        Resolves an import specifier.

        Args:
            importer (str): Project-relative path of the importing file.
            specifier (str): The module specifier as written in the import.

        Returns:
            str | None: Project-relative path of the target file, or None.
        """
        if specifier.startswith((".", "/")):
            base = posixpath.join(posixpath.dirname(importer), specifier)
            return self._resolve_candidate(base)
        for candidate in self._alias_candidates(specifier):
            if resolved := self._resolve_candidate(candidate):
                return resolved
        if self._aliases.base_url is not None:
            return self._resolve_candidate(
                posixpath.join(self._aliases.base_url, specifier)
            )
        return None

    def _alias_candidates(self, specifier: str) -> list[str]:
        base = self._aliases.base_url or "."
        candidates: list[str] = []
        for pattern, targets in self._aliases.paths.items():
            prefix, star, suffix = pattern.partition(cs.TSCONFIG_WILDCARD)
            if star:
                if not (
                    specifier.startswith(prefix)
                    and specifier.endswith(suffix)
                    and len(specifier) >= len(prefix) + len(suffix)
                ):
                    continue
                captured = specifier[len(prefix) : len(specifier) - len(suffix)]
                candidates.extend(
                    posixpath.join(base, t.replace(cs.TSCONFIG_WILDCARD, captured))
                    for t in targets
                )
            elif specifier == pattern:
                candidates.extend(posixpath.join(base, t) for t in targets)
        return candidates

    def _resolve_candidate(self, candidate: str) -> str | None:
        path = posixpath.normpath(candidate).lstrip("/")
        if path.startswith(".."):
            return None
        if path in self._known:
            return path
        stem, ext = posixpath.splitext(path)
        for replacement in cs.JS_SPECIFIER_EXTENSIONS.get(ext, ()):
            if (mapped := f"{stem}{replacement}") in self._known:
                return mapped
        for extension in cs.RESOLUTION_EXTENSIONS:
            if (with_ext := f"{path}{extension}") in self._known:
                return with_ext
        for index in cs.INDEX_BASENAMES:
            if (index_path := posixpath.join(path, index)) in self._known:
                return index_path
        return None
