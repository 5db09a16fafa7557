from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

from codebase_kg.core import constants as cs


def relative_posix(path: Path, root: Path) -> str:
    return path.relative_to(root).as_posix()


def is_typescript_source(path: Path) -> bool:
    return path.suffix in cs.TS_EXTENSIONS


def should_skip_path(
    path: Path,
    root: Path,
    exclude_dirs: frozenset[str] = cs.DEFAULT_EXCLUDE_DIRS,
) -> bool:
    rel_path = path.relative_to(root)
    dir_parts = rel_path.parent.parts if path.is_file() else rel_path.parts
    return not exclude_dirs.isdisjoint(dir_parts)


def iter_source_files(
    root: Path, exclude_dirs: frozenset[str] = cs.DEFAULT_EXCLUDE_DIRS
) -> Iterator[Path]:
    """Yields TypeScript sources under `root` in a stable, sorted order."""
    for path in sorted(root.rglob("*")):
        if not path.is_file() or not is_typescript_source(path):
            continue
        if should_skip_path(path, root, exclude_dirs):
            continue
        yield path
