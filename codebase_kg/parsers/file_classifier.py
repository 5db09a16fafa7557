from __future__ import annotations

import re
from collections import Counter, defaultdict
from collections.abc import Iterable

from codebase_kg.core import constants as cs
from codebase_kg.data_models.models import KGNode

_EXTENSION_RE = re.compile(cs.SUBTYPE_EXTENSION_PATTERN)


def detect_file_subtype(file_name: str) -> str | None:
    """
    Derives a semantic subtype from a file's dot-separated name segments.

    The extension and an optional trailing `.d` declaration marker are removed
    first; everything after the first remaining segment is the subtype.

    Args:
        file_name (str): The base name of the file, e.g. `user.schema.ts`.

    Returns:
        str | None: `"schema"` for `user.schema.ts`, `"test.spec"` for
            `app.test.spec.ts`, None for `index.ts`.
    """
    stem = _EXTENSION_RE.sub("", file_name)
    if stem.endswith(cs.SUBTYPE_DECLARATION_SUFFIX):
        stem = stem[: -len(cs.SUBTYPE_DECLARATION_SUFFIX)]
    segments = stem.split(cs.SEPARATOR_DOT)
    if len(segments) == 1:
        return None
    return cs.SEPARATOR_DOT.join(segments[1:]) or None


def get_all_subtypes(file_names: Iterable[str]) -> list[str]:
    return sorted(
        {subtype for name in file_names if (subtype := detect_file_subtype(name))}
    )


def _file_nodes_with_subtype(nodes: Iterable[KGNode]) -> list[KGNode]:
    return [n for n in nodes if n.kind == cs.NodeKind.FILE and n.subtype]


def filter_nodes_by_subtype(nodes: Iterable[KGNode], subtype: str) -> list[KGNode]:
    return [n for n in _file_nodes_with_subtype(nodes) if n.subtype == subtype]


def group_nodes_by_subtype(nodes: Iterable[KGNode]) -> dict[str, list[KGNode]]:
    grouped: defaultdict[str, list[KGNode]] = defaultdict(list)
    for node in nodes:
        if node.kind == cs.NodeKind.FILE and node.subtype:
            grouped[node.subtype].append(node)
    return dict(grouped)


def get_subtype_stats(nodes: Iterable[KGNode]) -> dict[str, int]:
    return dict(Counter(n.subtype for n in _file_nodes_with_subtype(nodes)))
