from __future__ import annotations

from collections.abc import Iterator
from functools import lru_cache

from codebase_kg.core import constants as cs
from codebase_kg.data_models.types_defs import ASTNode


@lru_cache(maxsize=4096)
def _cached_decode_bytes(text_bytes: bytes) -> str:
    return text_bytes.decode(cs.ENCODING_UTF8, errors="replace")


def safe_decode_text(node: ASTNode | None) -> str | None:
    """
    Safely decodes the text content of a Tree-sitter node.

    Args:
        node (ASTNode | None): The node to extract text from.

    Returns:
        str | None: The decoded string or None if node is None or has no text.
    """
    if node is None or (text_bytes := node.text) is None:
        return None
    return _cached_decode_bytes(text_bytes)


def safe_decode_with_fallback(node: ASTNode | None, fallback: str = "") -> str:
    """Decodes node text, returning `fallback` when there is none."""
    return text if (text := safe_decode_text(node)) is not None else fallback


def iter_descendants(
    root: ASTNode, stop_types: frozenset[str] = frozenset()
) -> Iterator[ASTNode]:
    """
    Walks the subtree below `root` in document order.

    Args:
        root (ASTNode): The node whose descendants are visited; not yielded itself.
        stop_types (frozenset[str]): Node types that are yielded but not entered.

    Yields:
        ASTNode: Each descendant node.
    """
    stack: list[ASTNode] = list(reversed(root.children))
    while stack:
        current = stack.pop()
        yield current
        if current.type not in stop_types:
            stack.extend(reversed(current.children))
