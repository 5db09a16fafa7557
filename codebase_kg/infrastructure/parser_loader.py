from __future__ import annotations

from functools import cache

import tree_sitter_typescript as tsts
from loguru import logger
from tree_sitter import Language, Parser

from codebase_kg.core import constants as cs
from codebase_kg.core import logs as ls

from . import exceptions as ex

_LANGUAGE_LOADERS = {
    "typescript": tsts.language_typescript,
    "tsx": tsts.language_tsx,
}


@cache
def load_language(name: str) -> Language:
    """Loads (once) the tree-sitter grammar registered under `name`."""
    language = Language(_LANGUAGE_LOADERS[name]())
    logger.debug(ls.PARSER_LOADED.format(lang=name))
    return language


def language_for_path(file_path: str) -> Language:
    """
    Selects the grammar for a source file.

    Args:
        file_path (str): Path or file name of the source file.

    Returns:
        Language: The TSX grammar for `.tsx` files, TypeScript otherwise.

    Raises:
        ValueError: If the file is not a TypeScript source file.
    """
    lowered = file_path.lower()
    if lowered.endswith(cs.TSX_EXTENSION):
        return load_language("tsx")
    if any(lowered.endswith(ext) for ext in cs.TS_EXTENSIONS):
        return load_language("typescript")
    raise ValueError(ex.PARSER_UNAVAILABLE.format(suffix=file_path.rsplit(".", 1)[-1]))


def create_parser(file_path: str) -> Parser:
    """Creates a parser for the grammar matching `file_path`.

    Parsers are not shared between threads; callers create one per use.
    """
    return Parser(language_for_path(file_path))
