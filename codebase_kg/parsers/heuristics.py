"""
Name-based domain classification.

Whether a class counts as a "model" (entity, DTO, schema, document) or a
member counts as a repository-like accessor is decided purely from its name.
The predicates are plain functions bundled in a `NameClassifier` so extractors
can be handed a different classifier, e.g. one that looks at decorators.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from codebase_kg.core import constants as cs

type NamePredicate = Callable[[str], bool]

_MODEL_RE = re.compile(cs.MODEL_NAME_PATTERN, re.IGNORECASE)
_ENTITY_RE = re.compile(cs.ENTITY_NAME_PATTERN, re.IGNORECASE)
_REPOSITORY_RE = re.compile(cs.REPOSITORY_NAME_PATTERN, re.IGNORECASE)


def is_model_name(name: str) -> bool:
    return bool(_MODEL_RE.search(name))


def is_entity_name(name: str) -> bool:
    return bool(_ENTITY_RE.search(name))


def is_repository_name(name: str) -> bool:
    return bool(_REPOSITORY_RE.search(name))


@dataclass(frozen=True)
class NameClassifier:
    is_model: NamePredicate = is_model_name
    is_entity: NamePredicate = is_entity_name
    is_repository: NamePredicate = is_repository_name


DEFAULT_CLASSIFIER = NameClassifier()
