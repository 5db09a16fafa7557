from __future__ import annotations

import pytest

from codebase_kg.parsers.heuristics import (
    DEFAULT_CLASSIFIER,
    NameClassifier,
    is_entity_name,
    is_model_name,
    is_repository_name,
)


@pytest.mark.parametrize(
    "name", ["UserEntity", "CreateUserDto", "UserSchema", "OrderModel", "ProfileDocument"]
)
def test_model_names(name: str) -> None:
    assert is_model_name(name)


@pytest.mark.parametrize("name", ["User", "UserService", "DtoFactory"])
def test_non_model_names(name: str) -> None:
    assert not is_model_name(name)


def test_entity_names() -> None:
    assert is_entity_name("UserEntity")
    assert is_entity_name("userModel")
    assert not is_entity_name("UserDto")


def test_repository_like_names() -> None:
    assert is_repository_name("userRepository")
    assert is_repository_name("UserRepo")
    assert is_repository_name("userModel")
    assert is_repository_name("mailService")
    assert not is_repository_name("logger")


def test_classifier_can_be_replaced() -> None:
    classifier = NameClassifier(is_model=lambda name: name.startswith("M"))
    assert classifier.is_model("Money")
    assert not classifier.is_model("UserDto")
    assert DEFAULT_CLASSIFIER.is_model("UserDto")
