from __future__ import annotations

import pytest

from codebase_kg.core import constants as cs
from codebase_kg.data_models.models import KGNode
from codebase_kg.parsers.file_classifier import (
    detect_file_subtype,
    filter_nodes_by_subtype,
    get_all_subtypes,
    get_subtype_stats,
    group_nodes_by_subtype,
)


@pytest.mark.parametrize(
    ("file_name", "expected"),
    [
        ("user.schema.ts", "schema"),
        ("app.test.spec.ts", "test.spec"),
        ("user.service.tsx", "service"),
        ("globals.d.ts", None),
        ("api.types.d.ts", "types"),
        ("index.ts", None),
        ("README", None),
    ],
)
def test_detect_file_subtype(file_name: str, expected: str | None) -> None:
    assert detect_file_subtype(file_name) == expected


def test_get_all_subtypes_is_sorted_and_unique() -> None:
    names = ["a.service.ts", "b.service.ts", "c.controller.ts", "index.ts"]
    assert get_all_subtypes(names) == ["controller", "service"]


def _file(name: str, subtype: str | None) -> KGNode:
    return KGNode(
        id=f"fil-{name}", kind=cs.NodeKind.FILE, name=name, subtype=subtype
    )


def _sample_nodes() -> list[KGNode]:
    return [
        _file("a.service.ts", "service"),
        _file("b.service.ts", "service"),
        _file("c.dto.ts", "dto"),
        _file("index.ts", None),
        KGNode(id="cls-1", kind=cs.NodeKind.CLASS, name="A", subtype="service"),
    ]


def test_subtype_stats_only_count_files() -> None:
    assert get_subtype_stats(_sample_nodes()) == {"service": 2, "dto": 1}


def test_group_and_filter_by_subtype() -> None:
    nodes = _sample_nodes()
    grouped = group_nodes_by_subtype(nodes)
    assert sorted(grouped) == ["dto", "service"]
    assert [n.name for n in grouped["service"]] == ["a.service.ts", "b.service.ts"]
    assert [n.name for n in filter_nodes_by_subtype(nodes, "dto")] == ["c.dto.ts"]
    assert filter_nodes_by_subtype(nodes, "module") == []
