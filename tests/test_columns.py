"""Unit tests for column layout resolution."""

# Module responsibilities:
# - Cover explicit-index priority, exclusion renumbering and header lookups.
# - Check contiguity of the final layout across exclusion subsets.

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations

import pytest

from xlguard_io.columns import find_field_by_header, resolve_columns
from xlguard_io.schema import FieldTable, column


@dataclass
class Priced:
    id: int = column()
    name: str = column()
    price: float = column(index=2)


def _layout(source, exclude=()) -> dict[str, int]:
    return {meta.field_name: meta.index for meta in resolve_columns(source, exclude)}


def test_auto_indices_fill_around_explicit_index() -> None:
    assert _layout(Priced) == {"id": 0, "name": 1, "price": 2}


def test_exclusion_renumbers_contiguously() -> None:
    assert _layout(Priced, {"name"}) == {"id": 0, "price": 1}


def test_headers_default_to_field_names() -> None:
    metas = resolve_columns(Priced)
    assert [meta.header for meta in metas] == ["id", "name", "price"]


def test_explicit_index_declared_later_is_never_taken_by_auto_assignment() -> None:
    table = (
        FieldTable()
        .add("a")
        .add("b")
        .add("c", index=0)
        .add("d", index=1)
    )
    # a and b must skip 0 and 1, both claimed further down the declaration.
    assert _layout(table) == {"c": 0, "d": 1, "a": 2, "b": 3}


def test_explicit_index_of_excluded_field_still_reserved() -> None:
    table = FieldTable().add("a").add("b", index=0).add("c")
    # b is excluded but its index 0 stays claimed: a -> 1, c -> 2, renumbered to 0, 1.
    metas = resolve_columns(table, {"b"})
    assert [(m.field_name, m.index) for m in metas] == [("a", 0), ("c", 1)]


def test_ignored_fields_are_dropped() -> None:
    table = FieldTable().add("keep", "Keep").add("skip", "Skip", ignore=True).add("tail", "Tail")
    assert _layout(table) == {"keep": 0, "tail": 1}


def test_sparse_explicit_indices_are_compacted() -> None:
    table = FieldTable().add("x", index=10).add("y", index=4).add("z")
    assert _layout(table) == {"z": 0, "y": 1, "x": 2}


def test_duplicate_explicit_indices_keep_declaration_order() -> None:
    table = FieldTable().add("first", index=1).add("second", index=1).add("auto")
    assert [m.field_name for m in resolve_columns(table)] == ["auto", "first", "second"]


@pytest.mark.parametrize("size", range(0, 5))
def test_indices_are_contiguous_for_every_exclusion_subset(size: int) -> None:
    table = (
        FieldTable()
        .add("f0")
        .add("f1", index=5)
        .add("f2")
        .add("f3", index=1)
        .add("f4", ignore=True)
        .add("f5")
    )
    names = ["f0", "f1", "f2", "f3", "f5"]
    for excluded in combinations(names, size):
        metas = resolve_columns(table, excluded)
        indices = [meta.index for meta in metas]
        assert indices == list(range(len(names) - size))
        assert {meta.field_name for meta in metas} == set(names) - set(excluded)


def test_find_field_by_header_skips_ignored_fields() -> None:
    table = (
        FieldTable()
        .add("hidden", "Label", ignore=True)
        .add("visible", "Label")
        .add("other", "Other")
    )
    assert find_field_by_header(table, "Label") == "visible"
    assert find_field_by_header(table, "Missing") is None
