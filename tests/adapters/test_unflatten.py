from __future__ import annotations

from lib_paramstore.adapters.unflatten.default import assign_nested, unflatten


def test_nested_expansion() -> None:
    flat = {"db/host": "localhost", "db/port": "5432", "feature/flags/beta": "on", "name": "svc"}
    assert unflatten(flat, "/") == {
        "db": {"host": "localhost", "port": "5432"},
        "feature": {"flags": {"beta": "on"}},
        "name": "svc",
    }


def test_leading_delimiter_creates_empty_root_segment() -> None:
    assert unflatten({"/app/db": "x"}, "/") == {"": {"app": {"db": "x"}}}


def test_custom_delimiter() -> None:
    assert unflatten({"db.host": "h", "db/port": "p"}, ".") == {"db": {"host": "h"}, "db/port": "p"}


def test_empty_delimiter_keeps_keys_whole() -> None:
    assert unflatten({"a/b": "1"}, "") == {"a/b": "1"}


def test_keys_are_case_sensitive() -> None:
    assert unflatten({"DB/host": "1", "db/host": "2"}, "/") == {"DB": {"host": "1"}, "db": {"host": "2"}}


def test_scalar_then_branch_keeps_the_branch() -> None:
    assert unflatten({"db": "x", "db/host": "y", "db/port": "1"}, "/") == {"db": {"host": "y", "port": "1"}}


def test_branch_then_scalar_keeps_the_branch() -> None:
    data: dict[str, object] = {}
    assign_nested(data, "db/host", "y", "/")
    assign_nested(data, "db", "x", "/")
    assert data == {"db": {"host": "y"}}


def test_deep_scalar_is_replaced_by_branch() -> None:
    assert unflatten({"a/b": "leaf", "a/b/c/d": "deep"}, "/") == {"a": {"b": {"c": {"d": "deep"}}}}
