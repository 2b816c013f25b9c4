"""Tests for GlobalFields."""

from __future__ import annotations

from eventspool.fields import GlobalFields


def test_merge_adds_missing_keys() -> None:
    fields = GlobalFields()
    fields.set("env", "prod")

    assert fields.merge({}) == {"env": "prod"}


def test_event_value_wins() -> None:
    fields = GlobalFields({"env": "prod"})

    assert fields.merge({"env": "dev"}) == {"env": "dev"}


def test_explicit_none_in_body_is_kept() -> None:
    """A key present with a None value counts as defined."""
    fields = GlobalFields({"env": "prod"})

    assert fields.merge({"env": None}) == {"env": None}


def test_merge_mutates_and_returns_body() -> None:
    fields = GlobalFields({"a": 1})
    body = {"b": 2}

    merged = fields.merge(body)

    assert merged is body
    assert body == {"a": 1, "b": 2}


def test_update_and_unset() -> None:
    fields = GlobalFields()
    fields.update({"a": 1, "b": 2})
    fields.set("a", 3)
    fields.unset("b")
    fields.unset("missing")

    assert fields.snapshot() == {"a": 3}
    assert "a" in fields
    assert len(fields) == 1


def test_snapshot_is_a_copy() -> None:
    fields = GlobalFields({"a": 1})
    snap = fields.snapshot()
    snap["a"] = 2

    assert fields.snapshot() == {"a": 1}
