"""Shared fixtures for eventspool tests."""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Iterable, Sequence, Union

import pytest

from eventspool.analytics import Analytics
from eventspool.config import AnalyticsConfig
from eventspool.transport import BatchResponse, RecordResult

Step = Union[Iterable[int], Exception]


class ScriptedTransport:
    """In-memory transport that follows a per-attempt script.

    Each script step is either the set of batch positions to reject for
    that call, or an exception to raise. Calls past the end of the script
    accept every record.
    """

    def __init__(self, script: Sequence[Step] = ()) -> None:
        self.script = list(script)
        self.calls: list[tuple[str, list[bytes]]] = []

    def put_record_batch(self, stream: str, records: Sequence[bytes]) -> BatchResponse:
        self.calls.append((stream, list(records)))
        step = self.script.pop(0) if self.script else ()
        if isinstance(step, Exception):
            raise step
        rejected = set(step)
        return BatchResponse(
            results=[
                RecordResult(error_code="ServiceUnavailableException", error_message="slow down")
                if i in rejected
                else RecordResult(record_id=f"rec-{i}")
                for i in range(len(records))
            ]
        )


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep EVENTSPOOL_* settings and ~ out of every test."""
    for key in list(os.environ):
        if key.startswith("EVENTSPOOL_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """Storage root for one Analytics instance."""
    return tmp_path / "spool"


@pytest.fixture
def config() -> AnalyticsConfig:
    return AnalyticsConfig(stream="cli-events", prefix="app:")


@pytest.fixture
def make_transport():
    """Factory for ScriptedTransport instances."""
    return ScriptedTransport


@pytest.fixture
def make_analytics(root: Path, config: AnalyticsConfig):
    """Factory for Analytics bound to the temp root."""

    def _make(transport=None, **overrides) -> Analytics:
        cfg = AnalyticsConfig(**{**config.__dict__, **overrides})
        return Analytics(cfg, transport=transport, root=root)

    return _make


@pytest.fixture
def backdate_last_flush():
    """Return a helper that backdates ``<root>/last_flush``; the helper returns the new mtime."""

    def _backdate(root: Path, seconds_ago: float) -> float:
        sentinel = root / "last_flush"
        sentinel.touch(exist_ok=True)
        mtime = time.time() - seconds_ago
        os.utime(sentinel, (mtime, mtime))
        return mtime

    return _backdate
