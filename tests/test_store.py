"""Tests for Store: user id, opt-out marker and last-flush sentinel."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from eventspool.exceptions import StoreError, UnsupportedPlatformError
from eventspool.store import Store, StoreStatus


class TestInitialize:
    """Store.initialize() outcomes."""

    def test_creates_root_and_id(self, root):
        store = Store(root=root)

        assert store.initialize() is StoreStatus.ENABLED
        assert root.is_dir()
        assert (root / "id").read_text() == store.user_id
        uuid.UUID(store.user_id)

    def test_new_id_touches_last_flush(self, root):
        store = Store(root=root)
        store.initialize()

        assert (root / "last_flush").exists()
        assert store.last_flush_age() < timedelta(minutes=1)

    def test_id_is_stable_across_instances(self, root):
        first = Store(root=root)
        first.initialize()
        second = Store(root=root)
        second.initialize()

        assert second.user_id == first.user_id

    def test_existing_id_is_not_regenerated(self, root):
        root.mkdir(parents=True)
        (root / "id").write_text("existing-id")

        store = Store(root=root)
        store.initialize()

        assert store.user_id == "existing-id"
        assert (root / "id").read_text() == "existing-id"
        assert not (root / "last_flush").exists()

    def test_disable_marker_reports_disabled(self, root):
        root.mkdir(parents=True)
        (root / "disable").touch()

        store = Store(root=root)

        assert store.initialize() is StoreStatus.DISABLED
        assert store.user_id is None

    def test_unusable_root_reports_unavailable(self, tmp_path, caplog):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        store = Store(root=blocker / "spool")

        assert store.initialize() is StoreStatus.UNAVAILABLE
        assert "couldn't initialize" in caplog.text

    def test_undecodable_id_reports_unavailable(self, root, caplog):
        root.mkdir(parents=True)
        (root / "id").write_bytes(b"\xff\xfe\xfa")

        store = Store(root=root)

        assert store.initialize() is StoreStatus.UNAVAILABLE
        assert store.user_id is None
        assert "couldn't initialize" in caplog.text

    def test_unsupported_platform_reports_unavailable(self, monkeypatch):
        def _raise(dir_name):
            raise UnsupportedPlatformError("plan9")

        monkeypatch.setattr("eventspool.store.resolve_root", _raise)
        store = Store(dir_name="cli-events")

        assert store.initialize() is StoreStatus.UNAVAILABLE
        assert store.root is None

    def test_root_resolved_from_dir_name(self, tmp_path, monkeypatch):
        monkeypatch.setenv("EVENTSPOOL_HOME", str(tmp_path / "home-override"))
        store = Store(dir_name="cli-events")

        store.initialize()

        assert store.root == tmp_path / "home-override" / "cli-events"
        assert store.status is StoreStatus.ENABLED


class TestEnableDisable:
    """Opt-out marker handling."""

    def test_disable_twice_is_noop(self, root):
        store = Store(root=root)
        store.initialize()

        store.disable()
        store.disable()

        assert (root / "disable").exists()
        assert [p.name for p in root.iterdir()].count("disable") == 1
        assert not store.is_enabled()
        assert store.status is StoreStatus.DISABLED

    def test_enable_removes_marker(self, root):
        store = Store(root=root)
        store.initialize()
        store.disable()

        store.enable()

        assert not (root / "disable").exists()
        assert store.is_enabled()

    def test_enable_when_enabled_is_noop(self, root):
        store = Store(root=root)
        store.initialize()

        store.enable()

        assert store.is_enabled()

    def test_disable_without_root_raises(self, monkeypatch):
        def _raise(dir_name):
            raise UnsupportedPlatformError("plan9")

        monkeypatch.setattr("eventspool.store.resolve_root", _raise)
        store = Store(dir_name="x")
        store.initialize()

        with pytest.raises(StoreError, match="unavailable"):
            store.disable()


class TestLastFlush:
    """Sentinel mtime as the last-flush timestamp."""

    def test_missing_sentinel_raises(self, root):
        root.mkdir(parents=True)
        store = Store(root=root)

        with pytest.raises(StoreError):
            store.last_flush_time()

    def test_missing_sentinel_age_is_zero(self, root):
        root.mkdir(parents=True)
        store = Store(root=root)

        assert store.last_flush_age() == timedelta(0)

    def test_touch_moves_timestamp_forward(self, root, backdate_last_flush):
        store = Store(root=root)
        store.initialize()
        old = backdate_last_flush(root, 7200)

        store.touch()

        assert store.last_flush_time() > datetime.fromtimestamp(old, tz=timezone.utc)
        assert store.last_flush_age() < timedelta(minutes=1)

    def test_age_reflects_backdated_sentinel(self, root, backdate_last_flush):
        store = Store(root=root)
        store.initialize()
        backdate_last_flush(root, 7200)

        assert store.last_flush_age() >= timedelta(hours=2)

    def test_last_flush_time_is_utc(self, root):
        store = Store(root=root)
        store.initialize()

        assert store.last_flush_time().tzinfo == timezone.utc
