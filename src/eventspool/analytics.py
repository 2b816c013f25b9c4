"""Analytics: record events locally, ship them in batches.

Typical use from a CLI tool::

    analytics = Analytics.from_config(AnalyticsConfig.load())
    analytics.set({"version": __version__})
    analytics.track("command", analytics.body("name", "deploy"))
    analytics.maybe_flush(100, timedelta(hours=24))

Tracking never raises. When storage cannot be initialised or the user has
opted out, ``track`` silently does nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

from .config import AnalyticsConfig
from .event_log import EventLog
from .exceptions import EventLogError, EventSpoolError
from .fields import GlobalFields
from .flusher import Flusher, FlushResult
from .models import Body, Event, utc_timestamp
from .store import Store, StoreStatus
from .transport import BatchTransport

logger = logging.getLogger(__name__)


class Analytics:
    """Per-process event recorder bound to one storage root.

    Not thread-safe: global fields and the log handle belong to the
    instance and are meant to be used from a single thread.

    Args:
        config: Stream, prefix and flush settings.
        transport: Batch transport; ``None`` makes flushes a no-op.
        root: Explicit storage root (skips platform resolution).
    """

    def __init__(
        self,
        config: AnalyticsConfig,
        transport: Optional[BatchTransport] = None,
        root: Optional[Path] = None,
    ) -> None:
        self.config = config
        self.transport = transport
        self.globals = GlobalFields()
        self.store = Store(root=root, dir_name=config.dir_name)
        self._event_log: Optional[EventLog] = None
        self._flusher: Optional[Flusher] = None
        self._init()

    @classmethod
    def from_config(cls, config: AnalyticsConfig, root: Optional[Path] = None) -> Analytics:
        """Build an instance with an HTTP transport when an endpoint is configured."""
        transport: Optional[BatchTransport] = None
        if config.endpoint:
            from .http_transport import HttpBatchTransport

            transport = HttpBatchTransport(
                config.endpoint,
                auth_token=config.auth_token,
                timeout=config.timeout,
            )
        return cls(config, transport=transport, root=root)

    def _init(self) -> None:
        if self.store.initialize() is not StoreStatus.ENABLED:
            return
        self._init_events()

    def _init_events(self) -> None:
        event_log = EventLog(self.store.events_path)
        try:
            event_log.open()
        except EventLogError as e:
            logger.debug("error opening events: %s", e)
            self.store.status = StoreStatus.UNAVAILABLE
            return
        self._event_log = event_log
        self._flusher = None

    # ── State ─────────────────────────────────────────────────────

    @property
    def status(self) -> StoreStatus:
        return self.store.status

    @property
    def root(self) -> Optional[Path]:
        return self.store.root

    @property
    def user_id(self) -> Optional[str]:
        return self.store.user_id

    def enabled(self) -> bool:
        """True if the user hasn't opted out."""
        return self.store.is_enabled()

    def disable(self) -> None:
        """Opt out: create the marker and stop recording in this process."""
        self.store.disable()
        if self._event_log is not None:
            self._event_log.close()
        self._event_log = None
        self._flusher = None

    def enable(self) -> None:
        """Opt back in, finishing initialisation if this instance was disabled."""
        self.store.enable()
        if self.store.status is StoreStatus.DISABLED:
            self._init()

    # ── Tracking ──────────────────────────────────────────────────

    def body(self, key: str, value: Any) -> Body:
        return Body().set(key, value)

    def set(self, fields: Mapping[str, Any]) -> None:
        """Set global fields included in every event."""
        self.globals.update(fields)

    def set_field(self, key: str, value: Any) -> None:
        self.globals.set(key, value)

    def track(self, name: str, body: Optional[Mapping[str, Any]] = None) -> None:
        """Record event *name* with optional *body*.

        Fire-and-forget: a failed write is logged as a warning and
        swallowed so tracking never disrupts the caller.
        """
        if self._event_log is None or not self._event_log.is_open:
            return

        data = dict(body) if body is not None else {}
        self.globals.merge(data)

        event = Event(
            timestamp=utc_timestamp(),
            name=self.config.prefix + name,
            body=data,
        )
        try:
            self._event_log.append(event)
        except EventSpoolError as e:
            logger.warning("Tracking event %s failed: %s", event.name, e)

    # ── Queue inspection ──────────────────────────────────────────

    def events(self) -> list[Event]:
        """Read the queued events from disk."""
        if self.store.root is None:
            return []
        return EventLog(self.store.events_path).read_all()

    def size(self) -> int:
        return len(self.events())

    def touch(self) -> None:
        self.store.touch()

    def last_flush(self) -> datetime:
        return self.store.last_flush_time()

    def last_flush_duration(self) -> timedelta:
        return self.store.last_flush_age()

    # ── Flushing ──────────────────────────────────────────────────

    @property
    def flusher(self) -> Optional[Flusher]:
        """Flusher bound to this instance's log; None unless tracking is enabled."""
        if self._flusher is None and self._event_log is not None:
            self._flusher = Flusher(
                store=self.store,
                event_log=self._event_log,
                transport=self.transport,
                stream=self.config.stream,
                max_attempts=self.config.max_attempts,
                retry_backoff=self.config.retry_backoff,
            )
        return self._flusher

    def maybe_flush(
        self,
        above_size: Optional[int] = None,
        above_duration: Optional[timedelta] = None,
    ) -> FlushResult:
        """Flush if the queue holds at least *above_size* events or the last
        flush is at least *above_duration* old; otherwise close the log.

        Thresholds default to the configured ones.
        """
        flusher = self.flusher
        if flusher is None:
            return FlushResult(skipped=True)
        return flusher.maybe_flush(
            self.config.count_threshold if above_size is None else above_size,
            self.config.age_threshold if above_duration is None else above_duration,
        )

    def flush(self) -> FlushResult:
        """Send every queued event and remove them from disk."""
        flusher = self.flusher
        if flusher is None:
            return FlushResult(skipped=True)
        return flusher.flush()

    def close(self) -> None:
        """Close the underlying log handle."""
        if self._event_log is not None:
            self._event_log.close()

    def __enter__(self) -> Analytics:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
