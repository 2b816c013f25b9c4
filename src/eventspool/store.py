"""Root directory state: user id, opt-out marker and last-flush sentinel.

Layout under the root::

    <root>/id          generated user id
    <root>/disable     empty marker; present = tracking disabled
    <root>/events      event log (see event_log.py)
    <root>/last_flush  empty sentinel; only its mtime matters
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path

from .exceptions import EventSpoolError, StoreError
from .paths import resolve_root

logger = logging.getLogger(__name__)

ID_FILENAME = "id"
DISABLE_FILENAME = "disable"
EVENTS_FILENAME = "events"
LAST_FLUSH_FILENAME = "last_flush"


class StoreStatus(str, Enum):
    """Tracking state of a root directory."""

    ENABLED = "enabled"
    DISABLED = "disabled"
    UNAVAILABLE = "unavailable"


class Store:
    """Manage the persisted state kept under a root directory.

    Args:
        root: Explicit root directory. When omitted, the root is resolved
            from *dir_name* during :meth:`initialize`.
        dir_name: Directory name passed to :func:`resolve_root`.
    """

    def __init__(self, root: Path | None = None, dir_name: str = "") -> None:
        self._root = root
        self._dir_name = dir_name
        self.user_id: str | None = None
        self.status = StoreStatus.UNAVAILABLE

    @property
    def root(self) -> Path | None:
        return self._root

    @property
    def events_path(self) -> Path:
        return self._require_root() / EVENTS_FILENAME

    def initialize(self) -> StoreStatus:
        """Resolve the root, check the opt-out marker and load the user id.

        Never raises: failures are logged and reported as
        ``StoreStatus.UNAVAILABLE``.
        """
        if self._root is None:
            try:
                self._root = resolve_root(self._dir_name)
            except EventSpoolError as e:
                logger.error("couldn't resolve root: %s", e)
                self.status = StoreStatus.UNAVAILABLE
                return self.status

        try:
            if self._disable_marker_exists():
                logger.debug("disabled")
                self.status = StoreStatus.DISABLED
                return self.status

            self._root.mkdir(parents=True, exist_ok=True)
            self._init_id()
        except (OSError, UnicodeDecodeError, StoreError) as e:
            logger.error("couldn't initialize %s: %s", self._root, e)
            self.status = StoreStatus.UNAVAILABLE
            return self.status

        self.status = StoreStatus.ENABLED
        return self.status

    def _init_id(self) -> None:
        path = self._require_root() / ID_FILENAME

        if path.exists():
            self.user_id = path.read_text(encoding="utf-8")
            logger.debug("id already created")
            return

        logger.debug("creating id")
        user_id = str(uuid.uuid4())
        path.write_text(user_id, encoding="utf-8")
        self.user_id = user_id

        self.touch()

    def is_enabled(self) -> bool:
        """Return True unless the user has opted out.

        An unknown root or an unreadable marker counts as disabled.
        """
        if self._root is None:
            return False
        try:
            return not self._disable_marker_exists()
        except OSError as e:
            logger.debug("couldn't stat disable marker: %s", e)
            return False

    def _disable_marker_exists(self) -> bool:
        try:
            (self._require_root() / DISABLE_FILENAME).stat()
        except FileNotFoundError:
            return False
        return True

    def disable(self) -> None:
        """Create the opt-out marker. Disabling twice is a no-op."""
        logger.debug("disable")
        root = self._require_root()
        try:
            root.mkdir(parents=True, exist_ok=True)
            (root / DISABLE_FILENAME).touch(exist_ok=True)
        except OSError as e:
            raise StoreError(f"creating disable marker: {e}") from e
        self.status = StoreStatus.DISABLED

    def enable(self) -> None:
        """Remove the opt-out marker. Enabling when enabled is a no-op."""
        logger.debug("enable")
        try:
            (self._require_root() / DISABLE_FILENAME).unlink(missing_ok=True)
        except OSError as e:
            raise StoreError(f"removing disable marker: {e}") from e

    def touch(self) -> None:
        """Set the last-flush sentinel's modification time to now."""
        try:
            (self._require_root() / LAST_FLUSH_FILENAME).touch(exist_ok=True)
        except OSError as e:
            raise StoreError(f"touching {LAST_FLUSH_FILENAME}: {e}") from e

    def last_flush_time(self) -> datetime:
        """Return the sentinel's mtime in UTC.

        Raises:
            StoreError: The sentinel is missing or unreadable.
        """
        try:
            mtime = (self._require_root() / LAST_FLUSH_FILENAME).stat().st_mtime
        except OSError as e:
            raise StoreError(f"reading {LAST_FLUSH_FILENAME}: {e}") from e
        return datetime.fromtimestamp(mtime, tz=timezone.utc)

    def last_flush_age(self) -> timedelta:
        """Time since the last flush; zero when it is unknown."""
        try:
            last_flush = self.last_flush_time()
        except StoreError:
            return timedelta(0)
        return datetime.now(timezone.utc) - last_flush

    def _require_root(self) -> Path:
        if self._root is None:
            raise StoreError("storage root is unavailable")
        return self._root
