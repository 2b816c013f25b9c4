"""Append-only JSONL event log.

One Event per line, written through a single append handle that is opened
at initialisation and closed before the log is read for a flush. Reads use
their own handle. The file is deleted once its contents have been
delivered; it is never truncated in place.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TextIO

from .exceptions import EventLogError
from .models import Event

logger = logging.getLogger(__name__)


class EventLog:
    """JSONL-backed event log.

    Args:
        file_path: Path to the log file. It is created by :meth:`open`.
    """

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._handle: TextIO | None = None

    @property
    def path(self) -> Path:
        return self._file_path

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def open(self) -> None:
        """Open the append handle, creating the file if needed."""
        if self._handle is not None:
            return
        try:
            self._handle = open(self._file_path, "a", encoding="utf-8")
        except OSError as e:
            raise EventLogError(f"opening {self._file_path}: {e}") from e

    def append(self, event: Event) -> None:
        """Append *event* as one JSON line.

        Does nothing when the log was never opened (tracking disabled).
        """
        if self._handle is None:
            return
        try:
            self._handle.write(event.to_json() + "\n")
            self._handle.flush()
        except (OSError, TypeError, ValueError) as e:
            raise EventLogError(f"appending event {event.name!r}: {e}") from e

    def read_all(self) -> list[Event]:
        """Read every event in log order.

        Returns an empty list when the file does not exist. Blank lines are
        skipped. Raises :class:`EventLogError` on invalid JSON or an invalid
        event, including the 1-based line number in the message.
        """
        if not self._file_path.exists():
            return []

        events: list[Event] = []
        try:
            with open(self._file_path, "rb") as f:
                for line_number, raw_line in enumerate(f, start=1):
                    try:
                        stripped = raw_line.decode("utf-8").strip()
                        if not stripped:
                            continue
                        events.append(Event.from_dict(json.loads(stripped)))
                    except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError) as e:
                        raise EventLogError(
                            f"decoding line {line_number} of {self._file_path}: {e}"
                        ) from e
        except OSError as e:
            raise EventLogError(f"reading {self._file_path}: {e}") from e

        return events

    def count(self) -> int:
        return len(self.read_all())

    def clear(self) -> None:
        """Delete the backing file."""
        try:
            self._file_path.unlink(missing_ok=True)
        except OSError as e:
            raise EventLogError(f"removing {self._file_path}: {e}") from e
        logger.debug("cleared %s", self._file_path)

    def close(self) -> None:
        """Release the append handle. Safe to call more than once."""
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        try:
            handle.close()
        except OSError as e:
            raise EventLogError(f"closing {self._file_path}: {e}") from e
