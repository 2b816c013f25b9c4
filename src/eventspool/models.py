"""Event and Body models shared by the log, the flusher and the facade."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def utc_timestamp(now: datetime | None = None) -> str:
    """Return an RFC3339 UTC timestamp with second precision, e.g. ``2024-01-02T03:04:05Z``."""
    moment = now or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class Body(dict):
    """Event attributes with a chainable setter.

    ``Body().set("very", "nice").set("count", 3)``
    """

    def set(self, key: str, value: Any) -> "Body":
        self[key] = value
        return self


@dataclass(frozen=True)
class Event:
    """One recorded occurrence, as stored on disk and sent on the wire.

    ``name`` already includes the configured prefix.
    """

    timestamp: str
    name: str
    body: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"ts": self.timestamp, "event": self.name, "body": self.body}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Event:
        """Build an Event from its wire dict.

        Raises:
            KeyError: ``ts`` or ``event`` is missing.
            TypeError: ``data`` or ``body`` is not a mapping.
        """
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        body = data.get("body")
        if body is None:
            body = {}
        if not isinstance(body, dict):
            raise TypeError(f"body must be an object, got {type(body).__name__}")
        return cls(timestamp=data["ts"], name=data["event"], body=body)

    def to_json(self) -> str:
        """Serialise to a single JSON line (no trailing newline)."""
        return json.dumps(
            self.to_dict(),
            default=lambda o: o.isoformat() if hasattr(o, "isoformat") else str(o),
            sort_keys=True,
        )

    def to_record(self) -> bytes:
        """Wire record: the same bytes the event log holds for this event."""
        return (self.to_json() + "\n").encode("utf-8")
