"""Global fields attached to every tracked event."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


class GlobalFields:
    """Key/value overlay merged into event bodies at track time.

    An event's own keys always win. Not safe for concurrent mutation; the
    owning Analytics instance is expected to be used from one thread.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._fields: dict[str, Any] = dict(initial or {})

    def set(self, key: str, value: Any) -> None:
        self._fields[key] = value

    def update(self, fields: Mapping[str, Any]) -> None:
        for key, value in fields.items():
            self.set(key, value)

    def unset(self, key: str) -> None:
        self._fields.pop(key, None)

    def merge(self, body: dict[str, Any]) -> dict[str, Any]:
        """Insert every global key missing from *body*; returns *body*."""
        for key, value in self._fields.items():
            if key not in body:
                body[key] = value
        return body

    def snapshot(self) -> dict[str, Any]:
        return dict(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, key: object) -> bool:
        return key in self._fields
