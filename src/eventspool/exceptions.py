"""Exception hierarchy for eventspool."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .transport import RecordResult


class EventSpoolError(Exception):
    """Base exception for eventspool errors."""
    pass


class UnsupportedPlatformError(EventSpoolError):
    """Raised when no root directory convention exists for the platform."""

    def __init__(self, platform: str):
        self.platform = platform
        super().__init__(
            f"eventspool does not yet support {platform}. Set EVENTSPOOL_HOME to choose a directory."
        )


class StoreError(EventSpoolError):
    """Raised when the root directory state cannot be read or written."""


class EventLogError(EventSpoolError):
    """Raised when the event log encounters corruption or I/O errors."""


class ConfigurationError(EventSpoolError):
    """Raised when configuration is missing or cannot be parsed."""


class TransportError(EventSpoolError):
    """Raised by a transport when a whole batch call fails."""


class FlushError(EventSpoolError):
    """Base exception for a flush that did not deliver every event."""


class FlushTransportError(FlushError):
    """The transport call itself failed; the local log is left intact."""

    def __init__(self, attempt: int, cause: Exception):
        self.attempt = attempt
        self.cause = cause
        super().__init__(f"error sending records (attempt {attempt}): {cause}")


class PartialDeliveryError(FlushError):
    """Some records were still rejected after every attempt was used.

    Carries the per-record results of the final attempt so callers can
    report the remote side's error codes.
    """

    def __init__(
        self,
        rejected_count: int,
        attempts: int,
        last_results: list["RecordResult"] | None = None,
    ):
        self.rejected_count = rejected_count
        self.attempts = attempts
        self.last_results = list(last_results or [])

        codes = sorted({r.error_code for r in self.last_results if r.error_code})
        message = f"partial delivery failure: {rejected_count} record(s) rejected after {attempts} attempt(s)"
        if codes:
            message += f" ({', '.join(codes)})"
        super().__init__(message)
