"""Batch transport contract used by the flusher.

A transport accepts a batch of opaque byte records for a destination
stream and reports, per record and in submission order, whether it was
accepted. A failure of the whole call is raised as ``TransportError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence


@dataclass(frozen=True)
class RecordResult:
    """Outcome of one record within a batch response.

    Attributes:
        record_id: Identifier assigned by the remote side, if any.
        error_code: Set when the record was rejected.
        error_message: Human-readable reason for a rejection.
    """

    record_id: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.error_code is None


@dataclass
class BatchResponse:
    """Per-record results for one batch call, in submission order."""

    results: list[RecordResult] = field(default_factory=list)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if not r.accepted)

    @property
    def accepted_count(self) -> int:
        return len(self.results) - self.failed_count

    @classmethod
    def all_accepted(cls, count: int) -> BatchResponse:
        return cls(results=[RecordResult() for _ in range(count)])


class BatchTransport(Protocol):
    """Anything that can deliver a batch of records to a stream."""

    def put_record_batch(self, stream: str, records: Sequence[bytes]) -> BatchResponse:
        """Send *records* to *stream* in one call.

        Raises:
            TransportError: The call failed as a whole.
        """
        ...
