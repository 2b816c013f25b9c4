"""Flush decision and delivery protocol.

A flush drains the on-disk log into wire records, sends them as one batch,
resubmits only the records the remote side rejected (bounded attempts), and
deletes the log only once every record has been accepted. Any failure
leaves the log in place so a later flush can resubmit it.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Callable, Optional

from .event_log import EventLog
from .exceptions import (
    ConfigurationError,
    EventLogError,
    FlushError,
    FlushTransportError,
    PartialDeliveryError,
    StoreError,
    TransportError,
)
from .models import Event
from .store import Store
from .transport import BatchTransport, RecordResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
MAX_BACKOFF_SECONDS = 30.0


class FlushState(str, Enum):
    IDLE = "idle"
    DECIDING = "deciding"
    DRAINING = "draining"
    SENDING = "sending"
    RETRYING = "retrying"
    SETTLED = "settled"


class FlushOutcome(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class FlushDecision(str, Enum):
    """Why (or whether) a flush ran."""

    SIZE = "size"
    AGE = "age"
    CLOSE_ONLY = "close_only"
    FORCED = "forced"


@dataclass
class FlushResult:
    """Summary of one maybe_flush/flush call.

    Attributes:
        decision: What triggered the flush, or ``CLOSE_ONLY``.
        total_events: Events read from the log.
        delivered: Records accepted by the remote side.
        attempts: Send attempts made.
        skipped: True when no transport is configured or tracking is off.
    """

    decision: FlushDecision = FlushDecision.FORCED
    total_events: int = 0
    delivered: int = 0
    attempts: int = 0
    skipped: bool = False

    @property
    def sent(self) -> bool:
        return self.attempts > 0

    def summary(self) -> str:
        if self.decision is FlushDecision.CLOSE_ONLY:
            return "No flush needed"
        if self.skipped:
            return "Flush skipped: no transport configured or tracking disabled"
        if self.total_events == 0:
            return "No events to flush"
        return f"Flushed {self.delivered}/{self.total_events} event(s) in {self.attempts} attempt(s)"


@dataclass(frozen=True)
class _PendingRecord:
    index: int
    data: bytes


class Flusher:
    """Decide when to flush and deliver the event log.

    Args:
        store: Root directory state (last-flush sentinel).
        event_log: The log to drain.
        transport: Batch transport; ``None`` turns flushing into a no-op.
        stream: Destination stream identifier.
        max_attempts: Total send attempts, initial one included.
        retry_backoff: Seconds to wait before the first retry, doubled for
            each further retry and capped at 30s. ``0`` retries immediately.
        sleep: Injected for tests.
    """

    def __init__(
        self,
        store: Store,
        event_log: EventLog,
        transport: Optional[BatchTransport],
        stream: str,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_backoff: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")
        self.store = store
        self.event_log = event_log
        self.transport = transport
        self.stream = stream
        self.max_attempts = max_attempts
        self.retry_backoff = retry_backoff
        self._sleep = sleep
        self.state = FlushState.IDLE
        self.outcome: Optional[FlushOutcome] = None

    def decide(self, count_threshold: int, age_threshold: timedelta) -> FlushDecision:
        """Pick SIZE, AGE or CLOSE_ONLY from the queued count and flush age."""
        self.state = FlushState.DECIDING
        age = self.store.last_flush_age()
        size = self.event_log.count()

        ctx = {
            "age": age,
            "size": size,
            "above_size": count_threshold,
            "above_duration": age_threshold,
        }
        if size >= count_threshold:
            logger.debug("flush size %s", ctx)
            return FlushDecision.SIZE
        if age >= age_threshold:
            logger.debug("flush age %s", ctx)
            return FlushDecision.AGE
        return FlushDecision.CLOSE_ONLY

    def maybe_flush(self, count_threshold: int, age_threshold: timedelta) -> FlushResult:
        """Flush when over either threshold, otherwise just close the log.

        Closing without flushing leaves the records on disk for a later run.
        """
        try:
            decision = self.decide(count_threshold, age_threshold)
        except EventLogError:
            self._settle(FlushOutcome.FAILED)
            raise

        if decision is FlushDecision.CLOSE_ONLY:
            self.event_log.close()
            self.state = FlushState.IDLE
            return FlushResult(decision=decision)

        return self.flush(decision=decision)

    def flush(self, decision: FlushDecision = FlushDecision.FORCED) -> FlushResult:
        """Deliver every queued event, then clear the log.

        Raises:
            ConfigurationError: A transport is set but no stream is.
            EventLogError: The log could not be closed, read or removed.
            StoreError: The last-flush sentinel could not be updated.
            FlushTransportError: The transport call failed outright.
            PartialDeliveryError: Records were still rejected after
                ``max_attempts`` attempts.
        """
        result = FlushResult(decision=decision)

        if self.transport is None:
            self.state = FlushState.IDLE
            result.skipped = True
            return result
        if not self.stream:
            self._settle(FlushOutcome.FAILED)
            raise ConfigurationError("missing stream name")

        self.state = FlushState.DRAINING
        self.outcome = None
        try:
            self.event_log.close()
            events = self.event_log.read_all()
        except EventLogError:
            self._settle(FlushOutcome.FAILED)
            raise

        result.total_events = len(events)
        if not events:
            self._settle(FlushOutcome.SUCCESS)
            return result

        try:
            self._deliver(events, result)
        except FlushError:
            self._settle(FlushOutcome.FAILED)
            raise

        try:
            self.store.touch()
            self.event_log.clear()
        except (StoreError, EventLogError):
            self._settle(FlushOutcome.FAILED)
            raise

        self._settle(FlushOutcome.SUCCESS)
        return result

    def _deliver(self, events: list[Event], result: FlushResult) -> None:
        pending = [_PendingRecord(index=i, data=e.to_record()) for i, e in enumerate(events)]
        last_results: list[RecordResult] = []

        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                self.state = FlushState.RETRYING
                self._wait_before_retry(attempt)
            else:
                self.state = FlushState.SENDING

            result.attempts = attempt
            try:
                response = self.transport.put_record_batch(
                    self.stream, [record.data for record in pending]
                )
            except Exception as e:
                logger.warning("error sending records to %s: %s", self.stream, e)
                raise FlushTransportError(attempt, e) from e

            if len(response.results) != len(pending):
                raise FlushTransportError(
                    attempt,
                    TransportError(
                        f"got {len(response.results)} result(s) for {len(pending)} record(s)"
                    ),
                )

            rejected: list[_PendingRecord] = []
            last_results = []
            for record, outcome in zip(pending, response.results):
                if outcome.accepted:
                    result.delivered += 1
                else:
                    rejected.append(record)
                    last_results.append(outcome)

            if not rejected:
                return

            logger.warning(
                "attempt %d/%d: %d of %d record(s) rejected",
                attempt,
                self.max_attempts,
                len(rejected),
                len(pending),
            )
            logger.debug("rejected event indices: %s", [record.index for record in rejected])
            pending = rejected

        raise PartialDeliveryError(
            rejected_count=len(pending),
            attempts=self.max_attempts,
            last_results=last_results,
        )

    def _wait_before_retry(self, attempt: int) -> None:
        if self.retry_backoff <= 0:
            return
        delay = min(self.retry_backoff * (2 ** (attempt - 2)), MAX_BACKOFF_SECONDS)
        logger.debug("retrying in %.1fs", delay)
        self._sleep(delay)

    def _settle(self, outcome: FlushOutcome) -> None:
        self.state = FlushState.SETTLED
        self.outcome = outcome
