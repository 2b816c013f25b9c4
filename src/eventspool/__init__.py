"""
eventspool: buffer application events on disk and ship them in batches.

Provides:
- Append-only JSONL event log under a per-platform root directory
- Opt-out marker, persisted user id and last-flush sentinel
- Global fields merged into every event
- Threshold-driven flushing with bounded retry of rejected records

The HTTP transport needs ``requests`` and is lazily imported via
__getattr__ so that ``import eventspool`` stays lightweight.
"""

from .analytics import Analytics
from .config import AnalyticsConfig
from .event_log import EventLog
from .exceptions import (
    ConfigurationError,
    EventLogError,
    EventSpoolError,
    FlushError,
    FlushTransportError,
    PartialDeliveryError,
    StoreError,
    TransportError,
    UnsupportedPlatformError,
)
from .fields import GlobalFields
from .flusher import FlushDecision, Flusher, FlushOutcome, FlushResult, FlushState
from .models import Body, Event
from .store import Store, StoreStatus
from .transport import BatchResponse, BatchTransport, RecordResult

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "HttpBatchTransport": (".http_transport", "HttpBatchTransport"),
}


def __getattr__(name: str):
    if name in _LAZY_IMPORTS:
        module_path, attr = _LAZY_IMPORTS[name]
        import importlib

        mod = importlib.import_module(module_path, __name__)
        return getattr(mod, attr)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "Analytics",
    "AnalyticsConfig",
    "BatchResponse",
    "BatchTransport",
    "Body",
    "ConfigurationError",
    "Event",
    "EventLog",
    "EventLogError",
    "EventSpoolError",
    "FlushDecision",
    "FlushError",
    "FlushOutcome",
    "FlushResult",
    "FlushState",
    "FlushTransportError",
    "Flusher",
    "GlobalFields",
    "HttpBatchTransport",
    "PartialDeliveryError",
    "RecordResult",
    "Store",
    "StoreError",
    "StoreStatus",
    "TransportError",
    "UnsupportedPlatformError",
]
