"""
Structured event sink and correlation ids

Components receive an EventSink at construction and call emit() for
side-channel observability (cache hits, retries, executed transactions).
Events are logged with structured `extra` fields and forwarded to any
registered listeners. They are never part of a return value.
"""

import logging
import uuid
import contextvars
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

# Context variable for correlation ID (task-local under asyncio)
_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    'correlation_id', default=None
)


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for transaction tracing."""
    return uuid.uuid4().hex[:12]


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: Optional[str]) -> contextvars.Token:
    """Set the correlation ID in context. Returns token for reset."""
    return _correlation_id.set(correlation_id)


class CorrelationContext:
    """
    Context manager for correlation ID scoping.

    Usage:
        with CorrelationContext("swap") as cid:
            logger.info(f"[{cid}] Starting operation")
            result = await pipeline.execute(...)
    """

    def __init__(self, prefix: Optional[str] = None):
        """
        Initialize correlation context.

        Args:
            prefix: Optional prefix for the correlation ID (e.g., "swap", "lp")
        """
        self.correlation_id = generate_correlation_id()
        if prefix:
            self.correlation_id = f"{prefix}_{self.correlation_id}"
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = set_correlation_id(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token is not None:
            _correlation_id.reset(self._token)


EventListener = Callable[[str, Dict[str, Any]], None]

# Events that are chatty enough to stay at DEBUG
_DEBUG_EVENTS = frozenset({"cache_hit", "cache_miss"})
_WARNING_EVENTS = frozenset({"retry_attempt", "retry_exhausted", "pool_scan_failed"})


class EventSink:
    """
    Event emitter

    Usage:
        events = EventSink()
        events.subscribe(lambda name, fields: print(name, fields))
        events.emit("cache_hit", namespace="pool", key="0xabc")
    """

    def __init__(self, log: Optional[logging.Logger] = None):
        self._logger = log or logger
        self._listeners: List[EventListener] = []

    def subscribe(self, listener: EventListener):
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event: str, **fields: Any):
        """
        Record an event

        Listener failures are logged and never reach the caller.
        """
        cid = get_correlation_id()
        payload = {"event": event, "correlation_id": cid, **fields}

        if event in _DEBUG_EVENTS:
            level = logging.DEBUG
        elif event in _WARNING_EVENTS:
            level = logging.WARNING
        else:
            level = logging.INFO

        parts = []
        if cid:
            parts.append(f"[{cid}]")
        parts.append(f"[{event}]")
        parts.extend(f"{k}={v}" for k, v in fields.items())
        # Fields nested so they cannot collide with LogRecord attributes
        self._logger.log(
            level,
            " ".join(parts),
            extra={"event": event, "correlation_id": cid, "event_fields": fields},
        )

        for listener in list(self._listeners):
            try:
                listener(event, payload)
            except Exception as e:
                self._logger.error(f"Event listener failed for {event}: {e}")


class RecordingEventSink(EventSink):
    """EventSink that keeps every emitted event in memory"""

    def __init__(self, log: Optional[logging.Logger] = None):
        super().__init__(log)
        self.records: List[Dict[str, Any]] = []
        self.subscribe(lambda name, payload: self.records.append(payload))

    def names(self) -> List[str]:
        return [r["event"] for r in self.records]

    def of(self, event: str) -> List[Dict[str, Any]]:
        return [r for r in self.records if r["event"] == event]
