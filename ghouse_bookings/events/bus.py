"""
In-process publish/subscribe for booking lifecycle events.

Handlers run synchronously, in registration order, inside ``emit``. A handler
that raises is logged and counted, and the remaining handlers still run;
``emit`` itself never raises, so publishing an event can never fail the
request that produced it. There is no persistence and no cross-process
delivery.

Example:
    >>> from ghouse_bookings.events.bus import bus
    >>> bus.on("booking.created", lambda envelope: print(envelope.payload["id"]))
    >>> bus.emit("booking.created", {"id": "abc"}, {"traceId": "req-1"})
"""

from __future__ import annotations

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable

import structlog

from ghouse_bookings.metrics import event_handler_failures

logger = structlog.get_logger(__name__)

BOOKING_CREATED = "booking.created"
BOOKING_CONFIRMED = "booking.confirmed"
BOOKING_STATUS_UPDATED = "booking.statusUpdated"


@dataclass(frozen=True)
class EventEnvelope:
    """What a handler receives: the event name, its payload and metadata."""

    name: str
    payload: dict[str, Any]
    meta: dict[str, Any] = field(default_factory=dict)


Handler = Callable[[EventEnvelope], Any]


class EventBus:
    """Synchronous event emitter keyed by event name."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._lock = threading.Lock()

    def on(self, name: str, handler: Handler) -> None:
        """Register ``handler`` for ``name`` for the lifetime of the bus."""
        with self._lock:
            self._handlers[name].append(handler)

    def listeners(self, name: str) -> list[Handler]:
        """Handlers currently registered for ``name``, in call order."""
        with self._lock:
            return list(self._handlers.get(name, ()))

    def emit(
        self,
        name: str,
        payload: dict[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> int:
        """
        Deliver an event to every handler registered for ``name``.

        Args:
            name: Event name, e.g. ``booking.created``
            payload: Event data
            meta: Delivery metadata such as ``traceId``

        Returns:
            int: Number of handlers that completed without raising
        """
        envelope = EventEnvelope(name=name, payload=payload, meta=meta or {})
        delivered = 0
        for handler in self.listeners(name):
            try:
                handler(envelope)
                delivered += 1
            except Exception as e:
                event_handler_failures.labels(event_name=name).inc()
                logger.exception(
                    "event_handler_failed",
                    event_name=name,
                    handler=getattr(handler, "__qualname__", repr(handler)),
                    error=str(e),
                )
        return delivered


# Process-wide default bus
bus = EventBus()
