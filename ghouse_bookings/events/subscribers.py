"""Default event-bus subscribers: structured logs and Prometheus counters."""

from __future__ import annotations

import weakref

import structlog

from ghouse_bookings.events.bus import (
    BOOKING_CONFIRMED,
    BOOKING_CREATED,
    BOOKING_STATUS_UPDATED,
    EventBus,
    EventEnvelope,
)
from ghouse_bookings.metrics import booking_status_updates, bookings_confirmed, bookings_created

logger = structlog.get_logger(__name__)

_registered_buses: weakref.WeakSet[EventBus] = weakref.WeakSet()


def log_booking_event(envelope: EventEnvelope) -> None:
    logger.info(
        "booking_event",
        event_name=envelope.name,
        trace_id=envelope.meta.get("traceId"),
        **envelope.payload,
    )


def count_booking_created(envelope: EventEnvelope) -> None:
    bookings_created.inc()


def count_booking_confirmed(envelope: EventEnvelope) -> None:
    bookings_confirmed.inc()


def count_status_update(envelope: EventEnvelope) -> None:
    booking_status_updates.labels(status=str(envelope.payload.get("status"))).inc()


def register_default_subscribers(event_bus: EventBus) -> bool:
    """
    Wire logging and metrics subscribers onto ``event_bus``.

    Safe to call more than once; subscribers are only added the first time
    for a given bus.

    Returns:
        bool: True if subscribers were added by this call
    """
    if event_bus in _registered_buses:
        return False
    _registered_buses.add(event_bus)

    for name in (BOOKING_CREATED, BOOKING_CONFIRMED, BOOKING_STATUS_UPDATED):
        event_bus.on(name, log_booking_event)
    event_bus.on(BOOKING_CREATED, count_booking_created)
    event_bus.on(BOOKING_CONFIRMED, count_booking_confirmed)
    event_bus.on(BOOKING_STATUS_UPDATED, count_status_update)
    return True
