"""Landlord status updates and booking listings."""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy.engine import Engine

from ghouse_bookings.auth import Principal
from ghouse_bookings.db.readers.reservations import (
    get_reservation,
    get_reservation_with_owner,
    list_reservations_for_landlord,
    list_reservations_for_tenant,
)
from ghouse_bookings.db.writers.reservations import transition_pending_reservation
from ghouse_bookings.errors import ConflictError, ForbiddenError, NotFoundError
from ghouse_bookings.events.bus import BOOKING_STATUS_UPDATED, EventBus, bus
from ghouse_bookings.models.reservations import ReservationStatus

logger = structlog.get_logger(__name__)

MANUAL_TARGET_STATUSES = frozenset({ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED})


def update_reservation_status(
    engine: Engine,
    principal: Principal,
    reservation_id: str,
    status: ReservationStatus,
    event_bus: EventBus = bus,
    trace_id: str | None = None,
) -> dict[str, Any]:
    """
    Let the owning landlord confirm or cancel a pending reservation.

    Monetary fields are not touched.

    Returns:
        dict[str, Any]: The reservation as stored after the update

    Raises:
        ForbiddenError: Caller is not a landlord or does not own the housing
        NotFoundError: Reservation does not exist
        ConflictError: Reservation already left pending
    """
    if not principal.is_landlord:
        raise ForbiddenError("Landlord role required")
    if status not in MANUAL_TARGET_STATUSES:
        raise ConflictError(f"Cannot set status to {status.value}", code="INVALID_TRANSITION")

    with engine.begin() as conn:
        reservation = get_reservation_with_owner(conn, reservation_id)
        if reservation is None:
            raise NotFoundError("Reservation not found", code="RESERVATION_NOT_FOUND")
        if reservation["landlord_id"] != principal.user_id:
            raise ForbiddenError("This housing does not belong to you", code="NOT_OWNER")

        if not transition_pending_reservation(conn, reservation_id, status):
            raise ConflictError(
                f"Reservation is already {reservation['status']}",
                code="INVALID_TRANSITION",
            )
        updated = get_reservation(conn, reservation_id)

    logger.info(
        "reservation_status_updated",
        reservation_id=reservation_id,
        landlord_id=principal.user_id,
        status=status.value,
    )
    event_bus.emit(
        BOOKING_STATUS_UPDATED,
        {"id": reservation_id, "status": status.value},
        {"traceId": trace_id},
    )
    return updated  # type: ignore[return-value]


def list_bookings(engine: Engine, principal: Principal) -> list[dict[str, Any]]:
    """
    Bookings visible to the caller, newest first.

    Tenants see their own reservations; landlords see reservations on the
    housing they own.

    Raises:
        ForbiddenError: For any other role
    """
    with engine.connect() as conn:
        if principal.is_tenant:
            return list_reservations_for_tenant(conn, principal.user_id)
        if principal.is_landlord:
            return list_reservations_for_landlord(conn, principal.user_id)
    raise ForbiddenError("Unsupported role")
