"""
Payment confirmation: reconcile a completed checkout against the stored reservation.

The breakdown is recomputed from the housing's *current* price and deposit,
independently of what was stored at checkout, and compared with the stored
total. A divergence above one cent flags the reservation for manual review but
never blocks the confirmation.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal

import structlog
from sqlalchemy.engine import Engine

from ghouse_bookings.config import BookingSettings
from ghouse_bookings.db.readers.housing import get_housing
from ghouse_bookings.db.readers.reservations import get_reservation
from ghouse_bookings.db.writers.reservations import mark_reservation_confirmed
from ghouse_bookings.events.bus import BOOKING_CONFIRMED, EventBus, bus
from ghouse_bookings.metrics import booking_mismatches
from ghouse_bookings.payments.webhook import CHECKOUT_SESSION_COMPLETED, PaymentEvent
from ghouse_bookings.pricing import compute_breakdown, to_decimal, totals_diverge

logger = structlog.get_logger(__name__)


class ConfirmationOutcome(str, enum.Enum):
    CONFIRMED = "confirmed"
    IGNORED = "ignored"  # event type we do not act on
    SKIPPED = "skipped"  # nothing to update


@dataclass(frozen=True)
class ConfirmationResult:
    outcome: ConfirmationOutcome
    reservation_id: str | None = None
    mismatch: bool = False
    expected_total: Decimal | None = None
    recorded_total: Decimal | None = None
    reason: str | None = None


def process_payment_event(
    engine: Engine,
    settings: BookingSettings,
    event: PaymentEvent,
    event_bus: EventBus = bus,
) -> ConfirmationResult:
    """
    Apply a verified payment event to its reservation.

    Store failures propagate; the webhook route decides how to acknowledge.

    Args:
        engine: SQLAlchemy engine
        settings: Booking settings resolved for this delivery
        event: Verified, parsed payment event
        event_bus: Bus receiving ``booking.confirmed``

    Returns:
        ConfirmationResult describing what, if anything, changed
    """
    if event.event_type != CHECKOUT_SESSION_COMPLETED:
        return ConfirmationResult(ConfirmationOutcome.IGNORED, reason="unhandled_event_type")

    reservation_id = event.booking_id
    if not reservation_id:
        logger.info("payment_event_without_booking", event_id=event.event_id)
        return ConfirmationResult(ConfirmationOutcome.SKIPPED, reason="missing_booking_id")

    with engine.connect() as conn:
        reservation = get_reservation(conn, reservation_id)
        housing = get_housing(conn, reservation["housing_id"]) if reservation else None

    if reservation is None:
        logger.warning("payment_event_unknown_reservation", reservation_id=reservation_id)
        return ConfirmationResult(
            ConfirmationOutcome.SKIPPED, reservation_id, reason="reservation_not_found"
        )
    if housing is None:
        logger.warning(
            "payment_event_housing_missing",
            reservation_id=reservation_id,
            housing_id=reservation["housing_id"],
        )
        return ConfirmationResult(
            ConfirmationOutcome.SKIPPED, reservation_id, reason="housing_not_found"
        )

    commission_rate = (
        settings.commission_rate
        if settings.commission_rate is not None
        else reservation["commission_rate"]
    )
    expected = compute_breakdown(
        monthly_rent=housing["price"],
        deposit=housing["deposit"] or 0,
        commission_rate=commission_rate,
    ).total
    recorded = to_decimal(reservation["total_amount"])
    # A flag raised by an earlier delivery is never cleared by a later one
    mismatch = bool(reservation["mismatch"]) or totals_diverge(expected, recorded)

    with engine.begin() as conn:
        updated = mark_reservation_confirmed(conn, reservation_id, mismatch)

    if not updated:
        logger.warning(
            "payment_for_closed_reservation",
            reservation_id=reservation_id,
            status=reservation["status"],
        )
        return ConfirmationResult(
            ConfirmationOutcome.SKIPPED, reservation_id, reason="reservation_not_confirmable"
        )

    logger.info(
        "reservation_confirmed",
        reservation_id=reservation_id,
        mismatch=mismatch,
        expected_total=str(expected),
        recorded_total=str(recorded),
        redelivery=reservation["status"] == "confirmed",
    )

    event_bus.emit(
        BOOKING_CONFIRMED,
        {
            "id": reservation_id,
            "mismatch": mismatch,
            "expectedTotal": float(expected),
            "recorded": float(recorded),
        },
        {"traceId": f"webhook-{reservation_id}"},
    )
    if mismatch:
        booking_mismatches.inc()

    return ConfirmationResult(
        ConfirmationOutcome.CONFIRMED,
        reservation_id,
        mismatch=mismatch,
        expected_total=expected,
        recorded_total=recorded,
    )
