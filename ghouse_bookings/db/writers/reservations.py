from datetime import datetime

import structlog
from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from ghouse_bookings.models.base import new_id
from ghouse_bookings.models.reservations import Reservation, ReservationStatus
from ghouse_bookings.pricing import ReservationBreakdown
from ghouse_bookings.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def insert_reservation(
    conn: Connection,
    tenant_id: str,
    housing_id: str,
    start_date: datetime,
    end_date: datetime,
    breakdown: ReservationBreakdown,
) -> str:
    """
    Insert a pending reservation carrying a pricing snapshot.

    Every monetary column comes from ``breakdown``; nothing else is allowed to
    set commission or total_amount.

    Args:
        conn: Active database connection (within transaction)
        tenant_id: Tenant making the reservation
        housing_id: Reserved housing
        start_date: Start of the occupancy window
        end_date: End of the occupancy window (strictly after start_date)
        breakdown: Output of ``compute_breakdown``

    Returns:
        str: The new reservation id
    """
    reservation_id = new_id()
    conn.execute(
        insert(Reservation).values(
            id=reservation_id,
            tenant_id=tenant_id,
            housing_id=housing_id,
            start_date=start_date,
            end_date=end_date,
            base_rent=breakdown.base_rent,
            deposit=breakdown.deposit,
            commission_rate=breakdown.commission_rate,
            commission=breakdown.commission,
            total_amount=breakdown.total,
            status=ReservationStatus.PENDING.value,
            mismatch=False,
            created_at=utc_now(),
        )
    )
    logger.debug("reservation_inserted", reservation_id=reservation_id)
    return reservation_id


def mark_reservation_confirmed(conn: Connection, reservation_id: str, mismatch: bool) -> int:
    """
    Set status=confirmed and the mismatch flag in a single statement.

    A cancelled reservation is left alone. Re-confirming an already confirmed
    reservation is allowed so duplicate webhook deliveries stay harmless.

    Returns:
        int: Number of rows updated (0 if missing or cancelled)
    """
    result = conn.execute(
        update(Reservation)
        .where(Reservation.id == reservation_id)
        .where(
            Reservation.status.in_(
                [ReservationStatus.PENDING.value, ReservationStatus.CONFIRMED.value]
            )
        )
        .values(status=ReservationStatus.CONFIRMED.value, mismatch=mismatch)
    )
    return result.rowcount


def transition_pending_reservation(
    conn: Connection, reservation_id: str, status: ReservationStatus
) -> int:
    """
    Move a pending reservation to ``status``.

    The ``status = 'pending'`` guard lives in the WHERE clause so that a
    concurrent confirmation and a manual update cannot both win.

    Returns:
        int: Number of rows updated (0 if the reservation already left pending)
    """
    result = conn.execute(
        update(Reservation)
        .where(Reservation.id == reservation_id)
        .where(Reservation.status == ReservationStatus.PENDING.value)
        .values(status=status.value)
    )
    return result.rowcount
