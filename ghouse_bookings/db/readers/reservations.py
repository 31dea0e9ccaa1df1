from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from ghouse_bookings.models.housing import Housing
from ghouse_bookings.models.reservations import Reservation

_RESERVATION_COLUMNS = (
    Reservation.id,
    Reservation.tenant_id,
    Reservation.housing_id,
    Reservation.start_date,
    Reservation.end_date,
    Reservation.base_rent,
    Reservation.deposit,
    Reservation.commission_rate,
    Reservation.commission,
    Reservation.total_amount,
    Reservation.status,
    Reservation.mismatch,
    Reservation.created_at,
)


def get_reservation(conn: Connection, reservation_id: str) -> Optional[dict[str, Any]]:
    """
    Fetch a single reservation by id.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        reservation_id (str): Reservation ID.

    Returns:
        Optional[dict[str, Any]]: Reservation columns, or None if not found
    """
    row = (
        conn.execute(select(*_RESERVATION_COLUMNS).where(Reservation.id == reservation_id))
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def get_reservation_with_owner(
    conn: Connection, reservation_id: str
) -> Optional[dict[str, Any]]:
    """
    Fetch a reservation together with the landlord of its housing.

    Returns:
        Optional[dict[str, Any]]: Reservation columns plus ``landlord_id``
    """
    row = (
        conn.execute(
            select(*_RESERVATION_COLUMNS, Housing.landlord_id)
            .join(Housing, Housing.id == Reservation.housing_id)
            .where(Reservation.id == reservation_id)
        )
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def list_reservations_for_tenant(conn: Connection, tenant_id: str) -> list[dict[str, Any]]:
    """Reservations made by a tenant, newest first, with housing title and price."""
    result = conn.execute(
        select(
            *_RESERVATION_COLUMNS,
            Housing.title.label("housing_title"),
            Housing.price.label("housing_price"),
        )
        .join(Housing, Housing.id == Reservation.housing_id)
        .where(Reservation.tenant_id == tenant_id)
        .order_by(Reservation.created_at.desc())
    )
    return [dict(row) for row in result.mappings()]


def list_reservations_for_landlord(
    conn: Connection, landlord_id: str
) -> list[dict[str, Any]]:
    """Reservations on every housing owned by a landlord, newest first."""
    result = conn.execute(
        select(
            *_RESERVATION_COLUMNS,
            Housing.title.label("housing_title"),
            Housing.price.label("housing_price"),
        )
        .join(Housing, Housing.id == Reservation.housing_id)
        .where(Housing.landlord_id == landlord_id)
        .order_by(Reservation.created_at.desc())
    )
    return [dict(row) for row in result.mappings()]
