from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from ghouse_bookings.models.housing import Housing


def get_housing(conn: Connection, housing_id: str) -> Optional[dict[str, Any]]:
    """
    Fetch the pricing and ownership fields of a housing listing.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        housing_id (str): Housing ID.

    Returns:
        Optional[dict[str, Any]]: id, landlord_id, title, price, deposit, or None
    """
    row = (
        conn.execute(
            select(
                Housing.id,
                Housing.landlord_id,
                Housing.title,
                Housing.price,
                Housing.deposit,
            ).where(Housing.id == housing_id)
        )
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None
