from typing import Any

from sqlalchemy import select
from sqlalchemy.engine import Connection

from ghouse_bookings.models.webhook_failures import WebhookFailure


def list_unresolved_failures(conn: Connection, limit: int = 100) -> list[dict[str, Any]]:
    """
    Oldest unresolved dead-letter entries first.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        limit (int): Maximum number of entries to return.
    """
    result = conn.execute(
        select(
            WebhookFailure.id,
            WebhookFailure.event_id,
            WebhookFailure.event_type,
            WebhookFailure.reservation_id,
            WebhookFailure.raw_payload,
        )
        .where(WebhookFailure.resolved_at.is_(None))
        .order_by(WebhookFailure.id)
        .limit(limit)
    )
    return [dict(row) for row in result.mappings()]
