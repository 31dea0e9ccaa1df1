from typing import Optional

import structlog
from sqlalchemy import insert, update
from sqlalchemy.engine import Connection, Engine

from ghouse_bookings.models.webhook_failures import WebhookFailure
from ghouse_bookings.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def record_webhook_failure(
    engine: Engine,
    raw_payload: str,
    error: str,
    event_id: Optional[str] = None,
    event_type: Optional[str] = None,
    reservation_id: Optional[str] = None,
) -> bool:
    """
    Write a dead-letter entry for a webhook that could not be processed.

    Runs in its own transaction so it is not rolled back with the failed
    processing attempt. A failure here is logged and reported through the
    return value; the caller still acknowledges the webhook.

    Returns:
        bool: True if the entry was stored
    """
    try:
        with engine.begin() as conn:
            conn.execute(
                insert(WebhookFailure).values(
                    event_id=event_id,
                    event_type=event_type,
                    reservation_id=reservation_id,
                    error=error,
                    raw_payload=raw_payload,
                    created_at=utc_now(),
                )
            )
    except Exception as e:
        logger.exception(
            "webhook_dead_letter_write_failed",
            event_id=event_id,
            event_type=event_type,
            reservation_id=reservation_id,
            error=str(e),
        )
        return False

    logger.info(
        "webhook_dead_lettered",
        event_id=event_id,
        event_type=event_type,
        reservation_id=reservation_id,
    )
    return True


def mark_failure_resolved(conn: Connection, failure_id: int) -> None:
    """Stamp a dead-letter entry as replayed successfully."""
    conn.execute(
        update(WebhookFailure)
        .where(WebhookFailure.id == failure_id)
        .values(resolved_at=utc_now())
    )
