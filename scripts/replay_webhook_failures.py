import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse

import structlog
from sqlalchemy.engine import Engine

from ghouse_bookings.config import load_booking_settings
from ghouse_bookings.db.engine import engine
from ghouse_bookings.db.readers.webhook_failures import list_unresolved_failures
from ghouse_bookings.db.writers.webhook_failures import mark_failure_resolved
from ghouse_bookings.events.bus import bus
from ghouse_bookings.events.subscribers import register_default_subscribers
from ghouse_bookings.logging_config import setup_logging
from ghouse_bookings.payments.webhook import parse_event
from ghouse_bookings.services.confirmation import process_payment_event

logger = structlog.get_logger(__name__)


def replay_failures(db_engine: Engine, limit: int = 100, dry_run: bool = False) -> tuple[int, int]:
    """
    Re-run dead-lettered payment webhooks through the confirmation handler.

    Entries that process cleanly are marked resolved; entries that fail again
    stay unresolved for the next run.

    Returns:
        tuple[int, int]: (replayed, still_failing)
    """
    settings = load_booking_settings()
    with db_engine.connect() as conn:
        failures = list_unresolved_failures(conn, limit=limit)

    logger.info("webhook_replay_started", pending=len(failures), dry_run=dry_run)

    replayed = 0
    still_failing = 0
    for failure in failures:
        if dry_run:
            logger.info(
                "webhook_replay_would_run",
                failure_id=failure["id"],
                event_type=failure["event_type"],
                reservation_id=failure["reservation_id"],
            )
            continue
        try:
            event = parse_event(failure["raw_payload"])
            result = process_payment_event(db_engine, settings, event, bus)
        except Exception as e:
            still_failing += 1
            logger.exception("webhook_replay_failed", failure_id=failure["id"], error=str(e))
            continue

        with db_engine.begin() as conn:
            mark_failure_resolved(conn, failure["id"])
        replayed += 1
        logger.info(
            "webhook_replayed",
            failure_id=failure["id"],
            outcome=result.outcome.value,
            reservation_id=result.reservation_id,
        )

    logger.info("webhook_replay_completed", replayed=replayed, still_failing=still_failing)
    return replayed, still_failing


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay dead-lettered payment webhooks.")
    parser.add_argument("--limit", type=int, default=100, help="Maximum entries to replay")
    parser.add_argument("--dry-run", action="store_true", help="List entries without replaying")
    args = parser.parse_args()

    setup_logging()
    register_default_subscribers(bus)
    _, still_failing = replay_failures(engine, limit=args.limit, dry_run=args.dry_run)
    if still_failing:
        sys.exit(1)


if __name__ == "__main__":
    main()
