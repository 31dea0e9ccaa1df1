"""Payment processor webhook receiver route."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from starlette.concurrency import run_in_threadpool

from ghouse_bookings.config import BookingSettings
from ghouse_bookings.db.writers.webhook_failures import record_webhook_failure
from ghouse_bookings.dependencies import get_booking_settings, get_db_engine, get_event_bus
from ghouse_bookings.errors import ConfigurationError
from ghouse_bookings.events.bus import EventBus
from ghouse_bookings.metrics import webhook_events
from ghouse_bookings.payments.webhook import PaymentEvent, parse_event, verify_signature
from ghouse_bookings.services.confirmation import process_payment_event

router = APIRouter()
logger = structlog.get_logger(__name__)

SIGNATURE_HEADER = "Stripe-Signature"


@router.post("/webhook")
async def receive_payment_webhook(
    request: Request,
    engine: Engine = Depends(get_db_engine),
    settings: BookingSettings = Depends(get_booking_settings),
    event_bus: EventBus = Depends(get_event_bus),
) -> JSONResponse:
    """
    Handle payment processor callbacks.

    Only ``checkout.session.completed`` changes state; every other verified
    event is acknowledged untouched.

    Authentication: ``Stripe-Signature`` HMAC over the raw, unparsed body.

    Returns:
        JSONResponse: ``{"received": true}`` whenever the signature verifies,
        even if processing failed (failures are dead-lettered instead, so the
        processor does not retry-storm us)

    Errors:
        400 if the signature is missing or invalid, 500 if no webhook secret
        is configured
    """
    if not settings.stripe_webhook_secret:
        logger.error("webhook_secret_missing")
        raise ConfigurationError("Webhook secret is not configured", code="WEBHOOK_SECRET_MISSING")

    raw_body = await request.body()
    body = verify_signature(
        raw_body, request.headers.get(SIGNATURE_HEADER), settings.stripe_webhook_secret
    )

    event: PaymentEvent | None = None
    try:
        event = parse_event(body)
        logger.info("webhook_received", event_id=event.event_id, event_type=event.event_type)
        result = await run_in_threadpool(
            process_payment_event, engine, settings, event, event_bus
        )
        webhook_events.labels(event_type=event.event_type, outcome=result.outcome.value).inc()
        if result.reason:
            logger.info(
                "webhook_no_state_change",
                event_type=event.event_type,
                reservation_id=result.reservation_id,
                reason=result.reason,
            )
    except Exception as e:
        event_type = event.event_type if event else "unknown"
        webhook_events.labels(event_type=event_type, outcome="failed").inc()
        logger.exception(
            "webhook_processing_failed",
            event_id=event.event_id if event else None,
            event_type=event_type,
            reservation_id=event.booking_id if event else None,
            error=str(e),
        )
        await run_in_threadpool(
            record_webhook_failure,
            engine,
            body,
            f"{type(e).__name__}: {e}",
            event.event_id if event else None,
            event_type,
            event.booking_id if event else None,
        )

    return JSONResponse(content={"received": True})
