"""
Stripe webhook signature verification and event parsing.

The signature is checked against the raw request body exactly as received;
the body is only parsed as JSON afterwards. Neither the payload nor the
signature header is ever logged.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import stripe
import structlog

from ghouse_bookings.errors import SignatureError

logger = structlog.get_logger(__name__)

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
SIGNATURE_TOLERANCE_SECONDS = 300


@dataclass(frozen=True)
class PaymentEvent:
    """The parts of a Stripe event the confirmation handler needs."""

    event_id: str | None
    event_type: str
    data_object: dict[str, Any]

    @property
    def booking_id(self) -> str | None:
        metadata = self.data_object.get("metadata") or {}
        booking_id = metadata.get("bookingId")
        return str(booking_id) if booking_id else None


def parse_event(payload: str) -> PaymentEvent:
    """
    Parse a verified event body.

    Raises:
        ValueError: If the body is not a JSON object with a ``type``
    """
    event = json.loads(payload)
    if not isinstance(event, dict) or not event.get("type"):
        raise ValueError("Event payload has no type")
    data_object = (event.get("data") or {}).get("object") or {}
    return PaymentEvent(
        event_id=event.get("id"),
        event_type=str(event["type"]),
        data_object=data_object if isinstance(data_object, dict) else {},
    )


def verify_signature(payload: bytes, signature_header: str | None, webhook_secret: str) -> str:
    """
    Verify the ``Stripe-Signature`` header against the raw body.

    Args:
        payload: Raw request body bytes
        signature_header: Value of the Stripe-Signature header
        webhook_secret: Endpoint signing secret

    Returns:
        str: The body decoded as UTF-8, safe to parse

    Raises:
        SignatureError: If the header is missing, malformed, stale or wrong
    """
    if not signature_header:
        logger.warning("stripe_signature_missing")
        raise SignatureError("Missing Stripe-Signature header")

    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise SignatureError("Webhook body is not valid UTF-8") from e

    try:
        stripe.WebhookSignature.verify_header(
            body, signature_header, webhook_secret, tolerance=SIGNATURE_TOLERANCE_SECONDS
        )
    except stripe.SignatureVerificationError as e:
        logger.warning("stripe_signature_verification_failed")
        raise SignatureError(f"Webhook Error: {e.user_message or 'invalid signature'}") from e

    return body
