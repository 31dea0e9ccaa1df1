"""
Thin wrapper around the Stripe SDK for Checkout sessions.

Domain code talks to ``PaymentGateway`` rather than importing ``stripe``, so
tests can substitute a fake through FastAPI dependency overrides. Only ids are
logged, never full Stripe payloads.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Protocol

import requests
import stripe
import structlog

from ghouse_bookings.config import STRIPE_MAX_NETWORK_RETRIES, STRIPE_TIMEOUT_SECONDS
from ghouse_bookings.errors import ConfigurationError, PaymentProviderError
from ghouse_bookings.metrics import payment_api_latency, payment_api_requests

logger = structlog.get_logger(__name__)

# Stripe substitutes the real session id for this token in the success URL
CHECKOUT_SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    url: str


@dataclass(frozen=True)
class CheckoutRequest:
    """Everything needed to open a one-line-item payment session."""

    amount_cents: int
    currency: str
    product_name: str
    success_url: str
    cancel_url: str
    metadata: dict[str, str]
    idempotency_key: str


class PaymentGateway(Protocol):
    def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession: ...


class StripeCheckoutGateway:
    """
    Stripe Checkout implementation of ``PaymentGateway``.

    Outbound calls go through a ``requests`` session with a bounded timeout;
    retries are left to the caller, who retries by creating a new reservation.

    Example:
        >>> gateway = StripeCheckoutGateway(api_key="sk_test_...")
        >>> session = gateway.create_checkout_session(request)
        >>> session.url
    """

    def __init__(
        self,
        api_key: str | None,
        timeout: float = STRIPE_TIMEOUT_SECONDS,
        max_network_retries: int = STRIPE_MAX_NETWORK_RETRIES,
    ) -> None:
        if not api_key:
            raise ConfigurationError("STRIPE_SECRET_KEY is not configured")
        self._client = stripe.StripeClient(
            api_key,
            http_client=stripe.RequestsClient(timeout=timeout, session=requests.Session()),
            max_network_retries=max_network_retries,
        )

    def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession:
        """
        Create a Stripe Checkout Session for a single line item.

        Raises:
            PaymentProviderError: If Stripe rejects the request or is unreachable
        """
        params = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": request.currency,
                        "unit_amount": request.amount_cents,
                        "product_data": {"name": request.product_name},
                    },
                    "quantity": 1,
                }
            ],
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "metadata": request.metadata,
        }

        started = time.perf_counter()
        try:
            session = self._client.v1.checkout.sessions.create(
                params=params,  # type: ignore[arg-type]
                options={"idempotency_key": request.idempotency_key},
            )
        except stripe.StripeError as e:
            payment_api_requests.labels(
                operation="create_checkout_session", status="failure"
            ).inc()
            logger.error(
                "stripe_checkout_session_failed",
                booking_id=request.metadata.get("bookingId"),
                error=str(e),
            )
            raise PaymentProviderError("Payment session could not be created") from e
        finally:
            payment_api_latency.labels(operation="create_checkout_session").observe(
                time.perf_counter() - started
            )

        payment_api_requests.labels(operation="create_checkout_session", status="success").inc()
        logger.info(
            "stripe_checkout_session_created",
            session_id=session.id,
            booking_id=request.metadata.get("bookingId"),
        )
        return CheckoutSession(session_id=session.id, url=session.url or "")
