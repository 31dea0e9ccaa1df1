"""
Test helpers shared by conftest.py and the test modules.

These are plain functions and classes, not fixtures.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import time

import jwt
from prometheus_client import REGISTRY

from ghouse_bookings.config import JWT_ALGORITHM, JWT_SECRET
from ghouse_bookings.events.bus import EventEnvelope
from ghouse_bookings.payments.stripe_client import (
    CHECKOUT_SESSION_ID_PLACEHOLDER,
    CheckoutRequest,
    CheckoutSession,
)

WEBHOOK_SECRET = "whsec_test_secret"
TENANT_ID = "tenant-1"
LANDLORD_ID = "landlord-1"


class FakeGateway:
    """Records checkout requests and echoes the success URL back as the redirect."""

    def __init__(self) -> None:
        self.requests: list[CheckoutRequest] = []

    def create_checkout_session(self, request: CheckoutRequest) -> CheckoutSession:
        self.requests.append(request)
        session_id = f"cs_test_{len(self.requests)}"
        return CheckoutSession(
            session_id=session_id,
            url=request.success_url.replace(CHECKOUT_SESSION_ID_PLACEHOLDER, session_id),
        )


class EventRecorder:
    """Bus handler that keeps every envelope it receives."""

    def __init__(self) -> None:
        self.events: list[EventEnvelope] = []

    def __call__(self, envelope: EventEnvelope) -> None:
        self.events.append(envelope)

    def named(self, name: str) -> list[EventEnvelope]:
        return [e for e in self.events if e.name == name]


def make_token(user_id: str, role: str, secret: str = JWT_SECRET) -> str:
    return jwt.encode({"userId": user_id, "role": role}, secret, algorithm=JWT_ALGORITHM)


def auth_header(user_id: str, role: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, role)}"}


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Build a Stripe-Signature header value for ``payload``."""
    ts = int(time.time()) if timestamp is None else timestamp
    signature = hmac.new(
        secret.encode("utf-8"), f"{ts}.{payload}".encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return f"t={ts},v1={signature}"


def checkout_completed_event(
    booking_id: str | None,
    event_id: str = "evt_test_1",
    event_type: str = "checkout.session.completed",
) -> str:
    metadata = {"bookingId": booking_id, "tenantId": TENANT_ID} if booking_id else {}
    return json.dumps(
        {
            "id": event_id,
            "type": event_type,
            "data": {
                "object": {"id": "cs_test_1", "object": "checkout.session", "metadata": metadata}
            },
        }
    )


def sample(name: str, **labels: str) -> float:
    """Current value of a Prometheus sample, 0.0 if never observed."""
    return REGISTRY.get_sample_value(name, labels or None) or 0.0
