"""
Integration tests for checkout session creation against the SQLite store.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.engine import Engine

from ghouse_bookings.auth import Principal
from ghouse_bookings.config import BookingSettings
from ghouse_bookings.db.readers.reservations import get_reservation
from ghouse_bookings.errors import (
    ConfigurationError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from ghouse_bookings.events.bus import EventBus
from ghouse_bookings.models.reservations import Reservation
from ghouse_bookings.services.checkout import create_checkout_session
from helpers import LANDLORD_ID, TENANT_ID, EventRecorder, FakeGateway

TENANT = Principal(user_id=TENANT_ID, role="tenant")
LANDLORD = Principal(user_id=LANDLORD_ID, role="landlord")


def _reservation_count(engine: Engine) -> int:
    with engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(Reservation)).scalar_one()


@pytest.mark.integration
def test_checkout_creates_pending_reservation_with_snapshot(
    db_engine: Engine,
    create_housing: Callable[..., str],
    stay_window: tuple[datetime, datetime],
    booking_settings: BookingSettings,
    fake_gateway: FakeGateway,
    event_bus: EventBus,
) -> None:
    """Test that checkout persists a pending reservation priced at checkout time."""
    housing_id = create_housing(price=Decimal("1000"), deposit=Decimal("500"))
    start, end = stay_window

    result = create_checkout_session(
        db_engine,
        booking_settings,
        TENANT,
        housing_id,
        start,
        end,
        gateway_factory=lambda settings: fake_gateway,
        event_bus=event_bus,
    )

    with db_engine.connect() as conn:
        reservation = get_reservation(conn, result.reservation_id)
    assert reservation is not None
    assert reservation["status"] == "pending"
    assert reservation["mismatch"] is False
    assert reservation["tenant_id"] == TENANT_ID
    assert reservation["housing_id"] == housing_id
    assert reservation["base_rent"] == Decimal("1000")
    assert reservation["deposit"] == Decimal("500")
    assert reservation["commission_rate"] == Decimal("0.4")
    assert reservation["commission"] == Decimal("600.00")
    assert reservation["total_amount"] == Decimal("2100.00")
    assert reservation["base_rent"] + reservation["deposit"] + reservation["commission"] == (
        reservation["total_amount"]
    )


@pytest.mark.integration
def test_checkout_charges_total_and_embeds_reservation_id(
    db_engine: Engine,
    create_housing: Callable[..., str],
    stay_window: tuple[datetime, datetime],
    booking_settings: BookingSettings,
    fake_gateway: FakeGateway,
    event_bus: EventBus,
) -> None:
    """Test the payment request: amount in cents, metadata and redirect URLs."""
    housing_id = create_housing(title="Loft Oberkampf")
    start, end = stay_window

    result = create_checkout_session(
        db_engine,
        booking_settings,
        TENANT,
        housing_id,
        start,
        end,
        gateway_factory=lambda settings: fake_gateway,
        event_bus=event_bus,
    )

    request = fake_gateway.requests[0]
    assert request.amount_cents == 210000
    assert request.currency == "eur"
    assert request.product_name == "Reservation: Loft Oberkampf"
    assert request.metadata == {"bookingId": result.reservation_id, "tenantId": TENANT_ID}
    assert request.success_url == (
        "https://frontend.test/success?session_id={CHECKOUT_SESSION_ID}"
        f"&booking_id={result.reservation_id}"
    )
    assert request.cancel_url == f"https://frontend.test/housing/{housing_id}"
    assert request.idempotency_key == f"booking:{result.reservation_id}:checkout_session"
    assert result.reservation_id in result.url
    assert result.session_id == "cs_test_1"


@pytest.mark.integration
def test_checkout_emits_booking_created(
    db_engine: Engine,
    create_housing: Callable[..., str],
    stay_window: tuple[datetime, datetime],
    booking_settings: BookingSettings,
    fake_gateway: FakeGateway,
    event_bus: EventBus,
    recorder: EventRecorder,
) -> None:
    """Test that booking.created carries id, tenant, housing, total and traceId."""
    housing_id = create_housing()
    start, end = stay_window

    result = create_checkout_session(
        db_engine,
        booking_settings,
        TENANT,
        housing_id,
        start,
        end,
        gateway_factory=lambda settings: fake_gateway,
        event_bus=event_bus,
        trace_id="req-123",
    )

    [created] = recorder.named("booking.created")
    assert created.payload == {
        "id": result.reservation_id,
        "tenant": TENANT_ID,
        "housing": housing_id,
        "total": 2100.0,
    }
    assert created.meta == {"traceId": "req-123"}


@pytest.mark.integration
def test_checkout_uses_configured_commission_rate(
    db_engine: Engine,
    create_housing: Callable[..., str],
    stay_window: tuple[datetime, datetime],
    fake_gateway: FakeGateway,
    event_bus: EventBus,
) -> None:
    """Test that a configured commission rate overrides the default."""
    housing_id = create_housing(price=Decimal("1000"), deposit=Decimal("0"))
    settings = BookingSettings(commission_rate=Decimal("0.1"), frontend_url="https://frontend.test")
    start, end = stay_window

    result = create_checkout_session(
        db_engine,
        settings,
        TENANT,
        housing_id,
        start,
        end,
        gateway_factory=lambda s: fake_gateway,
        event_bus=event_bus,
    )

    with db_engine.connect() as conn:
        reservation = get_reservation(conn, result.reservation_id)
    assert reservation is not None
    assert reservation["commission_rate"] == Decimal("0.1")
    assert reservation["total_amount"] == Decimal("1100.00")


@pytest.mark.integration
def test_checkout_rejects_non_tenant_before_housing_lookup(
    db_engine: Engine,
    stay_window: tuple[datetime, datetime],
    booking_settings: BookingSettings,
    fake_gateway: FakeGateway,
    event_bus: EventBus,
) -> None:
    """Test that a landlord is refused before the housing is even read."""
    start, end = stay_window

    with patch("ghouse_bookings.services.checkout.get_housing") as mock_get_housing:
        with pytest.raises(ForbiddenError):
            create_checkout_session(
                db_engine,
                booking_settings,
                LANDLORD,
                "does-not-matter",
                start,
                end,
                gateway_factory=lambda settings: fake_gateway,
                event_bus=event_bus,
            )

    mock_get_housing.assert_not_called()
    assert fake_gateway.requests == []


@pytest.mark.integration
def test_checkout_unknown_housing(
    db_engine: Engine,
    stay_window: tuple[datetime, datetime],
    booking_settings: BookingSettings,
    fake_gateway: FakeGateway,
    event_bus: EventBus,
) -> None:
    """Test that an unknown housing is a not-found error."""
    start, end = stay_window

    with pytest.raises(NotFoundError) as exc_info:
        create_checkout_session(
            db_engine,
            booking_settings,
            TENANT,
            "missing-housing",
            start,
            end,
            gateway_factory=lambda settings: fake_gateway,
            event_bus=event_bus,
        )

    assert exc_info.value.code == "HOUSING_NOT_FOUND"


@pytest.mark.integration
@pytest.mark.parametrize("offset", [timedelta(0), timedelta(days=-2)])
def test_checkout_rejects_empty_or_reversed_window(
    offset: timedelta,
    db_engine: Engine,
    create_housing: Callable[..., str],
    stay_window: tuple[datetime, datetime],
    booking_settings: BookingSettings,
    fake_gateway: FakeGateway,
    event_bus: EventBus,
    recorder: EventRecorder,
) -> None:
    """Test that end <= start is rejected and nothing is persisted or emitted."""
    housing_id = create_housing()
    start, _ = stay_window

    with pytest.raises(ValidationError):
        create_checkout_session(
            db_engine,
            booking_settings,
            TENANT,
            housing_id,
            start,
            start + offset,
            gateway_factory=lambda settings: fake_gateway,
            event_bus=event_bus,
        )

    assert _reservation_count(db_engine) == 0
    assert recorder.events == []
    assert fake_gateway.requests == []


@pytest.mark.integration
def test_checkout_without_processor_key_persists_nothing(
    db_engine: Engine,
    create_housing: Callable[..., str],
    stay_window: tuple[datetime, datetime],
    booking_settings: BookingSettings,
    event_bus: EventBus,
) -> None:
    """Test that a missing Stripe key fails before a reservation is written."""
    housing_id = create_housing()
    start, end = stay_window

    with pytest.raises(ConfigurationError):
        create_checkout_session(
            db_engine, booking_settings, TENANT, housing_id, start, end, event_bus=event_bus
        )

    assert _reservation_count(db_engine) == 0


@pytest.mark.integration
def test_checkout_never_deduplicates(
    db_engine: Engine,
    create_housing: Callable[..., str],
    stay_window: tuple[datetime, datetime],
    booking_settings: BookingSettings,
    fake_gateway: FakeGateway,
    event_bus: EventBus,
) -> None:
    """Test that two identical requests create two reservations."""
    housing_id = create_housing()
    start, end = stay_window

    ids = {
        create_checkout_session(
            db_engine,
            booking_settings,
            TENANT,
            housing_id,
            start,
            end,
            gateway_factory=lambda settings: fake_gateway,
            event_bus=event_bus,
        ).reservation_id
        for _ in range(2)
    }

    assert len(ids) == 2
    assert _reservation_count(db_engine) == 2
