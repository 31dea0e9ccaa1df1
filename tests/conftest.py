"""
Shared fixtures.

The environment is pinned before any ``ghouse_bookings`` import: the
reservation store is an in-memory SQLite database and the payment processor
is replaced by ``FakeGateway`` through dependency overrides.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Generator

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("ALLOWED_ORIGINS", "http://localhost:5173")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-with-at-least-32-characters")
for _var in ("RESERVATION_COMMISSION_RATE", "STRIPE_SECRET_KEY", "STRIPE_WEBHOOK_SECRET"):
    os.environ.pop(_var, None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import insert  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402

from ghouse_bookings.config import BookingSettings  # noqa: E402
from ghouse_bookings.db.engine import engine  # noqa: E402
from ghouse_bookings.dependencies import (  # noqa: E402
    get_booking_settings,
    get_event_bus,
    get_gateway_factory,
)
from ghouse_bookings.events.bus import (  # noqa: E402
    BOOKING_CONFIRMED,
    BOOKING_CREATED,
    BOOKING_STATUS_UPDATED,
    EventBus,
)
from ghouse_bookings.main import app  # noqa: E402
from ghouse_bookings.models.base import Base, new_id  # noqa: E402
from ghouse_bookings.models.housing import Housing  # noqa: E402
from helpers import LANDLORD_ID, WEBHOOK_SECRET, EventRecorder, FakeGateway  # noqa: E402


@pytest.fixture
def db_engine() -> Generator[Engine, None, None]:
    """Fresh schema on the shared in-memory engine for each test."""
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)


@pytest.fixture
def create_housing(db_engine: Engine) -> Callable[..., str]:
    """Factory inserting a housing row and returning its id."""

    def _create(
        price: Any = Decimal("1000"),
        deposit: Any = Decimal("500"),
        landlord_id: str = LANDLORD_ID,
        title: str = "Studio Belleville",
    ) -> str:
        housing_id = new_id()
        with db_engine.begin() as conn:
            conn.execute(
                insert(Housing).values(
                    id=housing_id,
                    landlord_id=landlord_id,
                    title=title,
                    price=price,
                    deposit=deposit,
                    status="active",
                    created_at=datetime.now(timezone.utc),
                )
            )
        return housing_id

    return _create


@pytest.fixture
def stay_window() -> tuple[datetime, datetime]:
    start = datetime.now(timezone.utc).replace(microsecond=0) + timedelta(days=3)
    return start, start + timedelta(days=7)


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()


@pytest.fixture
def event_bus(recorder: EventRecorder) -> EventBus:
    """Isolated bus with a recorder on every booking event."""
    bus = EventBus()
    for name in (BOOKING_CREATED, BOOKING_CONFIRMED, BOOKING_STATUS_UPDATED):
        bus.on(name, recorder)
    return bus


@pytest.fixture
def booking_settings() -> BookingSettings:
    return BookingSettings(
        commission_rate=Decimal("0.4"),
        frontend_url="https://frontend.test",
        currency="eur",
        stripe_secret_key=None,
        stripe_webhook_secret=WEBHOOK_SECRET,
    )


@pytest.fixture
def client(
    db_engine: Engine,
    fake_gateway: FakeGateway,
    event_bus: EventBus,
    booking_settings: BookingSettings,
) -> Generator[TestClient, None, None]:
    """TestClient with the gateway, bus and settings swapped for test doubles."""
    app.dependency_overrides[get_gateway_factory] = lambda: (lambda settings: fake_gateway)
    app.dependency_overrides[get_event_bus] = lambda: event_bus
    app.dependency_overrides[get_booking_settings] = lambda: booking_settings
    yield TestClient(app)
    app.dependency_overrides.clear()
