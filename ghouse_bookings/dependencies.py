"""
FastAPI dependency injection providers.

Routes receive the engine, booking settings, payment gateway factory and
event bus through these providers. Tests swap any of them with
``app.dependency_overrides``.

Testing Example:
    >>> app.dependency_overrides[get_gateway_factory] = lambda: (lambda settings: FakeGateway())
    >>> app.dependency_overrides[get_booking_settings] = lambda: BookingSettings(
    ...     commission_rate=Decimal("0.4"), stripe_webhook_secret="whsec_test"
    ... )
"""

from __future__ import annotations

from typing import Generator

from sqlalchemy.engine import Engine

from ghouse_bookings.config import BookingSettings, load_booking_settings
from ghouse_bookings.db.engine import engine
from ghouse_bookings.events.bus import EventBus, bus
from ghouse_bookings.services.checkout import GatewayFactory, stripe_gateway_factory


def get_db_engine() -> Generator[Engine, None, None]:
    """Provide the SQLAlchemy engine singleton."""
    yield engine


def get_booking_settings() -> BookingSettings:
    """Resolve booking settings from the environment for this request."""
    return load_booking_settings()


def get_gateway_factory() -> GatewayFactory:
    """Provide the callable that builds a payment gateway from settings."""
    return stripe_gateway_factory


def get_event_bus() -> EventBus:
    """Provide the process-wide event bus."""
    return bus
