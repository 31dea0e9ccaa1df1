"""Checkout session initiation: price a reservation, persist it, open a payment session."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

import structlog
from sqlalchemy.engine import Engine

from ghouse_bookings.auth import Principal
from ghouse_bookings.config import BookingSettings
from ghouse_bookings.db.readers.housing import get_housing
from ghouse_bookings.db.writers.reservations import insert_reservation
from ghouse_bookings.errors import ForbiddenError, NotFoundError, ValidationError
from ghouse_bookings.events.bus import BOOKING_CREATED, EventBus, bus
from ghouse_bookings.payments.stripe_client import (
    CHECKOUT_SESSION_ID_PLACEHOLDER,
    CheckoutRequest,
    PaymentGateway,
    StripeCheckoutGateway,
)
from ghouse_bookings.pricing import calculate_price_cents, compute_breakdown, to_minor_units
from ghouse_bookings.utils.datetime import ensure_utc

logger = structlog.get_logger(__name__)

GatewayFactory = Callable[[BookingSettings], PaymentGateway]


def stripe_gateway_factory(settings: BookingSettings) -> PaymentGateway:
    return StripeCheckoutGateway(api_key=settings.stripe_secret_key)


@dataclass(frozen=True)
class CheckoutResult:
    session_id: str
    url: str
    reservation_id: str


def build_success_url(settings: BookingSettings, reservation_id: str) -> str:
    return (
        f"{settings.frontend_url}/success"
        f"?session_id={CHECKOUT_SESSION_ID_PLACEHOLDER}&booking_id={reservation_id}"
    )


def build_cancel_url(settings: BookingSettings, housing_id: str) -> str:
    return f"{settings.frontend_url}/housing/{housing_id}"


def create_checkout_session(
    engine: Engine,
    settings: BookingSettings,
    principal: Principal,
    housing_id: str,
    start_date: datetime,
    end_date: datetime,
    gateway_factory: GatewayFactory = stripe_gateway_factory,
    event_bus: EventBus = bus,
    trace_id: str | None = None,
) -> CheckoutResult:
    """
    Create a pending reservation and a payment session for it.

    Every call creates a new reservation; duplicate submissions are not
    detected here.

    Args:
        engine: SQLAlchemy engine
        settings: Booking settings resolved for this request
        principal: Authenticated caller (must be a tenant)
        housing_id: Housing to reserve
        start_date: Start of the stay
        end_date: End of the stay (strictly after start_date)
        gateway_factory: Builds the payment gateway from settings
        event_bus: Bus receiving ``booking.created``
        trace_id: Request id forwarded as event metadata

    Returns:
        CheckoutResult with the processor session id and redirect URL

    Raises:
        ForbiddenError: Caller is not a tenant (checked before any lookup)
        NotFoundError: Housing does not exist
        ValidationError: end_date is not strictly after start_date
        ConfigurationError: Payment processor is not configured
        PaymentProviderError: Payment session creation failed
    """
    if not principal.is_tenant:
        raise ForbiddenError("Only a tenant can make a reservation")

    with engine.connect() as conn:
        housing = get_housing(conn, housing_id)
    if housing is None:
        raise NotFoundError("Housing not found", code="HOUSING_NOT_FOUND")

    start = ensure_utc(start_date)
    end = ensure_utc(end_date)
    if calculate_price_cents(housing["price"], start, end) <= 0:
        raise ValidationError("Invalid booking period", code="INVALID_BOOKING_WINDOW")

    breakdown = compute_breakdown(
        monthly_rent=housing["price"],
        deposit=housing["deposit"] or 0,
        commission_rate=settings.effective_commission_rate,
    )

    gateway = gateway_factory(settings)

    with engine.begin() as conn:
        reservation_id = insert_reservation(
            conn,
            tenant_id=principal.user_id,
            housing_id=housing_id,
            start_date=start,
            end_date=end,
            breakdown=breakdown,
        )

    logger.info(
        "reservation_created",
        reservation_id=reservation_id,
        tenant_id=principal.user_id,
        housing_id=housing_id,
        total=str(breakdown.total),
        commission_rate=str(breakdown.commission_rate),
    )

    event_bus.emit(
        BOOKING_CREATED,
        {
            "id": reservation_id,
            "tenant": principal.user_id,
            "housing": housing_id,
            "total": float(breakdown.total),
        },
        {"traceId": trace_id},
    )

    session = gateway.create_checkout_session(
        CheckoutRequest(
            amount_cents=to_minor_units(breakdown.total),
            currency=settings.currency,
            product_name=f"Reservation: {housing['title']}",
            success_url=build_success_url(settings, reservation_id),
            cancel_url=build_cancel_url(settings, housing_id),
            metadata={"bookingId": reservation_id, "tenantId": principal.user_id},
            idempotency_key=f"booking:{reservation_id}:checkout_session",
        )
    )

    return CheckoutResult(session_id=session.session_id, url=session.url, reservation_id=reservation_id)
