"""Booking routes: checkout creation, listing, and landlord status updates."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.engine import Engine

from ghouse_bookings.auth import Principal, get_current_principal
from ghouse_bookings.config import BookingSettings
from ghouse_bookings.dependencies import (
    get_booking_settings,
    get_db_engine,
    get_event_bus,
    get_gateway_factory,
)
from ghouse_bookings.events.bus import EventBus
from ghouse_bookings.middleware import get_request_id
from ghouse_bookings.models.reservations import ReservationStatus
from ghouse_bookings.schemas.bookings import (
    BookingListResponse,
    BookingStatusPayload,
    BookingStatusResponse,
    CheckoutSessionPayload,
    CheckoutSessionResponse,
    ReservationOut,
)
from ghouse_bookings.services.bookings import list_bookings, update_reservation_status
from ghouse_bookings.services.checkout import GatewayFactory, create_checkout_session

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "/create-checkout-session",
    status_code=status.HTTP_200_OK,
    response_model=CheckoutSessionResponse,
)
def create_checkout_session_endpoint(
    payload: CheckoutSessionPayload,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    engine: Engine = Depends(get_db_engine),
    settings: BookingSettings = Depends(get_booking_settings),
    gateway_factory: GatewayFactory = Depends(get_gateway_factory),
    event_bus: EventBus = Depends(get_event_bus),
) -> CheckoutSessionResponse:
    """
    Reserve a housing and open a payment session.

    Returns:
        CheckoutSessionResponse: ``{sessionId, url}``; the client redirects to url

    Errors:
        403 if the caller is not a tenant, 404 if the housing does not exist,
        400 if endDate is not after startDate
    """
    result = create_checkout_session(
        engine,
        settings,
        principal,
        housing_id=payload.housing_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        gateway_factory=gateway_factory,
        event_bus=event_bus,
        trace_id=get_request_id(request),
    )
    logger.info(
        "checkout_session_started",
        reservation_id=result.reservation_id,
        session_id=result.session_id,
    )
    return CheckoutSessionResponse(session_id=result.session_id, url=result.url)


@router.get("/user", response_model=BookingListResponse)
def list_user_bookings(
    principal: Principal = Depends(get_current_principal),
    engine: Engine = Depends(get_db_engine),
) -> BookingListResponse:
    """List the caller's bookings (tenant) or bookings on the caller's housing (landlord)."""
    rows = list_bookings(engine, principal)
    return BookingListResponse(bookings=[ReservationOut.from_row(row).to_response() for row in rows])


@router.put("/user/{reservation_id}/status", response_model=BookingStatusResponse)
def update_booking_status(
    reservation_id: str,
    payload: BookingStatusPayload,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    engine: Engine = Depends(get_db_engine),
    event_bus: EventBus = Depends(get_event_bus),
) -> BookingStatusResponse:
    """
    Manually confirm or cancel a pending reservation, outside the payment flow.

    Errors:
        403 if the caller is not the landlord owning the housing,
        404 if the reservation does not exist,
        409 if the reservation is no longer pending
    """
    updated = update_reservation_status(
        engine,
        principal,
        reservation_id,
        ReservationStatus(payload.status),
        event_bus=event_bus,
        trace_id=get_request_id(request),
    )
    return BookingStatusResponse(
        message=f"Status updated to {payload.status}.",
        booking=ReservationOut.from_row(updated).to_response(),
    )
