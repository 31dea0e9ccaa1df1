"""
Reservation pricing.

Two independent computations live here and must not be conflated:

* ``compute_breakdown`` is the reservation price: monthly rent plus deposit,
  plus a platform commission on that sum. It is what the tenant is charged and
  what the payment webhook re-derives to reconcile a payment.
* ``calculate_price_cents`` is the older day-prorated price (monthly rent
  spread over a 30-day month). Checkout only uses it to reject a degenerate
  date window; its amount is never charged.

All arithmetic is done in ``Decimal`` with half-up rounding to the cent.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

from ghouse_bookings.config import DEFAULT_COMMISSION_RATE

Amount = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
DAYS_PER_MONTH = Decimal(30)
MS_PER_DAY = 24 * 60 * 60 * 1000
MISMATCH_TOLERANCE = Decimal("0.01")


def to_decimal(value: Amount | None) -> Decimal:
    """Convert a numeric value to Decimal without inheriting binary float noise."""
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(value)


def round2(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Amount) -> int:
    """Convert an amount to integer minor currency units (cents)."""
    return int((to_decimal(amount) * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class ReservationBreakdown:
    """Monetary decomposition of a reservation charge."""

    base_rent: Decimal
    deposit: Decimal
    commission_rate: Decimal
    commission: Decimal
    total: Decimal


def compute_breakdown(
    monthly_rent: Amount,
    deposit: Amount | None = 0,
    commission_rate: Amount | None = None,
) -> ReservationBreakdown:
    """
    Compute rent + deposit + commission for a reservation.

    Rounding happens in two stages: the commission is rounded first and the
    total is the rounded sum of the base and the already-rounded commission.
    Rounding the total straight from the unrounded commission would sometimes
    land one cent off.

    Args:
        monthly_rent: Monthly rent of the housing (>= 0)
        deposit: Security deposit (>= 0); None is treated as 0
        commission_rate: Fraction charged on rent + deposit (0.4 for 40%);
            None uses the platform default

    Returns:
        ReservationBreakdown with base_rent passed through unrounded

    Example:
        >>> b = compute_breakdown(1000, 500, "0.4")
        >>> b.commission, b.total
        (Decimal('600.00'), Decimal('2100.00'))
    """
    rent = to_decimal(monthly_rent)
    dep = to_decimal(deposit)
    rate = DEFAULT_COMMISSION_RATE if commission_rate is None else to_decimal(commission_rate)

    base = rent + dep
    commission = round2(base * rate)
    total = round2(base + commission)

    return ReservationBreakdown(
        base_rent=rent,
        deposit=dep,
        commission_rate=rate,
        commission=commission,
        total=total,
    )


def totals_diverge(expected: Amount, recorded: Amount) -> bool:
    """True when two totals differ by more than one cent."""
    return abs(to_decimal(expected) - to_decimal(recorded)) > MISMATCH_TOLERANCE


# =============================================================================
# Day-prorated pricing
# =============================================================================


def _coerce_datetime(value: datetime | str) -> datetime | None:
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None


def calculate_total_days(start: datetime | str, end: datetime | str) -> int:
    """
    Whole days between two instants, rounded up.

    Returns 0 when either value cannot be parsed or when end is not strictly
    after start.
    """
    start_dt = _coerce_datetime(start)
    end_dt = _coerce_datetime(end)
    if start_dt is None or end_dt is None:
        return 0
    if (start_dt.tzinfo is None) != (end_dt.tzinfo is None):
        return 0
    if end_dt <= start_dt:
        return 0

    span_ms = (end_dt - start_dt) // timedelta(milliseconds=1)
    return -(-span_ms // MS_PER_DAY)


def calculate_total_price(monthly_rent: Amount | None, days: int) -> Decimal:
    """Monthly rent prorated over a fixed 30-day month."""
    rent = to_decimal(monthly_rent)
    if days <= 0 or not rent:
        return Decimal(0)
    daily_rate = rent / DAYS_PER_MONTH
    return round2(daily_rate * days)


def calculate_price_cents(
    monthly_rent: Amount | None, start: datetime | str, end: datetime | str
) -> int:
    """Day-prorated price for a date window, in minor currency units."""
    days = calculate_total_days(start, end)
    return to_minor_units(calculate_total_price(monthly_rent, days))
