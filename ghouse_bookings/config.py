import os
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from dotenv import load_dotenv

from ghouse_bookings.errors import ConfigurationError

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = LOG_LEVEL == "DEBUG"

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL must be set in the environment")

ALLOWED_ORIGINS_RAW = os.getenv("ALLOWED_ORIGINS")
if not ALLOWED_ORIGINS_RAW:
    raise ValueError("ALLOWED_ORIGINS must be set in the environment")

ALLOWED_ORIGINS: list[str] = [
    origin.strip() for origin in ALLOWED_ORIGINS_RAW.split(",")
]

JWT_SECRET = os.getenv("JWT_SECRET")
JWT_ALGORITHM = "HS256"

STRIPE_TIMEOUT_SECONDS = float(os.getenv("STRIPE_TIMEOUT_SECONDS", "30"))
STRIPE_MAX_NETWORK_RETRIES = int(os.getenv("STRIPE_MAX_NETWORK_RETRIES", "0"))

DEFAULT_COMMISSION_RATE = Decimal("0.4")
# Matches the scale of reservations.commission_rate
COMMISSION_RATE_QUANTUM = Decimal("0.0001")
DEFAULT_FRONTEND_URL = "https://g-house.vercel.app"
DEFAULT_CURRENCY = "eur"


@dataclass(frozen=True)
class BookingSettings:
    """
    Booking configuration resolved once per request and passed explicitly
    to the checkout and confirmation services.

    commission_rate is None when RESERVATION_COMMISSION_RATE is not set, so
    callers can tell "configured" apart from "fell back to the default".
    """

    commission_rate: Decimal | None = None
    frontend_url: str = DEFAULT_FRONTEND_URL
    currency: str = DEFAULT_CURRENCY
    stripe_secret_key: str | None = None
    stripe_webhook_secret: str | None = None

    @property
    def effective_commission_rate(self) -> Decimal:
        """Configured rate, or the platform default when unset."""
        if self.commission_rate is None:
            return DEFAULT_COMMISSION_RATE
        return self.commission_rate


def parse_commission_rate(raw: str | None) -> Decimal | None:
    """
    Parse a commission rate expressed as a fraction (``"0.4"`` for 40%).

    The rate is rounded half-up to four decimals, the precision it is stored
    with, so the rate charged at checkout is exactly the rate recorded.

    Raises:
        ConfigurationError: if the value is not a finite number in [0, 1]
    """
    if raw is None or not raw.strip():
        return None
    try:
        rate = Decimal(raw.strip())
    except InvalidOperation:
        raise ConfigurationError(f"RESERVATION_COMMISSION_RATE is not a number: {raw!r}")
    if not rate.is_finite() or rate < 0 or rate > 1:
        raise ConfigurationError(f"RESERVATION_COMMISSION_RATE must be between 0 and 1: {raw!r}")
    return rate.quantize(COMMISSION_RATE_QUANTUM, rounding=ROUND_HALF_UP)


def load_booking_settings() -> BookingSettings:
    """Read booking settings from the current environment."""
    return BookingSettings(
        commission_rate=parse_commission_rate(os.getenv("RESERVATION_COMMISSION_RATE")),
        frontend_url=os.getenv("FRONTEND_URL", DEFAULT_FRONTEND_URL).rstrip("/"),
        currency=os.getenv("PAYMENT_CURRENCY", DEFAULT_CURRENCY).lower(),
        stripe_secret_key=os.getenv("STRIPE_SECRET_KEY") or None,
        stripe_webhook_secret=os.getenv("STRIPE_WEBHOOK_SECRET") or None,
    )
