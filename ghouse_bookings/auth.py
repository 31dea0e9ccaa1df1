"""
Bearer-token authentication for booking routes.

Tokens are issued by the account service and signed with the shared
``JWT_SECRET`` (HS256). This module only verifies them and exposes the caller
as a ``Principal``; role and ownership decisions are made by the services.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

import jwt
import structlog
from fastapi import Request

from ghouse_bookings.config import JWT_ALGORITHM, JWT_SECRET
from ghouse_bookings.errors import ConfigurationError, UnauthorizedError

logger = structlog.get_logger(__name__)


class Role(str, enum.Enum):
    TENANT = "tenant"
    LANDLORD = "landlord"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller."""

    user_id: str
    role: str

    @property
    def is_tenant(self) -> bool:
        return self.role == Role.TENANT.value

    @property
    def is_landlord(self) -> bool:
        return self.role == Role.LANDLORD.value


def decode_token(token: str, secret: str | None = JWT_SECRET) -> Principal:
    """
    Verify a JWT and build the Principal from its ``userId`` and ``role`` claims.

    Raises:
        ConfigurationError: If no signing secret is configured
        UnauthorizedError: If the token is invalid, expired or lacks claims
    """
    if not secret:
        raise ConfigurationError("JWT_SECRET is not configured")
    try:
        claims = jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        logger.info("token_rejected", reason=type(e).__name__)
        raise UnauthorizedError("Authentication failed", code="INVALID_TOKEN")

    user_id = claims.get("userId")
    role = claims.get("role")
    if not user_id or not role:
        raise UnauthorizedError("Authentication failed", code="INVALID_TOKEN")
    return Principal(user_id=str(user_id), role=str(role))


def get_current_principal(request: Request) -> Principal:
    """FastAPI dependency resolving the caller from the Authorization header."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise UnauthorizedError("Missing bearer token", code="MISSING_TOKEN")
    return decode_token(auth_header[len("Bearer ") :].strip())
