"""
Application error hierarchy.

Every error carries an HTTP status code and a stable machine-readable code.
Route handlers let these propagate; ``register_error_handlers`` renders them
as ``{"message": ..., "code": ...}`` bodies.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message, "code": self.code}
        body.update(self.details)
        return body


class ValidationError(AppError):
    """Malformed or semantically invalid input (bad dates, invalid window)."""

    status_code = 400
    code = "VALIDATION_ERROR"
    default_message = "Validation failed"


class UnauthorizedError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Authentication required"


class ForbiddenError(AppError):
    """Role or ownership violation."""

    status_code = 403
    code = "FORBIDDEN"
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class ConflictError(AppError):
    """The resource is not in a state that allows the requested transition."""

    status_code = 409
    code = "CONFLICT"
    default_message = "Resource conflict"


class SignatureError(AppError):
    """Webhook payload failed authenticity verification."""

    status_code = 400
    code = "INVALID_SIGNATURE"
    default_message = "Webhook signature verification failed"


class ConfigurationError(AppError):
    """A required secret or setting is missing or invalid (operator fault)."""

    status_code = 500
    code = "CONFIGURATION_ERROR"
    default_message = "Server configuration error"


class PaymentProviderError(AppError):
    """The external payment processor rejected or failed a request."""

    status_code = 502
    code = "PAYMENT_PROVIDER_ERROR"
    default_message = "Payment provider unavailable"
