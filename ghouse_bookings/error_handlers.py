"""Exception handlers that render application errors as JSON bodies."""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ghouse_bookings.errors import AppError

logger = structlog.get_logger(__name__)


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "request_failed",
        status_code=exc.status_code,
        code=exc.code,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    issues = [
        {
            "path": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    logger.warning("request_validation_failed", issues=issues)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Validation failed", "code": "VALIDATION_ERROR", "issues": issues},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the AppError and request-validation handlers on ``app``."""
    app.add_exception_handler(AppError, handle_app_error)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError, handle_request_validation_error  # type: ignore[arg-type]
    )
