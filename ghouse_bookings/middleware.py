"""
FastAPI middleware for request tracing and correlation.

Every request gets an id that is stored on ``request.state``, bound into the
structlog context for the lifetime of the request, echoed back to the client
as ``X-Request-ID`` and used as ``traceId`` in booking event metadata.
"""

from __future__ import annotations

import uuid
from typing import Awaitable, Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Attach a request id to each HTTP request.

    An incoming ``X-Request-ID`` header is reused so that a trace started by a
    proxy or the frontend survives into our logs; otherwise a UUID4 is minted.

    Example:
        >>> app.add_middleware(RequestIDMiddleware)
        >>>
        >>> @router.post("/bookings/create-checkout-session")
        >>> def create(request: Request):
        ...     trace_id = request.state.request_id
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def get_request_id(request: Request) -> str | None:
    """Return the id assigned by RequestIDMiddleware, if the middleware ran."""
    return getattr(request.state, "request_id", None)
