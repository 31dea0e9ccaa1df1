"""
Prometheus scrape endpoint.

Example:
    GET /metrics

    Response:
        # HELP ghouse_booking_mismatch_total Reservations whose confirmation-time total ...
        # TYPE ghouse_booking_mismatch_total counter
        ghouse_booking_mismatch_total 2.0
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics", response_class=Response)
async def metrics() -> Any:
    """Expose the default registry in Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
