# ghouse_bookings/main.py

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ghouse_bookings.config import ALLOWED_ORIGINS
from ghouse_bookings.error_handlers import register_error_handlers
from ghouse_bookings.events.bus import bus
from ghouse_bookings.events.subscribers import register_default_subscribers
from ghouse_bookings.logging_config import setup_logging
from ghouse_bookings.middleware import RequestIDMiddleware
from ghouse_bookings.routes.bookings import router as bookings_router
from ghouse_bookings.routes.health import router as health_router
from ghouse_bookings.routes.metrics import router as metrics_router
from ghouse_bookings.routes.webhook import router as webhook_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

# Metrics and logging subscribers for booking lifecycle events
register_default_subscribers(bus)

app = FastAPI(
    title="G-House Bookings API",
    description="Reservation pricing, checkout and payment reconciliation",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

register_error_handlers(app)

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(bookings_router, prefix="/api/bookings", tags=["Bookings"])
app.include_router(webhook_router, tags=["Webhooks"])

logger.info("application_initialized")
