"""
Prometheus metrics for the booking, checkout and payment-webhook flows.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.
Domain counters are incremented by the event-bus subscribers in
``ghouse_bookings.events.subscribers``; the mismatch counter is incremented
directly by the confirmation handler.

Example:
    >>> from ghouse_bookings.metrics import booking_mismatches
    >>> booking_mismatches.inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Booking Metrics
# =============================================================================

bookings_created = Counter(
    "ghouse_booking_created_total",
    "Total number of reservations created by checkout",
)
"""Counter for reservations persisted in pending state."""

bookings_confirmed = Counter(
    "ghouse_booking_confirmed_total",
    "Total number of reservations confirmed by payment webhook",
)
"""Counter for payment confirmations (duplicates included)."""

booking_status_updates = Counter(
    "ghouse_booking_status_updates_total",
    "Total number of manual reservation status updates",
    ["status"],
)
"""
Counter for landlord-driven status changes.

Labels:
    status: target status (confirmed, cancelled)
"""

booking_mismatches = Counter(
    "ghouse_booking_mismatch_total",
    "Reservations whose confirmation-time total diverged from the stored total",
)
"""Counter for reconciliation mismatches flagged for manual review."""

# =============================================================================
# Webhook Metrics
# =============================================================================

webhook_events = Counter(
    "ghouse_webhook_events_total",
    "Payment webhook deliveries by event type and processing outcome",
    ["event_type", "outcome"],
)
"""
Counter for verified webhook deliveries.

Labels:
    event_type: processor event type (e.g. checkout.session.completed)
    outcome: confirmed, ignored, skipped, failed
"""

event_handler_failures = Counter(
    "ghouse_event_handler_failures_total",
    "Event-bus handlers that raised while processing an event",
    ["event_name"],
)

# =============================================================================
# Payment API Metrics
# =============================================================================

payment_api_requests = Counter(
    "ghouse_payment_api_requests_total",
    "Outbound requests made to the payment processor",
    ["operation", "status"],
)
"""
Counter for payment processor API calls.

Labels:
    operation: API operation (create_checkout_session)
    status: success or failure
"""

payment_api_latency = Histogram(
    "ghouse_payment_api_latency_seconds",
    "Payment processor request latency in seconds",
    ["operation"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, float("inf")),
)
