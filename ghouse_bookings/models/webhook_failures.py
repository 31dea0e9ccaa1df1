from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from ghouse_bookings.models.base import Base


class WebhookFailure(Base):
    """
    Dead-letter record for payment webhooks that verified but failed to process.

    The webhook endpoint always acknowledges the processor once the signature
    checks out, so these rows are the only trace of a lost confirmation. The
    raw payload is kept verbatim so the event can be replayed.
    """

    __tablename__ = "webhook_failures"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(255), nullable=True, index=True)
    event_type = Column(String(255), nullable=True)
    reservation_id = Column(String(32), nullable=True, index=True)
    error = Column(Text, nullable=False)
    raw_payload = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
