# models/reservations.py

import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
)
from sqlalchemy.sql import func

from ghouse_bookings.models.base import Base, new_id


class ReservationStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Reservation(Base):
    """
    ORM model for tenant reservations (bookings).

    Monetary columns are a snapshot taken at checkout: base_rent and deposit
    are copied from the housing, commission_rate is the rate in effect, and
    commission/total_amount come from the pricing engine. Nothing writes them
    again afterwards; confirmation only touches status and mismatch.
    """

    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_reservations_window"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled')", name="ck_reservations_status"
        ),
        Index("ix_reservations_window", "start_date", "end_date"),
    )

    id = Column(String(32), primary_key=True, default=new_id)
    tenant_id = Column(String(64), nullable=False, index=True)
    housing_id = Column(
        String(32),
        ForeignKey("housing.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    base_rent = Column(Numeric(12, 2), nullable=False)
    deposit = Column(Numeric(12, 2), nullable=False, default=0)
    commission_rate = Column(Numeric(6, 4), nullable=False)
    commission = Column(Numeric(12, 2), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    status = Column(
        String(16), nullable=False, default=ReservationStatus.PENDING.value, index=True
    )
    mismatch = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
