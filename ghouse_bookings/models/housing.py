"""SQLAlchemy model for housing listings, as seen by the booking flow."""

from sqlalchemy import Column, DateTime, Numeric, String
from sqlalchemy.sql import func

from ghouse_bookings.models.base import Base, new_id


class Housing(Base):
    """
    ORM model for rentable housing listings.

    Listing management lives in another service; the booking flow only reads
    the monthly price and deposit (for pricing) and the landlord (for
    ownership checks). Deleting a housing row cascades to its reservations.
    """

    __tablename__ = "housing"

    id = Column(String(32), primary_key=True, default=new_id)
    landlord_id = Column(String(64), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    price = Column(Numeric(12, 2), nullable=False)  # Monthly rent
    deposit = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String(16), nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
