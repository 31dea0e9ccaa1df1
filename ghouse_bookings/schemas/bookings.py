from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class CheckoutSessionPayload(BaseModel):
    """
    Schema for starting a checkout. The tenant comes from the bearer token.
    """

    model_config = ConfigDict(populate_by_name=True)

    housing_id: str = Field(..., alias="housingId", min_length=1, description="Housing to reserve")
    start_date: datetime = Field(..., alias="startDate", description="ISO-8601 start of stay")
    end_date: datetime = Field(..., alias="endDate", description="ISO-8601 end of stay")


class CheckoutSessionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(..., serialization_alias="sessionId")
    url: str = Field(..., description="Payment page the client should redirect to")


class BookingStatusPayload(BaseModel):
    """Schema for a landlord's manual status change."""

    status: Literal["confirmed", "cancelled"]


class HousingSummary(BaseModel):
    id: str
    title: str
    price: float


class ReservationOut(BaseModel):
    """
    Public representation of a reservation, serialised with camelCase keys.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    tenant_id: str = Field(..., serialization_alias="tenantId")
    housing_id: str = Field(..., serialization_alias="housingId")
    start_date: datetime = Field(..., serialization_alias="startDate")
    end_date: datetime = Field(..., serialization_alias="endDate")
    base_rent: float = Field(..., serialization_alias="baseRent")
    deposit: float
    commission_rate: float = Field(..., serialization_alias="commissionRate")
    commission: float
    total_amount: float = Field(..., serialization_alias="totalAmount")
    status: str
    mismatch: bool
    created_at: datetime = Field(..., serialization_alias="createdAt")
    housing: Optional[HousingSummary] = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ReservationOut":
        """Build from a reader row; embeds housing when the row was joined."""
        housing = None
        if row.get("housing_title") is not None:
            housing = HousingSummary(
                id=row["housing_id"],
                title=row["housing_title"],
                price=row["housing_price"],
            )
        fields = {k: v for k, v in row.items() if k in cls.model_fields}
        return cls(**fields, housing=housing)

    def to_response(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class BookingStatusResponse(BaseModel):
    message: str
    booking: dict[str, Any]


class BookingListResponse(BaseModel):
    bookings: list[dict[str, Any]]
