"""Pydantic v2 request/response schemas for listing endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ListingCreate(BaseModel):
    """Schema for creating a listing."""

    host_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=255)
    base_price_per_night: Decimal = Field(..., gt=0, decimal_places=2)
    max_guests: int = Field(1, ge=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ListingResponse(BaseModel):
    id: uuid.UUID
    host_id: uuid.UUID
    title: str
    base_price_per_night: Decimal
    max_guests: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookedRangeResponse(BaseModel):
    """An active stay blocking a listing's calendar."""

    reservation_id: uuid.UUID
    check_in: date
    check_out: date
    status: str

    model_config = ConfigDict(from_attributes=True)


class BookedRangeListResponse(BaseModel):
    listing_id: uuid.UUID
    items: list[BookedRangeResponse]
