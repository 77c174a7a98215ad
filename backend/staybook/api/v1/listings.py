"""Listings API routes."""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from staybook.api.deps import get_db, get_reservation_service
from staybook.schemas.listing import (
    BookedRangeListResponse,
    BookedRangeResponse,
    ListingCreate,
    ListingResponse,
)
from staybook.services import listing_service
from staybook.services.reservation_service import ReservationService

router = APIRouter(prefix="/api/v1/listings", tags=["listings"])


@router.post(
    "",
    response_model=ListingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a listing",
)
async def create_listing(
    body: ListingCreate,
    db: AsyncSession = Depends(get_db),
) -> ListingResponse:
    listing = await listing_service.create_listing(db, **body.model_dump())
    return ListingResponse.model_validate(listing)


@router.get(
    "/{listing_id}",
    response_model=ListingResponse,
    summary="Get a listing",
)
async def get_listing(
    listing_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> ListingResponse:
    listing = await listing_service.get_listing(db, listing_id)
    return ListingResponse.model_validate(listing)


@router.get(
    "/{listing_id}/booked-ranges",
    response_model=BookedRangeListResponse,
    summary="Active stays on a listing, for calendar display",
)
async def list_booked_ranges(
    listing_id: uuid.UUID,
    start: date | None = Query(None, description="Only stays ending after this date"),
    end: date | None = Query(None, description="Only stays starting before this date"),
    service: ReservationService = Depends(get_reservation_service),
) -> BookedRangeListResponse:
    ranges = await service.list_booked_ranges(listing_id, start, end)
    return BookedRangeListResponse(
        listing_id=listing_id,
        items=[BookedRangeResponse.model_validate(r) for r in ranges],
    )
