"""Pricing API route: quote a stay without reserving it."""

from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, Query

from staybook.api.deps import get_reservation_service
from staybook.schemas.pricing import PriceBreakdownResponse
from staybook.services.reservation_service import ReservationService

router = APIRouter(prefix="/api/v1/pricing", tags=["pricing"])


@router.get(
    "",
    response_model=PriceBreakdownResponse,
    summary="Price breakdown for a base nightly price and date range",
)
async def get_price_breakdown(
    base_price: Decimal = Query(..., gt=0),
    check_in: date = Query(...),
    check_out: date = Query(...),
    service: ReservationService = Depends(get_reservation_service),
) -> PriceBreakdownResponse:
    breakdown = service.compute_pricing(base_price, check_in, check_out)
    return PriceBreakdownResponse.model_validate(breakdown)
