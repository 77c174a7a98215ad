"""Pydantic v2 schemas for price breakdowns and refund quotes."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from staybook.domain.enums import RefundTier


class PriceBreakdownResponse(BaseModel):
    base_nightly_price: Decimal
    nights: int
    subtotal: Decimal
    service_fee: Decimal
    cleaning_fee: Decimal
    taxes: Decimal
    total: Decimal

    model_config = ConfigDict(from_attributes=True)


class RefundQuoteResponse(BaseModel):
    """Refund owed if the reservation were cancelled now."""

    days_until_check_in: int
    refund_percentage: int
    amount_paid: Decimal
    refund_amount: Decimal
    tier: RefundTier
    description: str

    model_config = ConfigDict(from_attributes=True)
