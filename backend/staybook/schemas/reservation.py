"""Pydantic v2 request/response schemas for reservation endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from staybook.domain.enums import (
    Actor,
    PaymentPlanType,
    RemainingPaymentMethod,
    ReservationEvent,
    ReservationStatus,
)
from staybook.domain.state_machine import allowed_events

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ReservationCreate(BaseModel):
    """Schema for requesting a reservation."""

    listing_id: uuid.UUID
    guest_id: uuid.UUID
    check_in: date
    check_out: date
    guest_count: int = Field(1, ge=1)
    payment_plan: PaymentPlanType = PaymentPlanType.DEPOSIT
    remaining_payment_method: RemainingPaymentMethod | None = None

    @model_validator(mode="after")
    def check_dates(self) -> "ReservationCreate":
        """Validate that check_out is strictly after check_in."""
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class TransitionRequest(BaseModel):
    """An event to apply to a reservation.

    ``amount`` is required for payment events and ``reason`` for declines.
    """

    event: ReservationEvent
    actor: Actor
    amount: Decimal | None = Field(None, ge=0)
    reason: str | None = Field(None, max_length=2000)
    note: str | None = Field(None, max_length=2000)
    remaining_payment_method: RemainingPaymentMethod | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class HistoryEntryResponse(BaseModel):
    from_status: str | None = None
    to_status: str
    event: str
    actor: str
    occurred_at: datetime
    note: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ReservationResponse(BaseModel):
    """Reservation state as returned from create, get and list."""

    id: uuid.UUID
    listing_id: uuid.UUID
    guest_id: uuid.UUID
    host_id: uuid.UUID
    check_in: date
    check_out: date
    guest_count: int
    status: ReservationStatus

    base_nightly_price: Decimal
    nights: int
    subtotal: Decimal
    service_fee: Decimal
    cleaning_fee: Decimal
    taxes: Decimal
    total: Decimal

    payment_plan: PaymentPlanType
    deposit_amount: Decimal | None = None
    remaining_amount: Decimal | None = None
    remaining_payment_method: RemainingPaymentMethod | None = None
    payment_due_date: date | None = None
    deposit_paid: bool
    remaining_paid: bool
    amount_paid: Decimal

    decline_reason: str | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    refund_percentage: int | None = None
    refund_amount: Decimal | None = None

    is_review_eligible: bool
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def next_events(self) -> list[ReservationEvent]:
        """Events the lifecycle accepts from the current status; guards may still refuse."""
        return allowed_events(self.status)


class ReservationDetailResponse(ReservationResponse):
    """Reservation with its full transition history."""

    history: list[HistoryEntryResponse] = []


class ReservationListResponse(BaseModel):
    items: list[ReservationResponse]
    total: int


class PaymentStatusResponse(BaseModel):
    """Derived payment view: what was paid, what is owed, and by when."""

    plan: PaymentPlanType
    total: Decimal
    amount_paid: Decimal
    amount_outstanding: Decimal
    deposit_paid: bool
    remaining_paid: bool
    payment_due_date: date | None = None
    days_until_due: int | None = None
    is_overdue: bool

    model_config = ConfigDict(from_attributes=True)
