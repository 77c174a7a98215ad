"""Reservations API router.

The acting party is passed explicitly in transition bodies; authenticating
that party is left to the deployment in front of this service.
"""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from staybook.api.deps import get_reservation_service
from staybook.domain.enums import ReservationStatus
from staybook.schemas.pricing import RefundQuoteResponse
from staybook.schemas.reservation import (
    PaymentStatusResponse,
    ReservationCreate,
    ReservationDetailResponse,
    ReservationListResponse,
    ReservationResponse,
    TransitionRequest,
)
from staybook.services.reservation_service import ReservationRequest, ReservationService

router = APIRouter(prefix="/api/v1/reservations", tags=["reservations"])


@router.post(
    "",
    response_model=ReservationDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a reservation",
)
async def create_reservation(
    body: ReservationCreate,
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationDetailResponse:
    """Price the stay, check availability and hold the nights.

    Returns 409 when the dates overlap an active reservation and 422 when the
    request breaks a listing rule (capacity, own listing, past dates).
    """
    reservation = await service.request_reservation(ReservationRequest(**body.model_dump()))
    return ReservationDetailResponse.model_validate(reservation)


@router.get(
    "",
    response_model=ReservationListResponse,
    summary="List reservations",
)
async def list_reservations(
    listing_id: uuid.UUID | None = Query(None, description="Filter by listing"),
    guest_id: uuid.UUID | None = Query(None, description="Filter by guest"),
    host_id: uuid.UUID | None = Query(None, description="Filter by host"),
    status_filter: ReservationStatus | None = Query(None, alias="status", description="Filter by status"),
    skip: int = Query(0, ge=0, description="Pagination offset"),
    limit: int = Query(20, ge=1, le=100, description="Pagination limit"),
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationListResponse:
    items, total = await service.list_reservations(
        listing_id=listing_id,
        guest_id=guest_id,
        host_id=host_id,
        status=status_filter,
        limit=limit,
        offset=skip,
    )
    return ReservationListResponse(
        items=[ReservationResponse.model_validate(r) for r in items],
        total=total,
    )


@router.get(
    "/overdue",
    response_model=ReservationListResponse,
    summary="Reservations with a remaining balance past its due date",
)
async def list_overdue_reservations(
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationListResponse:
    items = await service.list_overdue_payments()
    return ReservationListResponse(
        items=[ReservationResponse.model_validate(r) for r in items],
        total=len(items),
    )


@router.get(
    "/{reservation_id}",
    response_model=ReservationDetailResponse,
    summary="Get a reservation with its history",
)
async def get_reservation(
    reservation_id: uuid.UUID,
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationDetailResponse:
    reservation = await service.get_reservation(reservation_id)
    return ReservationDetailResponse.model_validate(reservation)


@router.post(
    "/{reservation_id}/transitions",
    response_model=ReservationDetailResponse,
    summary="Apply a lifecycle event",
)
async def apply_transition(
    reservation_id: uuid.UUID,
    body: TransitionRequest,
    service: ReservationService = Depends(get_reservation_service),
) -> ReservationDetailResponse:
    """Approve, decline, record a payment, cancel, or mark arrival/completion.

    Returns 409 for events the current state does not accept.
    """
    reservation = await service.apply_transition(
        reservation_id,
        body.event,
        actor=body.actor,
        amount=body.amount,
        reason=body.reason,
        note=body.note,
        remaining_payment_method=body.remaining_payment_method,
    )
    return ReservationDetailResponse.model_validate(reservation)


@router.get(
    "/{reservation_id}/cancellation-quote",
    response_model=RefundQuoteResponse,
    summary="Refund the guest would receive if cancelled now",
)
async def get_cancellation_quote(
    reservation_id: uuid.UUID,
    at: datetime | None = Query(None, description="Quote as of this instant instead of now"),
    service: ReservationService = Depends(get_reservation_service),
) -> RefundQuoteResponse:
    quote = await service.compute_cancellation_quote(reservation_id, at)
    return RefundQuoteResponse.model_validate(quote)


@router.get(
    "/{reservation_id}/payment-status",
    response_model=PaymentStatusResponse,
    summary="Amounts paid and owed, due date and overdue flag",
)
async def get_payment_status(
    reservation_id: uuid.UUID,
    service: ReservationService = Depends(get_reservation_service),
) -> PaymentStatusResponse:
    payment = await service.payment_status(reservation_id)
    return PaymentStatusResponse.model_validate(payment)
