"""Reservation service: the public operations of the engine.

Every operation runs in its own unit of work
(``async with session_factory() as session, session.begin()``). Guards are
evaluated against state loaded inside that transaction, and notifications go
out only after it commits.
"""

import logging
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from staybook.config import Settings, settings
from staybook.domain.availability import AvailabilityIndex, BookedRange
from staybook.domain.cancellation import RefundQuote
from staybook.domain.clock import Clock, SystemClock, utc_date
from staybook.domain.enums import (
    Actor,
    PaymentPlanType,
    RemainingPaymentMethod,
    ReservationEvent,
    ReservationStatus,
)
from staybook.domain.errors import DateConflictError, ValidationError, VersionConflictError
from staybook.domain.notifier import LoggingNotifier, Notifier, notify_safely
from staybook.domain.payment_plan import PaymentStatus, payment_status
from staybook.domain.pricing import PriceBreakdown, PricingCalculator
from staybook.domain.state_machine import CREATED_EVENT, ReservationStateMachine
from staybook.models.reservation import Reservation
from staybook.repositories.sqlalchemy import SqlListingRepository, SqlReservationRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReservationRequest:
    """Input for :meth:`ReservationService.request_reservation`."""

    listing_id: uuid.UUID
    guest_id: uuid.UUID
    check_in: date
    check_out: date
    guest_count: int = 1
    payment_plan: PaymentPlanType = PaymentPlanType.DEPOSIT
    remaining_payment_method: RemainingPaymentMethod | None = None


class ReservationService:
    """Orchestrates pricing, availability and the state machine over storage."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        clock: Clock | None = None,
        notifier: Notifier | None = None,
        config: Settings = settings,
    ) -> None:
        self.session_factory = session_factory
        self.clock = clock or SystemClock()
        self.notifier = notifier or LoggingNotifier()
        self.config = config
        self.pricing = PricingCalculator.from_settings(config)
        self.machine = ReservationStateMachine.from_settings(config)

    @asynccontextmanager
    async def _unit_of_work(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session, session.begin():
            yield session

    def _today(self, now: datetime | None = None) -> date:
        return utc_date(now or self.clock.now())

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def request_reservation(self, request: ReservationRequest) -> Reservation:
        """Validate, price and atomically reserve a stay.

        Raises:
            NotFoundError: the listing does not exist.
            ValidationError: dates, guest count or the requester are invalid.
            DateConflictError: the dates overlap an active reservation.
        """
        now = self.clock.now()
        self._validate_stay(request.check_in, request.check_out, today=self._today(now))
        plan = PaymentPlanType(request.payment_plan)

        async with self._unit_of_work() as session:
            listing = await SqlListingRepository(session).get(request.listing_id)
            repo = SqlReservationRepository(session)

            if request.guest_id == listing.host_id:
                raise ValidationError("Hosts cannot book their own listing", field="guest_id")
            if not 1 <= request.guest_count <= listing.max_guests:
                raise ValidationError(
                    f"Guest count must be between 1 and {listing.max_guests}",
                    field="guest_count",
                    max_guests=listing.max_guests,
                )

            breakdown = self.pricing.calculate(listing.base_price_per_night, request.check_in, request.check_out)

            conflicts = await AvailabilityIndex(repo).find_conflicts(
                listing.id, request.check_in, request.check_out
            )
            if conflicts:
                logger.warning(
                    "Date conflict on listing %s for %s..%s",
                    listing.id,
                    request.check_in,
                    request.check_out,
                )
                raise DateConflictError(
                    listing.id,
                    request.check_in,
                    request.check_out,
                    [c.id for c in conflicts],
                )

            reservation = Reservation(
                id=uuid.uuid4(),
                listing_id=listing.id,
                guest_id=request.guest_id,
                host_id=listing.host_id,
                check_in=request.check_in,
                check_out=request.check_out,
                guest_count=request.guest_count,
                base_nightly_price=breakdown.base_nightly_price,
                nights=breakdown.nights,
                subtotal=breakdown.subtotal,
                service_fee=breakdown.service_fee,
                cleaning_fee=breakdown.cleaning_fee,
                taxes=breakdown.taxes,
                total=breakdown.total,
                payment_plan=plan,
                remaining_payment_method=request.remaining_payment_method,
            )
            self.machine.start(reservation, actor=Actor.GUEST, now=now)
            await repo.reserve(reservation)

        logger.info(
            "Created reservation %s on listing %s for %s..%s (total %s)",
            reservation.id,
            reservation.listing_id,
            reservation.check_in,
            reservation.check_out,
            reservation.total,
        )
        await notify_safely(self.notifier, reservation.id, CREATED_EVENT)
        return reservation

    def _validate_stay(self, check_in: date, check_out: date, *, today: date) -> None:
        nights = (check_out - check_in).days
        if nights < 1:
            raise ValidationError("Check-out must be after check-in", field="check_out")
        if nights > self.config.max_stay_nights:
            raise ValidationError(
                f"Stays are limited to {self.config.max_stay_nights} nights",
                field="check_out",
                nights=nights,
            )
        if not self.config.allow_past_check_in and check_in < today:
            raise ValidationError("Check-in date cannot be in the past", field="check_in")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def apply_transition(
        self,
        reservation_id: uuid.UUID,
        event: ReservationEvent | str,
        *,
        actor: Actor | str,
        amount: Decimal | None = None,
        reason: str | None = None,
        note: str | None = None,
        remaining_payment_method: RemainingPaymentMethod | str | None = None,
    ) -> Reservation:
        """Apply ``event`` to a reservation, retrying once on a stale write."""
        attempts = self.config.transition_retry_attempts
        attempt = 0
        while True:
            try:
                return await self._apply_once(
                    reservation_id,
                    ReservationEvent(event),
                    actor=Actor(actor),
                    amount=amount,
                    reason=reason,
                    note=note,
                    remaining_payment_method=remaining_payment_method,
                )
            except VersionConflictError:
                if attempt >= attempts:
                    raise
                attempt += 1
                logger.warning(
                    "Version conflict on reservation %s, retrying (%d/%d)",
                    reservation_id,
                    attempt,
                    attempts,
                )

    async def _apply_once(
        self,
        reservation_id: uuid.UUID,
        event: ReservationEvent,
        *,
        actor: Actor,
        **payload,
    ) -> Reservation:
        now = self.clock.now()
        async with self._unit_of_work() as session:
            repo = SqlReservationRepository(session)
            reservation = await repo.load(reservation_id)
            outcome = self.machine.apply(reservation, event, actor=actor, now=now, **payload)
            # The version check must run before the night delete autoflushes the UPDATE.
            await repo.save(reservation)
            if outcome.releases_nights:
                await repo.release_nights(reservation)

        await notify_safely(self.notifier, reservation.id, outcome.event.value)
        return reservation

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def compute_pricing(self, base_price: Decimal, check_in: date, check_out: date) -> PriceBreakdown:
        return self.pricing.calculate(base_price, check_in, check_out)

    async def compute_cancellation_quote(
        self,
        reservation_id: uuid.UUID,
        now: datetime | None = None,
    ) -> RefundQuote:
        """Refund the guest would get if the reservation were cancelled at ``now``."""
        reservation = await self.get_reservation(reservation_id)
        return self.machine.policy.quote(
            reservation.amount_paid,
            reservation.check_in,
            now or self.clock.now(),
        )

    async def get_reservation(self, reservation_id: uuid.UUID) -> Reservation:
        async with self.session_factory() as session:
            return await SqlReservationRepository(session).load(reservation_id)

    async def list_reservations(
        self,
        *,
        listing_id: uuid.UUID | None = None,
        guest_id: uuid.UUID | None = None,
        host_id: uuid.UUID | None = None,
        status: ReservationStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Reservation], int]:
        async with self.session_factory() as session:
            return await SqlReservationRepository(session).list_reservations(
                listing_id=listing_id,
                guest_id=guest_id,
                host_id=host_id,
                status=status,
                limit=limit,
                offset=offset,
            )

    async def list_booked_ranges(
        self,
        listing_id: uuid.UUID,
        start: date | None = None,
        end: date | None = None,
    ) -> list[BookedRange]:
        async with self.session_factory() as session:
            await SqlListingRepository(session).get(listing_id)
            return await AvailabilityIndex(SqlReservationRepository(session)).booked_ranges(listing_id, start, end)

    async def list_overdue_payments(self, now: datetime | None = None) -> list[Reservation]:
        """Reservations whose remaining balance is past due.

        Nothing is cancelled here; a scheduler may follow up with a ``cancel``
        event issued as ``Actor.SYSTEM``.
        """
        async with self.session_factory() as session:
            return await SqlReservationRepository(session).list_overdue(self._today(now))

    async def payment_status(self, reservation_id: uuid.UUID, now: datetime | None = None) -> PaymentStatus:
        reservation = await self.get_reservation(reservation_id)
        return payment_status(reservation, self._today(now))
