"""Reservation lifecycle state machine.

    pending                    -> confirmed_awaiting_payment | declined
    confirmed_awaiting_payment -> confirmed | cancelled
    confirmed                  -> arrived | cancelled  (remaining_paid stays in confirmed)
    arrived                    -> completed

Every (state, event) pair not listed in ``_TRANSITIONS`` is rejected with
``InvalidTransitionError``. Guards run against the reservation as loaded in
the caller's unit of work; the machine mutates it in place and appends a
history entry, leaving persistence to the caller.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from staybook.config import Settings, settings
from staybook.domain.cancellation import CancellationPolicy, RefundQuote
from staybook.domain.clock import utc_date
from staybook.domain.enums import (
    Actor,
    PaymentPlanType,
    RemainingPaymentMethod,
    ReservationEvent,
    ReservationStatus,
)
from staybook.domain.errors import (
    AmountMismatchError,
    InvalidTransitionError,
    NotCheckInDayError,
    ValidationError,
)
from staybook.domain.money import to_money
from staybook.domain.payment_plan import PaymentPlanner
from staybook.models.reservation import Reservation
from staybook.models.reservation_history import ReservationHistory

logger = logging.getLogger(__name__)

CREATED_EVENT = "created"

S = ReservationStatus
E = ReservationEvent

_TRANSITIONS: dict[tuple[ReservationStatus, ReservationEvent], ReservationStatus] = {
    (S.PENDING, E.HOST_APPROVE): S.CONFIRMED_AWAITING_PAYMENT,
    (S.PENDING, E.HOST_DECLINE): S.DECLINED,
    (S.CONFIRMED_AWAITING_PAYMENT, E.DEPOSIT_PAID): S.CONFIRMED,
    (S.CONFIRMED_AWAITING_PAYMENT, E.FULL_PAID): S.CONFIRMED,
    (S.CONFIRMED_AWAITING_PAYMENT, E.CANCEL): S.CANCELLED,
    (S.CONFIRMED_AWAITING_PAYMENT, E.PAYMENT_TIMEOUT): S.CANCELLED,
    (S.CONFIRMED, E.REMAINING_PAID): S.CONFIRMED,
    (S.CONFIRMED, E.CANCEL): S.CANCELLED,
    (S.CONFIRMED, E.MARK_ARRIVED): S.ARRIVED,
    (S.ARRIVED, E.MARK_COMPLETED): S.COMPLETED,
}

_RELEASING_STATUSES = frozenset({S.DECLINED, S.CANCELLED})


@dataclass(frozen=True)
class TransitionOutcome:
    """What an applied event did. ``releases_nights`` tells storage to free the dates."""

    event: ReservationEvent
    from_status: ReservationStatus
    to_status: ReservationStatus
    releases_nights: bool
    refund: RefundQuote | None = None


def allowed_events(status: ReservationStatus) -> list[ReservationEvent]:
    """Events the table accepts from ``status`` (guards may still reject them)."""
    return [event for (state, event) in _TRANSITIONS if state is status]


class ReservationStateMachine:
    def __init__(self, planner: PaymentPlanner, policy: CancellationPolicy) -> None:
        self.planner = planner
        self.policy = policy

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "ReservationStateMachine":
        return cls(PaymentPlanner.from_settings(config), CancellationPolicy.from_settings(config))

    def start(self, reservation: Reservation, *, actor: Actor | str, now: datetime) -> None:
        """Put a freshly built reservation into ``pending`` and log its creation."""
        reservation.status = S.PENDING
        reservation.deposit_paid = False
        reservation.remaining_paid = False
        reservation.created_at = now
        reservation.updated_at = now
        reservation.history.append(
            ReservationHistory(
                from_status=None,
                to_status=S.PENDING.value,
                event=CREATED_EVENT,
                actor=Actor(actor).value,
                occurred_at=now,
            )
        )

    def apply(
        self,
        reservation: Reservation,
        event: ReservationEvent | str,
        *,
        actor: Actor | str,
        now: datetime,
        amount: Decimal | int | str | None = None,
        reason: str | None = None,
        note: str | None = None,
        remaining_payment_method: RemainingPaymentMethod | str | None = None,
    ) -> TransitionOutcome:
        """Apply ``event`` to ``reservation`` at ``now``.

        Raises:
            InvalidTransitionError: the event is not allowed from the current
                state, or a guard on an allowed pair failed.
            NotCheckInDayError: arrival marked outside the check-in window.
            ValidationError: a required payload field is missing or wrong
                (``AmountMismatchError`` for payment amounts).
        """
        event = ReservationEvent(event)
        actor = Actor(actor)
        current = reservation.status
        target = _TRANSITIONS.get((current, event))
        if target is None:
            raise InvalidTransitionError(current, event)

        handler = getattr(self, f"_on_{event.value}")
        refund = handler(
            reservation,
            now=now,
            actor=actor,
            amount=amount,
            reason=reason,
            remaining_payment_method=remaining_payment_method,
        )

        reservation.status = target
        reservation.updated_at = now
        reservation.history.append(
            ReservationHistory(
                from_status=current.value,
                to_status=target.value,
                event=event.value,
                actor=actor.value,
                occurred_at=now,
                note=note or reason,
            )
        )
        logger.info(
            "Reservation %s: %s -> %s on %s by %s",
            reservation.id,
            current.value,
            target.value,
            event.value,
            actor.value,
        )
        return TransitionOutcome(
            event=event,
            from_status=current,
            to_status=target,
            releases_nights=target in _RELEASING_STATUSES,
            refund=refund,
        )

    # ------------------------------------------------------------------
    # Handlers. Each validates its guard and applies side effects; the
    # status change and history entry are done by ``apply``.
    # ------------------------------------------------------------------

    def _on_host_approve(self, r: Reservation, *, now: datetime, **_) -> None:
        plan = self.planner.build(r.total, r.payment_plan)
        r.deposit_amount = plan.deposit_amount
        r.remaining_amount = plan.remaining_amount
        r.approved_at = now

    def _on_host_decline(self, r: Reservation, *, reason: str | None, **_) -> None:
        if not reason or not reason.strip():
            raise ValidationError("A reason is required to decline a reservation", field="reason")
        r.decline_reason = reason.strip()

    def _on_deposit_paid(self, r: Reservation, *, amount, remaining_payment_method, **_) -> None:
        event = E.DEPOSIT_PAID
        if r.payment_plan is PaymentPlanType.FULL:
            self._check_amount(event, amount, r.total)
            r.deposit_paid = True
            r.remaining_paid = True
            return

        self._check_amount(event, amount, r.deposit_amount)
        r.deposit_paid = True
        r.payment_due_date = self.planner.due_date(r.check_in)
        r.remaining_payment_method = RemainingPaymentMethod(
            remaining_payment_method or r.remaining_payment_method or RemainingPaymentMethod.PLATFORM
        )

    def _on_full_paid(self, r: Reservation, *, amount, **_) -> None:
        if r.payment_plan is not PaymentPlanType.FULL:
            raise InvalidTransitionError(
                r.status, E.FULL_PAID, "reservation is on the deposit plan; pay the deposit first"
            )
        self._check_amount(E.FULL_PAID, amount, r.total)
        r.deposit_paid = True
        r.remaining_paid = True

    def _on_remaining_paid(self, r: Reservation, *, amount, remaining_payment_method, **_) -> None:
        if r.payment_plan is not PaymentPlanType.DEPOSIT:
            raise InvalidTransitionError(r.status, E.REMAINING_PAID, "reservation is on the full plan")
        if not r.deposit_paid:
            raise InvalidTransitionError(r.status, E.REMAINING_PAID, "deposit has not been paid")
        if r.remaining_paid:
            raise InvalidTransitionError(r.status, E.REMAINING_PAID, "remaining balance already paid")
        self._check_amount(E.REMAINING_PAID, amount, r.remaining_amount)
        r.remaining_paid = True
        if remaining_payment_method is not None:
            r.remaining_payment_method = RemainingPaymentMethod(remaining_payment_method)

    def _on_cancel(self, r: Reservation, *, now: datetime, actor: Actor, reason: str | None, **_) -> RefundQuote:
        if r.status is S.CONFIRMED_AWAITING_PAYMENT and actor is Actor.HOST:
            raise InvalidTransitionError(
                r.status, E.CANCEL, "an approved reservation awaiting payment is cancelled by the guest or system"
            )
        if r.status is S.CONFIRMED and utc_date(now) > r.check_in:
            raise InvalidTransitionError(r.status, E.CANCEL, "check-in date has passed")
        return self._cancel(r, now=now, actor=actor, reason=reason)

    def _on_payment_timeout(
        self, r: Reservation, *, now: datetime, actor: Actor, reason: str | None, **_
    ) -> RefundQuote:
        if actor not in (Actor.SYSTEM, Actor.ADMIN):
            raise InvalidTransitionError(r.status, E.PAYMENT_TIMEOUT, "only the system can time out a payment")
        return self._cancel(r, now=now, actor=actor, reason=reason or "Payment not received in time")

    def _on_mark_arrived(self, r: Reservation, *, now: datetime, **_) -> None:
        today = utc_date(now)
        if today not in (r.check_in, r.check_in + timedelta(days=1)):
            raise NotCheckInDayError(r.check_in, today)
        r.arrived_at = now

    def _on_mark_completed(self, r: Reservation, *, now: datetime, **_) -> None:
        r.completed_at = now

    def _cancel(self, r: Reservation, *, now: datetime, actor: Actor, reason: str | None) -> RefundQuote:
        quote = self.policy.quote(r.amount_paid, r.check_in, now)
        r.cancelled_at = now
        r.cancelled_by = actor.value
        r.cancellation_reason = reason
        r.refund_percentage = quote.refund_percentage
        r.refund_amount = quote.refund_amount
        return quote

    @staticmethod
    def _check_amount(event: ReservationEvent, amount, expected: Decimal | None) -> None:
        if amount is None:
            raise ValidationError(f"An amount is required for {event.value}", field="amount")
        if expected is None or to_money(amount) != to_money(expected):
            raise AmountMismatchError(event.value, expected, to_money(amount))
