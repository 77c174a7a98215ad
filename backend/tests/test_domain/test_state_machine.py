"""Tests for the reservation lifecycle state machine (no database)."""

import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

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
from staybook.domain.state_machine import ReservationStateMachine, allowed_events
from staybook.models.reservation import Reservation

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
CHECK_IN = date(2026, 3, 20)

S = ReservationStatus
E = ReservationEvent


@pytest.fixture
def machine() -> ReservationStateMachine:
    return ReservationStateMachine.from_settings()


def _new(machine: ReservationStateMachine, plan: PaymentPlanType = PaymentPlanType.DEPOSIT) -> Reservation:
    reservation = Reservation(
        id=uuid.uuid4(),
        listing_id=uuid.uuid4(),
        guest_id=uuid.uuid4(),
        host_id=uuid.uuid4(),
        check_in=CHECK_IN,
        check_out=CHECK_IN + timedelta(days=3),
        guest_count=2,
        base_nightly_price=Decimal("1000.00"),
        nights=3,
        subtotal=Decimal("3000.00"),
        service_fee=Decimal("300.00"),
        cleaning_fee=Decimal("50.00"),
        taxes=Decimal("360.00"),
        total=Decimal("3710.00"),
        payment_plan=plan,
    )
    machine.start(reservation, actor=Actor.GUEST, now=NOW)
    return reservation


def _approved(machine, plan=PaymentPlanType.DEPOSIT) -> Reservation:
    r = _new(machine, plan)
    machine.apply(r, E.HOST_APPROVE, actor=Actor.HOST, now=NOW)
    return r


def _confirmed(machine) -> Reservation:
    r = _approved(machine)
    machine.apply(r, E.DEPOSIT_PAID, actor=Actor.GUEST, now=NOW, amount=Decimal("1855.00"))
    return r


def _at(day: date, hour: int = 12) -> datetime:
    return datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc)


class TestStart:
    def test_pending_with_creation_history(self, machine) -> None:
        r = _new(machine)
        assert r.status is S.PENDING
        assert not r.deposit_paid and not r.remaining_paid
        assert [h.event for h in r.history] == ["created"]
        assert r.history[0].from_status is None


class TestApproveAndDecline:
    def test_approve_attaches_payment_plan(self, machine) -> None:
        r = _new(machine)
        outcome = machine.apply(r, E.HOST_APPROVE, actor=Actor.HOST, now=NOW)

        assert r.status is S.CONFIRMED_AWAITING_PAYMENT
        assert r.deposit_amount == Decimal("1855.00")
        assert r.remaining_amount == Decimal("1855.00")
        assert r.payment_due_date is None
        assert r.approved_at == NOW
        assert not outcome.releases_nights

    def test_approve_full_plan(self, machine) -> None:
        r = _approved(machine, PaymentPlanType.FULL)
        assert r.deposit_amount == Decimal("3710.00")
        assert r.remaining_amount == Decimal("0.00")

    def test_decline_requires_reason(self, machine) -> None:
        r = _new(machine)
        with pytest.raises(ValidationError) as exc_info:
            machine.apply(r, E.HOST_DECLINE, actor=Actor.HOST, now=NOW, reason="   ")
        assert exc_info.value.field == "reason"
        assert r.status is S.PENDING
        assert len(r.history) == 1

    def test_decline_releases_nights(self, machine) -> None:
        r = _new(machine)
        outcome = machine.apply(r, E.HOST_DECLINE, actor=Actor.HOST, now=NOW, reason="Maintenance")
        assert r.status is S.DECLINED
        assert r.decline_reason == "Maintenance"
        assert outcome.releases_nights
        assert r.history[-1].note == "Maintenance"


class TestPayments:
    def test_deposit_confirms_and_sets_due_date(self, machine) -> None:
        r = _confirmed(machine)
        assert r.status is S.CONFIRMED
        assert r.deposit_paid and not r.remaining_paid
        assert r.payment_due_date == date(2026, 3, 17)
        assert r.remaining_payment_method is RemainingPaymentMethod.PLATFORM
        assert r.amount_paid == Decimal("1855.00")

    def test_deposit_amount_must_match(self, machine) -> None:
        r = _approved(machine)
        with pytest.raises(AmountMismatchError) as exc_info:
            machine.apply(r, E.DEPOSIT_PAID, actor=Actor.GUEST, now=NOW, amount=Decimal("1000"))
        assert exc_info.value.details["expected"] == "1855.00"
        assert r.status is S.CONFIRMED_AWAITING_PAYMENT
        assert not r.deposit_paid

    def test_payment_without_amount_is_validation_error(self, machine) -> None:
        r = _approved(machine)
        with pytest.raises(ValidationError):
            machine.apply(r, E.DEPOSIT_PAID, actor=Actor.GUEST, now=NOW)

    def test_remaining_paid_completes_payment(self, machine) -> None:
        r = _confirmed(machine)
        machine.apply(
            r,
            E.REMAINING_PAID,
            actor=Actor.GUEST,
            now=NOW,
            amount="1855",
            remaining_payment_method=RemainingPaymentMethod.PERSONAL,
        )
        assert r.status is S.CONFIRMED
        assert r.remaining_paid
        assert r.remaining_payment_method is RemainingPaymentMethod.PERSONAL
        assert r.amount_paid == Decimal("3710.00")
        assert r.amount_outstanding == Decimal("0.00")

    def test_remaining_paid_twice_rejected(self, machine) -> None:
        r = _confirmed(machine)
        machine.apply(r, E.REMAINING_PAID, actor=Actor.GUEST, now=NOW, amount="1855.00")
        with pytest.raises(InvalidTransitionError) as exc_info:
            machine.apply(r, E.REMAINING_PAID, actor=Actor.GUEST, now=NOW, amount="1855.00")
        assert "already paid" in exc_info.value.message

    def test_deposit_paid_twice_rejected(self, machine) -> None:
        r = _confirmed(machine)
        with pytest.raises(InvalidTransitionError):
            machine.apply(r, E.DEPOSIT_PAID, actor=Actor.GUEST, now=NOW, amount="1855.00")
        assert r.deposit_paid and r.status is S.CONFIRMED

    def test_remaining_paid_on_pending_rejected(self, machine) -> None:
        r = _new(machine)
        with pytest.raises(InvalidTransitionError) as exc_info:
            machine.apply(r, E.REMAINING_PAID, actor=Actor.GUEST, now=NOW, amount="1855.00")
        assert exc_info.value.status == "pending"
        assert exc_info.value.event == "remaining_paid"

    def test_full_paid_on_full_plan(self, machine) -> None:
        r = _approved(machine, PaymentPlanType.FULL)
        machine.apply(r, E.FULL_PAID, actor=Actor.GUEST, now=NOW, amount="3710.00")
        assert r.status is S.CONFIRMED
        assert r.deposit_paid and r.remaining_paid
        assert r.payment_due_date is None

    def test_deposit_paid_on_full_plan_takes_total(self, machine) -> None:
        r = _approved(machine, PaymentPlanType.FULL)
        machine.apply(r, E.DEPOSIT_PAID, actor=Actor.GUEST, now=NOW, amount="3710.00")
        assert r.deposit_paid and r.remaining_paid

    def test_full_paid_on_deposit_plan_rejected(self, machine) -> None:
        r = _approved(machine)
        with pytest.raises(InvalidTransitionError):
            machine.apply(r, E.FULL_PAID, actor=Actor.GUEST, now=NOW, amount="3710.00")

    def test_remaining_paid_on_full_plan_rejected(self, machine) -> None:
        r = _approved(machine, PaymentPlanType.FULL)
        machine.apply(r, E.FULL_PAID, actor=Actor.GUEST, now=NOW, amount="3710.00")
        with pytest.raises(InvalidTransitionError):
            machine.apply(r, E.REMAINING_PAID, actor=Actor.GUEST, now=NOW, amount="0")


class TestCancel:
    def test_cancel_awaiting_payment_refunds_nothing_paid(self, machine) -> None:
        r = _approved(machine)
        outcome = machine.apply(r, E.CANCEL, actor=Actor.GUEST, now=NOW, reason="Change of plans")
        assert r.status is S.CANCELLED
        assert r.refund_amount == Decimal("0.00")
        assert r.cancellation_reason == "Change of plans"
        assert r.cancelled_by == "guest"
        assert outcome.releases_nights

    def test_host_cannot_cancel_awaiting_payment(self, machine) -> None:
        r = _approved(machine)
        with pytest.raises(InvalidTransitionError):
            machine.apply(r, E.CANCEL, actor=Actor.HOST, now=NOW)

    def test_payment_timeout_is_system_only(self, machine) -> None:
        r = _approved(machine)
        with pytest.raises(InvalidTransitionError):
            machine.apply(r, E.PAYMENT_TIMEOUT, actor=Actor.GUEST, now=NOW)
        machine.apply(r, E.PAYMENT_TIMEOUT, actor=Actor.SYSTEM, now=NOW)
        assert r.status is S.CANCELLED
        assert r.cancellation_reason == "Payment not received in time"

    def test_cancel_confirmed_ten_days_out_full_refund(self, machine) -> None:
        r = _confirmed(machine)
        outcome = machine.apply(r, E.CANCEL, actor=Actor.GUEST, now=_at(CHECK_IN - timedelta(days=10)))
        assert r.refund_percentage == 100
        assert r.refund_amount == Decimal("1855.00")
        assert outcome.refund is not None and outcome.refund.refund_amount == Decimal("1855.00")

    def test_cancel_confirmed_two_days_out_no_refund(self, machine) -> None:
        r = _confirmed(machine)
        machine.apply(r, E.CANCEL, actor=Actor.GUEST, now=_at(CHECK_IN - timedelta(days=2), hour=0))
        assert r.refund_percentage == 0
        assert r.refund_amount == Decimal("0.00")

    def test_cancel_on_check_in_day_allowed(self, machine) -> None:
        r = _confirmed(machine)
        machine.apply(r, E.CANCEL, actor=Actor.GUEST, now=_at(CHECK_IN))
        assert r.status is S.CANCELLED

    def test_cancel_after_check_in_rejected(self, machine) -> None:
        r = _confirmed(machine)
        with pytest.raises(InvalidTransitionError) as exc_info:
            machine.apply(r, E.CANCEL, actor=Actor.GUEST, now=_at(CHECK_IN + timedelta(days=1)))
        assert "check-in date has passed" in exc_info.value.message

    def test_cancel_pending_rejected(self, machine) -> None:
        r = _new(machine)
        with pytest.raises(InvalidTransitionError):
            machine.apply(r, E.CANCEL, actor=Actor.GUEST, now=NOW)


class TestArrivalAndCompletion:
    @pytest.mark.parametrize("offset", [0, 1])
    def test_arrival_window(self, machine, offset: int) -> None:
        r = _confirmed(machine)
        machine.apply(r, E.MARK_ARRIVED, actor=Actor.HOST, now=_at(CHECK_IN + timedelta(days=offset)))
        assert r.status is S.ARRIVED

    @pytest.mark.parametrize("offset", [-1, 2])
    def test_arrival_outside_window(self, machine, offset: int) -> None:
        r = _confirmed(machine)
        with pytest.raises(NotCheckInDayError):
            machine.apply(r, E.MARK_ARRIVED, actor=Actor.HOST, now=_at(CHECK_IN + timedelta(days=offset)))
        assert r.status is S.CONFIRMED

    def test_arrival_day_is_the_utc_day(self, machine) -> None:
        r = _confirmed(machine)
        # Check-in morning in UTC+10 is still the previous day in UTC.
        local_morning = datetime(CHECK_IN.year, CHECK_IN.month, CHECK_IN.day, 8, tzinfo=timezone(timedelta(hours=10)))
        with pytest.raises(NotCheckInDayError):
            machine.apply(r, E.MARK_ARRIVED, actor=Actor.HOST, now=local_morning)

    def test_complete_enables_review(self, machine) -> None:
        r = _confirmed(machine)
        machine.apply(r, E.MARK_ARRIVED, actor=Actor.HOST, now=_at(CHECK_IN))
        assert not r.is_review_eligible
        machine.apply(r, E.MARK_COMPLETED, actor=Actor.HOST, now=_at(CHECK_IN + timedelta(days=3)))
        assert r.status is S.COMPLETED
        assert r.is_review_eligible
        assert [h.to_status for h in r.history] == [
            "pending",
            "confirmed_awaiting_payment",
            "confirmed",
            "arrived",
            "completed",
        ]


class TestTable:
    @pytest.mark.parametrize("status", [S.DECLINED, S.CANCELLED, S.COMPLETED])
    def test_terminal_states_accept_nothing(self, status: ReservationStatus) -> None:
        assert allowed_events(status) == []
        assert status.is_terminal

    def test_any_event_on_terminal_state_rejected(self, machine) -> None:
        r = _new(machine)
        machine.apply(r, E.HOST_DECLINE, actor=Actor.HOST, now=NOW, reason="No")
        for event in ReservationEvent:
            with pytest.raises(InvalidTransitionError):
                machine.apply(r, event, actor=Actor.ADMIN, now=NOW, amount="1", reason="x")

    def test_confirmed_events(self) -> None:
        assert set(allowed_events(S.CONFIRMED)) == {E.REMAINING_PAID, E.CANCEL, E.MARK_ARRIVED}
