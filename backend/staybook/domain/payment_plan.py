"""Deposit/remainder split and remaining-payment due date."""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from staybook.config import Settings, settings
from staybook.domain.enums import PaymentPlanType
from staybook.domain.errors import ValidationError
from staybook.domain.money import ZERO, to_money


@dataclass(frozen=True)
class PaymentPlan:
    """Amounts owed under a plan. ``deposit_amount + remaining_amount == total``."""

    plan: PaymentPlanType
    total: Decimal
    deposit_amount: Decimal
    remaining_amount: Decimal

    @property
    def is_split(self) -> bool:
        return self.plan is PaymentPlanType.DEPOSIT


@dataclass(frozen=True)
class PaymentPlanner:
    """Builds payment plans for the configured deposit rate and due-date offset."""

    deposit_rate: Decimal = Decimal("0.5")
    due_days_before_check_in: int = 3

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "PaymentPlanner":
        return cls(
            deposit_rate=config.deposit_rate,
            due_days_before_check_in=config.payment_due_days_before_check_in,
        )

    def build(self, total: Decimal | int | str, plan: PaymentPlanType | str) -> PaymentPlan:
        """Split ``total`` according to ``plan``.

        The deposit is rounded half-up; the remainder absorbs any rounding
        residual so the two always add back to the total.
        """
        plan = PaymentPlanType(plan)
        total = to_money(total)
        if total <= 0:
            raise ValidationError("Total must be positive", field="total")

        if plan is PaymentPlanType.FULL:
            return PaymentPlan(plan=plan, total=total, deposit_amount=total, remaining_amount=ZERO)

        deposit = to_money(total * self.deposit_rate)
        return PaymentPlan(
            plan=plan,
            total=total,
            deposit_amount=deposit,
            remaining_amount=total - deposit,
        )

    def due_date(self, check_in: date) -> date:
        """Date by which the remaining balance of a deposit plan is due."""
        return check_in - timedelta(days=self.due_days_before_check_in)


@dataclass(frozen=True)
class PaymentStatus:
    """Derived view of what has been paid and what is still owed."""

    plan: PaymentPlanType
    total: Decimal
    amount_paid: Decimal
    amount_outstanding: Decimal
    deposit_paid: bool
    remaining_paid: bool
    payment_due_date: date | None
    days_until_due: int | None
    is_overdue: bool


def payment_status(reservation, today: date) -> PaymentStatus:
    """Compute the payment view of ``reservation`` as of ``today``.

    Overdue means the due date has passed with only the deposit paid on an
    active reservation.
    """
    due = reservation.payment_due_date
    awaiting_remainder = reservation.deposit_paid and not reservation.remaining_paid
    days_until_due = (due - today).days if due is not None and awaiting_remainder else None
    return PaymentStatus(
        plan=PaymentPlanType(reservation.payment_plan),
        total=reservation.total,
        amount_paid=reservation.amount_paid,
        amount_outstanding=reservation.amount_outstanding,
        deposit_paid=reservation.deposit_paid,
        remaining_paid=reservation.remaining_paid,
        payment_due_date=due,
        days_until_due=days_until_due,
        is_overdue=(
            awaiting_remainder
            and due is not None
            and due < today
            and reservation.status.is_active
        ),
    )
