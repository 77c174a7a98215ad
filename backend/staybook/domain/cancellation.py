"""Cancellation refund policy.

Tiers (defaults, configurable):

- 7+ days before check-in: full refund (100%)
- 3-6 days before check-in: partial refund (50%)
- fewer than 3 days: no refund

The refund is a share of what the guest has actually paid so far. ``now`` is
always passed in; nothing here reads the clock.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal

from staybook.config import Settings, settings
from staybook.domain.clock import as_utc
from staybook.domain.enums import RefundTier
from staybook.domain.money import to_money


@dataclass(frozen=True)
class RefundQuote:
    """Outcome of applying the policy at a given moment."""

    days_until_check_in: int
    refund_percentage: int
    amount_paid: Decimal
    refund_amount: Decimal
    tier: RefundTier
    description: str


def days_until(check_in: date, now: datetime) -> int:
    """Whole days from ``now`` to the start of ``check_in`` (floored).

    Check-in starts at UTC midnight; naive datetimes are taken as UTC.
    """
    check_in_start = datetime.combine(check_in, time.min, tzinfo=timezone.utc)
    return (check_in_start - as_utc(now)).days


@dataclass(frozen=True)
class CancellationPolicy:
    full_refund_min_days: int = 7
    partial_refund_min_days: int = 3
    partial_refund_percent: int = 50

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "CancellationPolicy":
        return cls(
            full_refund_min_days=config.full_refund_min_days,
            partial_refund_min_days=config.partial_refund_min_days,
            partial_refund_percent=config.partial_refund_percent,
        )

    def refund_percentage(self, days_until_check_in: int) -> int:
        if days_until_check_in >= self.full_refund_min_days:
            return 100
        if days_until_check_in >= self.partial_refund_min_days:
            return self.partial_refund_percent
        return 0

    def quote(
        self,
        amount_paid: Decimal | int | str,
        check_in: date,
        now: datetime,
    ) -> RefundQuote:
        """Refund owed if the reservation were cancelled at ``now``."""
        days = days_until(check_in, now)
        percentage = self.refund_percentage(days)
        paid = to_money(amount_paid)
        refund = to_money(paid * percentage / Decimal(100))

        if percentage == 100:
            tier = RefundTier.FULL
        elif percentage > 0:
            tier = RefundTier.PARTIAL
        else:
            tier = RefundTier.NONE

        return RefundQuote(
            days_until_check_in=days,
            refund_percentage=percentage,
            amount_paid=paid,
            refund_amount=refund,
            tier=tier,
            description=self.describe(days),
        )

    def describe(self, days_until_check_in: int) -> str:
        """Policy text for the tier that applies ``days_until_check_in`` days out."""
        full = self.full_refund_min_days
        partial = self.partial_refund_min_days
        if days_until_check_in >= full:
            return f"Free cancellation until {full} days before check-in"
        if days_until_check_in >= partial:
            return (
                f"{self.partial_refund_percent}% refund for cancellations "
                f"{partial}-{full - 1} days before check-in"
            )
        if days_until_check_in < 0:
            return "No refund after the check-in date"
        return f"No refund for cancellations within {partial} days of check-in"
