"""Enumeration types for the reservation lifecycle."""

from enum import Enum


class ReservationStatus(str, Enum):
    """Lifecycle state of a reservation."""

    PENDING = "pending"
    CONFIRMED_AWAITING_PAYMENT = "confirmed_awaiting_payment"
    CONFIRMED = "confirmed"
    ARRIVED = "arrived"
    COMPLETED = "completed"
    DECLINED = "declined"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_active(self) -> bool:
        """Active reservations block their dates for other guests."""
        return self in ACTIVE_STATUSES


ACTIVE_STATUSES: frozenset[ReservationStatus] = frozenset(
    {
        ReservationStatus.PENDING,
        ReservationStatus.CONFIRMED_AWAITING_PAYMENT,
        ReservationStatus.CONFIRMED,
        ReservationStatus.ARRIVED,
    }
)

TERMINAL_STATUSES: frozenset[ReservationStatus] = frozenset(
    {
        ReservationStatus.DECLINED,
        ReservationStatus.CANCELLED,
        ReservationStatus.COMPLETED,
    }
)


class ReservationEvent(str, Enum):
    """Business events that drive the state machine."""

    HOST_APPROVE = "host_approve"
    HOST_DECLINE = "host_decline"
    DEPOSIT_PAID = "deposit_paid"
    FULL_PAID = "full_paid"
    REMAINING_PAID = "remaining_paid"
    CANCEL = "cancel"
    PAYMENT_TIMEOUT = "payment_timeout"
    MARK_ARRIVED = "mark_arrived"
    MARK_COMPLETED = "mark_completed"


class PaymentPlanType(str, Enum):
    """How the guest pays: half up front then the rest, or everything at once."""

    DEPOSIT = "deposit"
    FULL = "full"


class RemainingPaymentMethod(str, Enum):
    """Where the remaining balance of a deposit plan is settled."""

    PLATFORM = "platform"
    PERSONAL = "personal"


class Actor(str, Enum):
    """Who triggered a transition, recorded in the history log."""

    GUEST = "guest"
    HOST = "host"
    ADMIN = "admin"
    SYSTEM = "system"


class RefundTier(str, Enum):
    FULL = "full"
    PARTIAL = "partial"
    NONE = "none"
