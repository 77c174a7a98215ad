"""Reservation model: the aggregate driven by the state machine."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staybook.database import Base, UUIDPrimaryKeyMixin, utcnow
from staybook.domain.enums import (
    PaymentPlanType,
    RemainingPaymentMethod,
    ReservationStatus,
)
from staybook.domain.money import ZERO


def _enum(enum_cls, length: int) -> Enum:
    """Store an enum by value in a plain string column."""
    return Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class Reservation(UUIDPrimaryKeyMixin, Base):
    """A guest's stay at a listing, from request through completion.

    Mutated only through ``ReservationStateMachine``. ``version`` is bumped on
    every UPDATE and checked by the ORM, so a write based on a stale read
    fails instead of overwriting a concurrent transition.
    """

    __tablename__ = "reservations"

    listing_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    guest_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    host_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)

    check_in: Mapped[date] = mapped_column(Date, nullable=False)
    check_out: Mapped[date] = mapped_column(Date, nullable=False)
    guest_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Price breakdown, fixed at creation
    base_nightly_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    nights: Mapped[int] = mapped_column(Integer, nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    service_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    cleaning_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    taxes: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # Payment plan, amounts attached on host approval
    payment_plan: Mapped[PaymentPlanType] = mapped_column(_enum(PaymentPlanType, 20), nullable=False)
    deposit_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    remaining_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    remaining_payment_method: Mapped[RemainingPaymentMethod | None] = mapped_column(
        _enum(RemainingPaymentMethod, 20),
        nullable=True,
    )
    payment_due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    deposit_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    remaining_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    status: Mapped[ReservationStatus] = mapped_column(
        _enum(ReservationStatus, 40),
        nullable=False,
        default=ReservationStatus.PENDING,
        index=True,
    )

    # Decline / cancellation records
    decline_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_by: Mapped[str | None] = mapped_column(String(20), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    refund_percentage: Mapped[int | None] = mapped_column(Integer, nullable=True)
    refund_amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    arrived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    # Relationships
    history: Mapped[list["ReservationHistory"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="reservation",
        lazy="selectin",
        order_by="ReservationHistory.id",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (Index("ix_reservations_listing_dates", "listing_id", "check_in", "check_out"),)

    @property
    def amount_paid(self) -> Decimal:
        """What the guest has paid so far: nothing, the deposit, or the total."""
        if self.remaining_paid:
            return self.total
        if self.deposit_paid:
            return self.deposit_amount if self.deposit_amount is not None else ZERO
        return ZERO

    @property
    def amount_outstanding(self) -> Decimal:
        return self.total - self.amount_paid

    @property
    def is_review_eligible(self) -> bool:
        return self.status is ReservationStatus.COMPLETED

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, listing_id={self.listing_id}, "
            f"{self.check_in}..{self.check_out}, status={self.status})>"
        )
