"""Listing model: the bookable unit a reservation is made against."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from staybook.database import Base, UUIDPrimaryKeyMixin, utcnow


class Listing(UUIDPrimaryKeyMixin, Base):
    """A rentable place owned by a host."""

    __tablename__ = "listings"

    host_id: Mapped[uuid.UUID] = mapped_column(nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    base_price_per_night: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    max_guests: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, title={self.title!r}, host_id={self.host_id})>"
