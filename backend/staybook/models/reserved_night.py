"""One row per booked night; the unique key is the double-booking guard."""

import uuid
from datetime import date

from sqlalchemy import Date, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from staybook.database import Base, UUIDPrimaryKeyMixin


class ReservedNight(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "reserved_nights"

    listing_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
    )
    night: Mapped[date] = mapped_column(Date, nullable=False)
    reservation_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    __table_args__ = (UniqueConstraint("listing_id", "night", name="uq_reserved_nights_listing_night"),)

    def __repr__(self) -> str:
        return f"<ReservedNight(listing_id={self.listing_id}, night={self.night})>"
