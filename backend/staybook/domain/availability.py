"""Date-range overlap rules and the per-listing availability index."""

import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import TYPE_CHECKING

from staybook.domain.enums import ACTIVE_STATUSES

if TYPE_CHECKING:
    from staybook.models.reservation import Reservation
    from staybook.repositories.base import ReservationRepository


@dataclass(frozen=True)
class BookedRange:
    reservation_id: uuid.UUID
    check_in: date
    check_out: date
    status: str


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Half-open interval overlap: a check-out on another's check-in day is fine."""
    return a_start < b_end and b_start < a_end


def nights_between(check_in: date, check_out: date) -> list[date]:
    """Every night of the stay, check-in inclusive and check-out exclusive."""
    return [check_in + timedelta(days=i) for i in range((check_out - check_in).days)]


class AvailabilityIndex:
    """Answers overlap queries for a listing against its active reservations.

    Reads go through the repository bound to the caller's unit of work. The
    final guarantee against double booking is the repository's atomic
    ``reserve``; this index gives callers the conflicting reservations so the
    error can name them.
    """

    def __init__(self, repository: "ReservationRepository") -> None:
        self.repository = repository

    async def find_conflicts(
        self,
        listing_id: uuid.UUID,
        check_in: date,
        check_out: date,
    ) -> list["Reservation"]:
        candidates = await self.repository.list_active_for_listing(listing_id, check_in, check_out)
        return [
            r
            for r in candidates
            if r.status in ACTIVE_STATUSES
            and ranges_overlap(check_in, check_out, r.check_in, r.check_out)
        ]

    async def booked_ranges(
        self,
        listing_id: uuid.UUID,
        start: date | None = None,
        end: date | None = None,
    ) -> list[BookedRange]:
        """Active stays on the listing, ordered by check-in, for calendar views."""
        reservations = await self.repository.list_active_for_listing(listing_id, start, end)
        return [
            BookedRange(
                reservation_id=r.id,
                check_in=r.check_in,
                check_out=r.check_out,
                status=r.status.value,
            )
            for r in sorted(reservations, key=lambda r: r.check_in)
        ]
