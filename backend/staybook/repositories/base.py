"""Repository interfaces used by the reservation service."""

import uuid
from abc import ABC, abstractmethod
from datetime import date

from staybook.domain.enums import ReservationStatus
from staybook.models.listing import Listing
from staybook.models.reservation import Reservation


class ReservationRepository(ABC):
    """Repository interface for the Reservation aggregate"""

    @abstractmethod
    async def load(self, reservation_id: uuid.UUID) -> Reservation:
        """Load a reservation or raise NotFoundError"""

    @abstractmethod
    async def save(self, reservation: Reservation) -> None:
        """Persist changes or raise VersionConflictError on a stale write"""

    @abstractmethod
    async def reserve(self, reservation: Reservation) -> None:
        """Insert a reservation with its nights, or raise DateConflictError"""

    @abstractmethod
    async def release_nights(self, reservation: Reservation) -> None:
        """Free the nights held by a reservation"""

    @abstractmethod
    async def list_active_for_listing(
        self,
        listing_id: uuid.UUID,
        check_in: date | None = None,
        check_out: date | None = None,
    ) -> list[Reservation]:
        """Active reservations on a listing overlapping the optional window"""

    @abstractmethod
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
        """Filtered page of reservations and the total match count"""

    @abstractmethod
    async def list_overdue(self, today: date) -> list[Reservation]:
        """Deposit-paid reservations whose remaining balance is past due"""


class ListingRepository(ABC):
    """Repository interface for listings"""

    @abstractmethod
    async def add(self, listing: Listing) -> Listing:
        """Insert a listing"""

    @abstractmethod
    async def get(self, listing_id: uuid.UUID) -> Listing:
        """Load a listing or raise NotFoundError"""
