"""SQLAlchemy implementations of the repository ports.

Each repository is bound to one ``AsyncSession``; the caller owns the
transaction. Nothing here commits.
"""

import logging
import uuid
from datetime import date

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from staybook.domain.availability import nights_between
from staybook.domain.enums import ACTIVE_STATUSES, PaymentPlanType, ReservationStatus
from staybook.domain.errors import DateConflictError, NotFoundError, VersionConflictError
from staybook.models.listing import Listing
from staybook.models.reservation import Reservation
from staybook.models.reserved_night import ReservedNight
from staybook.repositories.base import ListingRepository, ReservationRepository

logger = logging.getLogger(__name__)


class SqlReservationRepository(ReservationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def load(self, reservation_id: uuid.UUID) -> Reservation:
        result = await self.session.execute(select(Reservation).where(Reservation.id == reservation_id))
        reservation = result.scalar_one_or_none()
        if reservation is None:
            raise NotFoundError("Reservation", reservation_id)
        return reservation

    async def save(self, reservation: Reservation) -> None:
        """Flush pending changes; the version check happens in the UPDATE.

        A failed flush expires the instance, so the id is read up front.
        """
        reservation_id = reservation.id
        try:
            await self.session.flush()
        except StaleDataError as exc:
            logger.warning("Stale write on reservation %s", reservation_id)
            raise VersionConflictError(reservation_id) from exc

    async def reserve(self, reservation: Reservation) -> None:
        """Insert the reservation and one row per night.

        The unique key on ``(listing_id, night)`` rejects any overlapping
        insert that raced past the availability check.
        """
        if reservation.id is None:
            reservation.id = uuid.uuid4()
        try:
            self.session.add(reservation)
            await self.session.flush()
            self.session.add_all(
                ReservedNight(
                    listing_id=reservation.listing_id,
                    night=night,
                    reservation_id=reservation.id,
                )
                for night in nights_between(reservation.check_in, reservation.check_out)
            )
            await self.session.flush()
        except IntegrityError as exc:
            logger.warning(
                "Night already held on listing %s for %s..%s",
                reservation.listing_id,
                reservation.check_in,
                reservation.check_out,
            )
            raise DateConflictError(reservation.listing_id, reservation.check_in, reservation.check_out) from exc

    async def release_nights(self, reservation: Reservation) -> None:
        await self.session.execute(delete(ReservedNight).where(ReservedNight.reservation_id == reservation.id))

    async def list_active_for_listing(
        self,
        listing_id: uuid.UUID,
        check_in: date | None = None,
        check_out: date | None = None,
    ) -> list[Reservation]:
        query = select(Reservation).where(
            Reservation.listing_id == listing_id,
            Reservation.status.in_(ACTIVE_STATUSES),
        )
        if check_out is not None:
            query = query.where(Reservation.check_in < check_out)
        if check_in is not None:
            query = query.where(Reservation.check_out > check_in)
        result = await self.session.execute(query.order_by(Reservation.check_in))
        return list(result.scalars().all())

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
        base_query = select(Reservation)
        count_query = select(func.count()).select_from(Reservation)

        # Dynamic filters
        filters = []
        if listing_id is not None:
            filters.append(Reservation.listing_id == listing_id)
        if guest_id is not None:
            filters.append(Reservation.guest_id == guest_id)
        if host_id is not None:
            filters.append(Reservation.host_id == host_id)
        if status is not None:
            filters.append(Reservation.status == status)
        if filters:
            base_query = base_query.where(*filters)
            count_query = count_query.where(*filters)

        total = (await self.session.execute(count_query)).scalar_one()
        result = await self.session.execute(
            base_query.order_by(Reservation.created_at.desc(), Reservation.id).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def list_overdue(self, today: date) -> list[Reservation]:
        result = await self.session.execute(
            select(Reservation)
            .where(
                Reservation.status == ReservationStatus.CONFIRMED,
                Reservation.payment_plan == PaymentPlanType.DEPOSIT,
                Reservation.deposit_paid.is_(True),
                Reservation.remaining_paid.is_(False),
                Reservation.payment_due_date < today,
            )
            .order_by(Reservation.payment_due_date)
        )
        return list(result.scalars().all())


class SqlListingRepository(ListingRepository):
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, listing: Listing) -> Listing:
        self.session.add(listing)
        await self.session.flush()
        return listing

    async def get(self, listing_id: uuid.UUID) -> Listing:
        listing = await self.session.get(Listing, listing_id)
        if listing is None:
            raise NotFoundError("Listing", listing_id)
        return listing
