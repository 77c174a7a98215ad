"""Listing service: create and fetch the listings reservations are made on."""

import logging
import uuid
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from staybook.domain.errors import ValidationError
from staybook.domain.money import to_money
from staybook.models.listing import Listing
from staybook.repositories.sqlalchemy import SqlListingRepository

logger = logging.getLogger(__name__)


async def create_listing(
    db: AsyncSession,
    *,
    host_id: uuid.UUID,
    title: str,
    base_price_per_night: Decimal,
    max_guests: int = 1,
) -> Listing:
    """Insert a listing owned by ``host_id``."""
    price = to_money(base_price_per_night)
    if price <= 0:
        raise ValidationError("Base nightly price must be positive", field="base_price_per_night")
    if max_guests < 1:
        raise ValidationError("A listing must accept at least one guest", field="max_guests")

    listing = await SqlListingRepository(db).add(
        Listing(
            host_id=host_id,
            title=title,
            base_price_per_night=price,
            max_guests=max_guests,
        )
    )
    logger.info("Created listing %s for host %s", listing.id, host_id)
    return listing


async def get_listing(db: AsyncSession, listing_id: uuid.UUID) -> Listing:
    return await SqlListingRepository(db).get(listing_id)
