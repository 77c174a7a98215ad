"""Persistence ports and their SQLAlchemy implementations."""

from staybook.repositories.base import ListingRepository, ReservationRepository
from staybook.repositories.sqlalchemy import SqlListingRepository, SqlReservationRepository

__all__ = [
    "ListingRepository",
    "ReservationRepository",
    "SqlListingRepository",
    "SqlReservationRepository",
]
