"""Shared API dependencies, imported by every router::

    from staybook.api.deps import get_db, get_reservation_service
"""

from staybook.database import async_session_factory, get_db
from staybook.services.reservation_service import ReservationService


def get_reservation_service() -> ReservationService:
    """Reservation service bound to the application's session factory."""
    return ReservationService(async_session_factory)


__all__ = [
    "get_db",
    "get_reservation_service",
]
