"""SQLAlchemy models for the StayBook engine.

All models are imported here so that Alembic's autogenerate can discover
them via Base.metadata. If you add a new model, import it in this file.
"""

from staybook.models.listing import Listing
from staybook.models.reservation import Reservation
from staybook.models.reservation_history import ReservationHistory
from staybook.models.reserved_night import ReservedNight

__all__ = [
    "Listing",
    "Reservation",
    "ReservationHistory",
    "ReservedNight",
]
