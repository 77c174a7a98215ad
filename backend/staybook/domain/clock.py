"""Clock port. Business rules take ``now`` from here, never from the system."""

from datetime import date, datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """A clock pinned to one instant, movable by tests."""

    def __init__(self, instant: datetime) -> None:
        self.set(instant)

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    def set_date(self, day: date, hour: int = 12) -> None:
        self.set(datetime(day.year, day.month, day.day, hour, tzinfo=timezone.utc))


def as_utc(instant: datetime) -> datetime:
    """Normalise ``instant`` to aware UTC; naive values are taken as UTC."""
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


def utc_date(instant: datetime) -> date:
    """The UTC calendar day of ``instant``. Every date rule uses this day."""
    return as_utc(instant).date()
