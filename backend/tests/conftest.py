"""Shared test configuration and fixtures.

Each test gets its own SQLite database file (via aiosqlite) so that
concurrent units of work behave like separate connections to a real store.
The clock is fixed at ``NOW`` unless a test moves it.
"""

import uuid
from collections.abc import AsyncGenerator
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from staybook import models  # noqa: F401
from staybook.api.deps import get_db, get_reservation_service
from staybook.database import Base, build_engine, build_session_factory
from staybook.domain.clock import FixedClock
from staybook.main import app
from staybook.models.listing import Listing
from staybook.services.listing_service import create_listing
from staybook.services.reservation_service import ReservationService

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
CHECK_IN = date(2026, 3, 20)
CHECK_OUT = date(2026, 3, 23)

HOST_ID = uuid.UUID("00000000-0000-4000-8000-000000000001")
GUEST_ID = uuid.UUID("00000000-0000-4000-8000-000000000002")
OTHER_GUEST_ID = uuid.UUID("00000000-0000-4000-8000-000000000003")


class RecordingNotifier:
    """Notifier that remembers what it was told; optionally blows up."""

    def __init__(self) -> None:
        self.sent: list[tuple[uuid.UUID, str]] = []
        self.fail = False

    async def notify(self, reservation_id: uuid.UUID, event: str) -> None:
        if self.fail:
            raise RuntimeError("notification channel down")
        self.sent.append((reservation_id, event))

    def events_for(self, reservation_id: uuid.UUID) -> list[str]:
        return [event for rid, event in self.sent if rid == reservation_id]


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Engine over a fresh SQLite file with all tables created."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'staybook.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(test_engine)


# ---------------------------------------------------------------------------
# Engine collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def service(
    session_factory: async_sessionmaker[AsyncSession],
    clock: FixedClock,
    notifier: RecordingNotifier,
) -> ReservationService:
    return ReservationService(session_factory, clock=clock, notifier=notifier)


@pytest_asyncio.fixture
async def listing(session_factory: async_sessionmaker[AsyncSession]) -> Listing:
    """A 1000/night listing for up to 4 guests, owned by ``HOST_ID``."""
    async with session_factory() as session, session.begin():
        return await create_listing(
            session,
            host_id=HOST_ID,
            title="Harbour View Loft",
            base_price_per_night=Decimal("1000"),
            max_guests=4,
        )


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    service: ReservationService,
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to the test database and clock."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_reservation_service] = lambda: service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()
