"""
Pytest fixtures for test databases, clients, and seeded events.

Both services run in-process on in-memory SQLite databases (one per
service, recreated for every test). The main app's statistics client is
wired straight to the statistics app through an ASGI transport.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("STATS_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REDIS_ENABLED", "false")

from datetime import timedelta
from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from eventhub.core.clock import utcnow
from eventhub.db.base import Base
from eventhub.db.session import get_db, get_stats_db
from eventhub.main import app
from eventhub.models.event import Event, EventState
from eventhub.models.participation_request import ParticipationRequest, RequestStatus
from eventhub.services.stats_client import StatsClient, get_stats_client
from eventhub.stats.main import app as stats_app

OWNER_ID = 1


def _memory_engine():
    return create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def _session_override(session_maker):
    """Dependency override mirroring get_db: commit on success, roll back on error."""

    async def override() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return override


@pytest_asyncio.fixture(scope="function")
async def session_maker():
    """Main database: tables created for each test, dropped afterwards."""
    engine = _memory_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def stats_session_maker():
    engine = _memory_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def stats_client_app(stats_session_maker) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the statistics service."""

    stats_app.dependency_overrides[get_stats_db] = _session_override(stats_session_maker)

    transport = ASGITransport(app=stats_app)
    async with AsyncClient(transport=transport, base_url="http://stats") as ac:
        yield ac

    stats_app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def stats_client(stats_client_app) -> AsyncGenerator[StatsClient, None]:
    """The main service's statistics client, talking to the in-process stats app."""
    client = StatsClient(
        base_url="http://stats",
        app_name="eventhub-main",
        transport=ASGITransport(app=stats_app),
    )
    yield client
    await client.close()


@pytest_asyncio.fixture(scope="function")
async def client(session_maker, stats_client) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the main service with test databases wired in."""

    app.dependency_overrides[get_db] = _session_override(session_maker)
    app.dependency_overrides[get_stats_client] = lambda: stats_client

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def make_event(session_maker):
    """Factory inserting an event directly; published with 10 seats by default."""

    async def _make(**overrides) -> Event:
        fields = dict(
            owner_id=OWNER_ID,
            category_id=1,
            title="Jazz in the park",
            annotation="An evening of live jazz by the lake",
            description="Local bands play standards and originals until sunset.",
            lat=55.75,
            lon=37.61,
            event_date=utcnow() + timedelta(days=10),
            paid=False,
            participant_limit=10,
            request_moderation=True,
            state=EventState.PUBLISHED.value,
            published_on=utcnow(),
            confirmed_requests=0,
            version=1,
        )
        fields.update(overrides)
        async with session_maker() as session:
            event = Event(**fields)
            session.add(event)
            await session.commit()
            await session.refresh(event)
            return event

    return _make


@pytest_asyncio.fixture
async def make_requests(session_maker):
    """Factory inserting requests for an event from requesters 100, 101, ... by default."""

    async def _make(
        event: Event,
        count: int,
        status: RequestStatus = RequestStatus.PENDING,
        first_requester: int = 100,
    ):
        async with session_maker() as session:
            requests = [
                ParticipationRequest(
                    event_id=event.id, requester_id=first_requester + i, status=status.value
                )
                for i in range(count)
            ]
            session.add_all(requests)
            await session.commit()
            for request in requests:
                await session.refresh(request)
            return requests

    return _make


@pytest_asyncio.fixture
async def published_event(make_event) -> Event:
    return await make_event()


@pytest_asyncio.fixture
async def pending_event(make_event) -> Event:
    return await make_event(state=EventState.PENDING.value, published_on=None)
