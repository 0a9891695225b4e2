"""
Async engine and session factories.

The main service and the statistics service each get their own engine so the
statistics store can live in a separate database (STATS_DATABASE_URL).
Request-scoped sessions commit on success and roll back on any exception,
which is what gives batch operations their all-or-nothing behaviour.
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from eventhub.core.config import get_settings

settings = get_settings()


def build_engine(url: str) -> AsyncEngine:
    options = {"pool_pre_ping": True}
    if not url.startswith("sqlite"):
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
        )
    return create_async_engine(url, echo=settings.DEBUG, **options)


engine = build_engine(settings.DATABASE_URL)
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

stats_engine = build_engine(settings.stats_database_url)
StatsSessionLocal = async_sessionmaker(stats_engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_stats_db() -> AsyncGenerator[AsyncSession, None]:
    async with StatsSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
