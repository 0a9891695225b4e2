"""
Event search and ranking.

Filtering always happens in SQL. Ordering depends on the sort option:

  EVENT_DATE  SQL ORDER BY event_date with SQL paging (default)
  VIEWS       all candidates are loaded, one stats call fetches raw hit counts
              for every candidate uri, then sort and page in memory
  RATING      all candidates are loaded and ordered by their like/dislike sum

Every result is decorated with views, confirmed requests and rating. If the
statistics service is unreachable, views are reported as 0 and VIEWS
ordering degrades to EVENT_DATE.
"""

from datetime import timedelta
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.clock import utcnow
from eventhub.core.errors import ValidationError
from eventhub.core.logging import get_logger
from eventhub.models.event import Event, EventState
from eventhub.schemas.event import (
    AdminSearchParams,
    EventFull,
    EventShort,
    PublicSearchParams,
    SortOption,
)
from eventhub.services import rating_service
from eventhub.services.event_service import get_published_event
from eventhub.services.stats_client import StatsClient

logger = get_logger(__name__)


def _check_range(range_start, range_end) -> None:
    if range_start and range_end and range_start > range_end:
        raise ValidationError("rangeStart must not be after rangeEnd")


async def fetch_views(
    stats_client: StatsClient, events: list[Event]
) -> Optional[dict[int, int]]:
    """Raw hit counts per event id, or None if the statistics service failed."""
    if not events:
        return {}
    end = utcnow()
    start = min(e.created_at for e in events)
    if start >= end:
        start = end - timedelta(seconds=1)
    by_uri = await stats_client.views_by_uri(start, end, [e.uri for e in events])
    if by_uri is None:
        return None
    return {e.id: by_uri.get(e.uri, 0) for e in events}


async def _decorate(db, stats_client, events, schema, views=None):
    if views is None:
        views = await fetch_views(stats_client, events) or {}
    ratings = await rating_service.ratings_for(db, [e.id for e in events])
    return [
        schema.from_event(e, views=views.get(e.id, 0), rating=ratings.get(e.id, 0))
        for e in events
    ]


def _public_query(params: PublicSearchParams):
    _check_range(params.range_start, params.range_end)
    query = select(Event).where(Event.state == EventState.PUBLISHED.value)

    if params.text:
        pattern = f"%{params.text}%"
        query = query.where(or_(Event.annotation.ilike(pattern), Event.description.ilike(pattern)))
    if params.categories:
        query = query.where(Event.category_id.in_(params.categories))
    if params.paid is not None:
        query = query.where(Event.paid == params.paid)

    if params.range_start is None and params.range_end is None:
        query = query.where(Event.event_date > utcnow())
    if params.range_start is not None:
        query = query.where(Event.event_date >= params.range_start)
    if params.range_end is not None:
        query = query.where(Event.event_date <= params.range_end)

    if params.only_available:
        query = query.where(
            or_(
                Event.participant_limit == 0,
                Event.confirmed_requests < Event.participant_limit,
            )
        )
    return query.order_by(Event.event_date.asc(), Event.id.asc())


async def search_public(
    db: AsyncSession, stats_client: StatsClient, params: PublicSearchParams
) -> list[EventShort]:
    query = _public_query(params)
    page = slice(params.offset, params.offset + params.size)

    if params.sort == SortOption.EVENT_DATE:
        result = await db.execute(query.offset(params.offset).limit(params.size))
        return await _decorate(db, stats_client, list(result.scalars().all()), EventShort)

    candidates = list((await db.execute(query)).scalars().all())

    if params.sort == SortOption.RATING:
        ratings = await rating_service.ratings_for(db, [e.id for e in candidates])
        # candidates are already in event_date order; sorted() is stable
        ranked = sorted(candidates, key=lambda e: -ratings.get(e.id, 0))
        return await _decorate(db, stats_client, ranked[page], EventShort)

    views = await fetch_views(stats_client, candidates)
    if views is None:
        logger.warning(
            "search_views_unavailable",
            fallback=SortOption.EVENT_DATE.value,
            candidates=len(candidates),
        )
        return await _decorate(db, stats_client, candidates[page], EventShort, views={})

    ranked = sorted(candidates, key=lambda e: -views.get(e.id, 0))
    return await _decorate(db, stats_client, ranked[page], EventShort, views=views)


async def search_admin(
    db: AsyncSession, stats_client: StatsClient, params: AdminSearchParams
) -> list[EventFull]:
    _check_range(params.range_start, params.range_end)
    query = select(Event)
    if params.users:
        query = query.where(Event.owner_id.in_(params.users))
    if params.states:
        query = query.where(Event.state.in_([s.value for s in params.states]))
    if params.categories:
        query = query.where(Event.category_id.in_(params.categories))
    if params.range_start is not None:
        query = query.where(Event.event_date >= params.range_start)
    if params.range_end is not None:
        query = query.where(Event.event_date <= params.range_end)

    result = await db.execute(
        query.order_by(Event.id.asc()).offset(params.offset).limit(params.size)
    )
    return await _decorate(db, stats_client, list(result.scalars().all()), EventFull)


async def describe_events(
    db: AsyncSession, stats_client: StatsClient, events: list[Event], schema=EventFull
) -> list:
    """Already-loaded events decorated like search results."""
    return await _decorate(db, stats_client, events, schema)


async def get_public_event(
    db: AsyncSession, stats_client: StatsClient, event_id: int
) -> EventFull:
    event = await get_published_event(db, event_id)
    [full] = await describe_events(db, stats_client, [event])
    return full
