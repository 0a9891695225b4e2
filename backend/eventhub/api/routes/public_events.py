"""
Public event endpoints with Redis caching on search.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.api.params import Page, parse_query_datetime
from eventhub.core.clock import utcnow
from eventhub.core.logging import get_logger
from eventhub.db.session import get_db
from eventhub.schemas.event import EventFull, EventShort, PublicSearchParams, SortOption
from eventhub.services import search_service
from eventhub.services.cache_service import get_cached_search, set_cached_search
from eventhub.services.stats_client import StatsClient, get_stats_client

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Public events"])


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "0.0.0.0"


@router.get("", response_model=list[EventShort])
async def search_events_endpoint(
    text: Optional[str] = Query(None),
    categories: Optional[list[int]] = Query(None),
    paid: Optional[bool] = Query(None),
    range_start: Optional[str] = Query(None, alias="rangeStart"),
    range_end: Optional[str] = Query(None, alias="rangeEnd"),
    only_available: bool = Query(False, alias="onlyAvailable"),
    sort: SortOption = Query(SortOption.EVENT_DATE),
    page: Page = Depends(),
    db: AsyncSession = Depends(get_db),
    stats_client: StatsClient = Depends(get_stats_client),
):
    """
    Search published events.
    Results are cached in Redis for REDIS_CACHE_TTL seconds and invalidated
    on any write that changes what a search can return.
    """
    params = PublicSearchParams(
        text=text,
        categories=categories,
        paid=paid,
        range_start=parse_query_datetime("rangeStart", range_start),
        range_end=parse_query_datetime("rangeEnd", range_end),
        only_available=only_available,
        sort=sort,
        offset=page.offset,
        size=page.size,
    )

    cached = await get_cached_search(params.cache_key())
    if cached is not None:
        logger.info("events_search_cache_hit", sort=sort.value)
        return [EventShort.model_validate(item) for item in cached]

    events = await search_service.search_public(db, stats_client, params)
    await set_cached_search(
        params.cache_key(), [e.model_dump(mode="json", by_alias=True) for e in events]
    )
    return events


@router.get("/{event_id}", response_model=EventFull)
async def get_event_endpoint(
    event_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    stats_client: StatsClient = Depends(get_stats_client),
):
    """Get a published event. Each successful read is recorded as a hit."""
    event = await search_service.get_public_event(db, stats_client, event_id)
    background_tasks.add_task(
        stats_client.save_hit, f"/events/{event_id}", _client_ip(request), utcnow()
    )
    return event
