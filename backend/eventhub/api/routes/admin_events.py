"""
Moderator endpoints: event search across all states and moderation actions.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.api.params import Page, parse_query_datetime
from eventhub.db.session import get_db
from eventhub.models.event import EventState
from eventhub.schemas.event import Actor, AdminSearchParams, EventFull, EventUpdate
from eventhub.services import lifecycle_service, search_service
from eventhub.services.cache_service import invalidate_search_cache
from eventhub.services.stats_client import StatsClient, get_stats_client

router = APIRouter(prefix="/admin/events", tags=["Admin events"])


@router.get("", response_model=list[EventFull])
async def search_events_endpoint(
    users: Optional[list[int]] = Query(None),
    states: Optional[list[EventState]] = Query(None),
    categories: Optional[list[int]] = Query(None),
    range_start: Optional[str] = Query(None, alias="rangeStart"),
    range_end: Optional[str] = Query(None, alias="rangeEnd"),
    page: Page = Depends(),
    db: AsyncSession = Depends(get_db),
    stats_client: StatsClient = Depends(get_stats_client),
):
    params = AdminSearchParams(
        users=users,
        states=states,
        categories=categories,
        range_start=parse_query_datetime("rangeStart", range_start),
        range_end=parse_query_datetime("rangeEnd", range_end),
        offset=page.offset,
        size=page.size,
    )
    return await search_service.search_admin(db, stats_client, params)


@router.patch("/{event_id}", response_model=EventFull)
async def moderate_event_endpoint(
    event_id: int,
    update: EventUpdate,
    db: AsyncSession = Depends(get_db),
    stats_client: StatsClient = Depends(get_stats_client),
):
    """Publish or reject a pending event, optionally editing its fields."""
    event = await lifecycle_service.apply_update(db, event_id, update.as_actor(Actor.ADMIN))
    await invalidate_search_cache()
    [full] = await search_service.describe_events(db, stats_client, [event])
    return full
