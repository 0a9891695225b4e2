"""
Like/dislike endpoints.
"""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.db.session import get_db
from eventhub.models.rate import RateKind
from eventhub.repositories import event_repository
from eventhub.schemas.event import EventFull
from eventhub.services import rating_service, search_service
from eventhub.services.cache_service import invalidate_search_cache
from eventhub.services.stats_client import StatsClient, get_stats_client

router = APIRouter(prefix="/users/{user_id}/events/{event_id}", tags=["Ratings"])


async def _rate(db, stats_client, user_id: int, event_id: int, kind: RateKind) -> EventFull:
    await rating_service.rate_event(db, user_id, event_id, kind)
    await invalidate_search_cache()
    event = await event_repository.get(db, event_id)
    [full] = await search_service.describe_events(db, stats_client, [event])
    return full


async def _unrate(db, user_id: int, event_id: int, kind: RateKind) -> Response:
    await rating_service.remove_rate(db, user_id, event_id, kind)
    await invalidate_search_cache()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/like", response_model=EventFull)
async def like_event_endpoint(
    user_id: int,
    event_id: int,
    db: AsyncSession = Depends(get_db),
    stats_client: StatsClient = Depends(get_stats_client),
):
    return await _rate(db, stats_client, user_id, event_id, RateKind.LIKE)


@router.patch("/dislike", response_model=EventFull)
async def dislike_event_endpoint(
    user_id: int,
    event_id: int,
    db: AsyncSession = Depends(get_db),
    stats_client: StatsClient = Depends(get_stats_client),
):
    return await _rate(db, stats_client, user_id, event_id, RateKind.DISLIKE)


@router.delete("/like", status_code=status.HTTP_204_NO_CONTENT)
async def remove_like_endpoint(user_id: int, event_id: int, db: AsyncSession = Depends(get_db)):
    return await _unrate(db, user_id, event_id, RateKind.LIKE)


@router.delete("/dislike", status_code=status.HTTP_204_NO_CONTENT)
async def remove_dislike_endpoint(user_id: int, event_id: int, db: AsyncSession = Depends(get_db)):
    return await _unrate(db, user_id, event_id, RateKind.DISLIKE)
