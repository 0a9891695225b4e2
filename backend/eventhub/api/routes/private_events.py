"""
Owner-side event endpoints: authoring, owner updates and request arbitration.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.api.params import Page
from eventhub.db.session import get_db
from eventhub.schemas.event import Actor, EventFull, EventShort, EventUpdate, NewEvent
from eventhub.schemas.participation_request import (
    ParticipationRequestResponse,
    StatusUpdateRequest,
    StatusUpdateResult,
)
from eventhub.services import event_service, lifecycle_service, request_service, search_service
from eventhub.services.cache_service import invalidate_search_cache
from eventhub.services.stats_client import StatsClient, get_stats_client

router = APIRouter(prefix="/users/{user_id}/events", tags=["Private events"])


@router.post("", response_model=EventFull, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    user_id: int,
    event_data: NewEvent,
    db: AsyncSession = Depends(get_db),
):
    """Create a new event. It stays PENDING until an administrator publishes it."""
    event = await event_service.create_event(db, user_id, event_data)
    return EventFull.from_event(event)


@router.get("", response_model=list[EventShort])
async def list_own_events_endpoint(
    user_id: int,
    page: Page = Depends(),
    db: AsyncSession = Depends(get_db),
    stats_client: StatsClient = Depends(get_stats_client),
):
    events = await event_service.list_owner_events(db, user_id, page.offset, page.size)
    return await search_service.describe_events(db, stats_client, events, EventShort)


@router.get("/{event_id}", response_model=EventFull)
async def get_own_event_endpoint(
    user_id: int,
    event_id: int,
    db: AsyncSession = Depends(get_db),
    stats_client: StatsClient = Depends(get_stats_client),
):
    event = await event_service.get_owner_event(db, user_id, event_id)
    [full] = await search_service.describe_events(db, stats_client, [event])
    return full


@router.patch("/{event_id}", response_model=EventFull)
async def update_own_event_endpoint(
    user_id: int,
    event_id: int,
    update: EventUpdate,
    db: AsyncSession = Depends(get_db),
    stats_client: StatsClient = Depends(get_stats_client),
):
    """Edit a pending or canceled event, send it to review or withdraw it."""
    event = await lifecycle_service.apply_update(
        db, event_id, update.as_actor(Actor.OWNER), requester_id=user_id
    )
    await invalidate_search_cache()
    [full] = await search_service.describe_events(db, stats_client, [event])
    return full


@router.get("/{event_id}/requests", response_model=list[ParticipationRequestResponse])
async def list_event_requests_endpoint(
    user_id: int,
    event_id: int,
    db: AsyncSession = Depends(get_db),
):
    requests = await request_service.list_event_requests(db, user_id, event_id)
    return [ParticipationRequestResponse.from_request(r) for r in requests]


@router.patch("/{event_id}/requests", response_model=StatusUpdateResult)
async def update_request_statuses_endpoint(
    user_id: int,
    event_id: int,
    body: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Confirm or reject pending requests in one atomic batch.

    When confirming against a seat limit, requests beyond the free seats are
    rejected and returned in rejectedRequests. 409 if the event is already
    full or any listed request is no longer pending.
    """
    confirmed, rejected = await request_service.update_request_statuses(
        db, event_id, user_id, body.request_ids, body.status
    )
    await invalidate_search_cache()
    return StatusUpdateResult(
        confirmed_requests=[ParticipationRequestResponse.from_request(r) for r in confirmed],
        rejected_requests=[ParticipationRequestResponse.from_request(r) for r in rejected],
    )
