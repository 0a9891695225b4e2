"""
Requester-side participation request endpoints.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.db.session import get_db
from eventhub.schemas.participation_request import ParticipationRequestResponse
from eventhub.services import request_service
from eventhub.services.cache_service import invalidate_search_cache

router = APIRouter(prefix="/users/{user_id}/requests", tags=["Participation requests"])


@router.post("", response_model=ParticipationRequestResponse, status_code=status.HTTP_201_CREATED)
async def submit_request_endpoint(
    user_id: int,
    event_id: int = Query(..., alias="eventId"),
    db: AsyncSession = Depends(get_db),
):
    """Apply for a seat on a published event."""
    request = await request_service.submit_request(db, user_id, event_id)
    await invalidate_search_cache()
    return ParticipationRequestResponse.from_request(request)


@router.get("", response_model=list[ParticipationRequestResponse])
async def list_requests_endpoint(user_id: int, db: AsyncSession = Depends(get_db)):
    requests = await request_service.list_user_requests(db, user_id)
    return [ParticipationRequestResponse.from_request(r) for r in requests]


@router.patch("/{request_id}/cancel", response_model=ParticipationRequestResponse)
async def cancel_request_endpoint(
    user_id: int,
    request_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Withdraw a request. Cancelling a confirmed request frees its seat."""
    request = await request_service.cancel_request(db, user_id, request_id)
    await invalidate_search_cache()
    return ParticipationRequestResponse.from_request(request)
