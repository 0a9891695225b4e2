"""
Participation request persistence.
"""

from typing import Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.models.participation_request import ParticipationRequest, RequestStatus


async def find_by_ids(db: AsyncSession, request_ids: Iterable[int]) -> list[ParticipationRequest]:
    ids = list(request_ids)
    if not ids:
        return []
    result = await db.execute(
        select(ParticipationRequest)
        .where(ParticipationRequest.id.in_(ids))
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def find_for_event(db: AsyncSession, event_id: int) -> list[ParticipationRequest]:
    result = await db.execute(
        select(ParticipationRequest)
        .where(ParticipationRequest.event_id == event_id)
        .order_by(ParticipationRequest.id.asc())
    )
    return list(result.scalars().all())


async def find_by_event_and_requester(
    db: AsyncSession, event_id: int, requester_id: int
) -> Optional[ParticipationRequest]:
    result = await db.execute(
        select(ParticipationRequest).where(
            ParticipationRequest.event_id == event_id,
            ParticipationRequest.requester_id == requester_id,
        )
    )
    return result.scalar_one_or_none()


async def find_by_requester(db: AsyncSession, requester_id: int) -> list[ParticipationRequest]:
    result = await db.execute(
        select(ParticipationRequest)
        .where(ParticipationRequest.requester_id == requester_id)
        .order_by(ParticipationRequest.created_at.desc(), ParticipationRequest.id.desc())
    )
    return list(result.scalars().all())


async def find_by_id_and_requester(
    db: AsyncSession, request_id: int, requester_id: int
) -> Optional[ParticipationRequest]:
    result = await db.execute(
        select(ParticipationRequest)
        .where(
            ParticipationRequest.id == request_id,
            ParticipationRequest.requester_id == requester_id,
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def save_all(
    db: AsyncSession, requests: list[ParticipationRequest]
) -> list[ParticipationRequest]:
    db.add_all(requests)
    await db.flush()
    for request in requests:
        await db.refresh(request)
    return requests


async def set_status(
    db: AsyncSession,
    event_id: int,
    request_ids: list[int],
    status: RequestStatus,
    expected: RequestStatus = RequestStatus.PENDING,
) -> int:
    """
    Move requests of one event from `expected` to `status`.
    Returns the number of rows changed; a short count means some request
    was resolved concurrently.
    """
    if not request_ids:
        return 0
    result = await db.execute(
        update(ParticipationRequest)
        .where(
            ParticipationRequest.event_id == event_id,
            ParticipationRequest.id.in_(request_ids),
            ParticipationRequest.status == expected.value,
        )
        .values(status=status.value)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
