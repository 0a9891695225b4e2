"""
Likes and dislikes on published events.
"""

from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.errors import ConflictError, NotFoundError
from eventhub.core.logging import get_logger
from eventhub.models.event import EventState
from eventhub.models.rate import EventRate, RateKind
from eventhub.repositories import event_repository

logger = get_logger(__name__)


async def _find_rate(db: AsyncSession, event_id: int, user_id: int):
    result = await db.execute(
        select(EventRate).where(EventRate.event_id == event_id, EventRate.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def rate_event(db: AsyncSession, user_id: int, event_id: int, kind: RateKind) -> EventRate:
    event = await event_repository.find(db, event_id)
    if event is None or event.state != EventState.PUBLISHED.value:
        raise NotFoundError(f"Event with id={event_id} was not found")
    if event.owner_id == user_id:
        raise ConflictError("The event initiator cannot rate their own event")

    rate = await _find_rate(db, event_id, user_id)
    if rate is not None and rate.rate == kind.value:
        raise ConflictError(
            f"User with id={user_id} already gave a {kind.name.lower()} to event with id={event_id}"
        )
    if rate is None:
        rate = EventRate(event_id=event_id, user_id=user_id, rate=kind.value)
        db.add(rate)
    else:
        rate.rate = kind.value
    try:
        await db.flush()
    except IntegrityError:
        raise ConflictError(
            f"User with id={user_id} already rated event with id={event_id}"
        )
    await db.refresh(rate)

    logger.info("event_rated", event_id=event_id, user_id=user_id, rate=kind.name)
    return rate


async def remove_rate(db: AsyncSession, user_id: int, event_id: int, kind: RateKind) -> None:
    rate = await _find_rate(db, event_id, user_id)
    if rate is None or rate.rate != kind.value:
        raise NotFoundError(
            f"No {kind.name.lower()} from user with id={user_id} on event with id={event_id}"
        )
    await db.delete(rate)
    await db.flush()
    logger.info("event_rate_removed", event_id=event_id, user_id=user_id, rate=kind.name)


async def ratings_for(db: AsyncSession, event_ids: Iterable[int]) -> dict[int, int]:
    """Sum of rates per event; events without rates are absent."""
    ids = list(event_ids)
    if not ids:
        return {}
    result = await db.execute(
        select(EventRate.event_id, func.sum(EventRate.rate))
        .where(EventRate.event_id.in_(ids))
        .group_by(EventRate.event_id)
    )
    return {event_id: int(total) for event_id, total in result.all()}
