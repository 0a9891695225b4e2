"""
Event persistence.

Every write that touches seat accounting or moderation state goes through a
version-guarded UPDATE:

  UPDATE events SET ..., version = version + 1
  WHERE id = :event_id AND version = :expected_version

A return value of False means another transaction modified the row first;
callers roll back and retry from a fresh read.
"""

from typing import Any, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.errors import NotFoundError
from eventhub.models.event import Event


async def find(db: AsyncSession, event_id: int) -> Optional[Event]:
    result = await db.execute(
        select(Event)
        .where(Event.id == event_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get(db: AsyncSession, event_id: int) -> Event:
    """Fresh read of an event; raises NotFoundError if it does not exist."""
    event = await find(db, event_id)
    if event is None:
        raise NotFoundError(f"Event with id={event_id} was not found")
    return event


async def save(db: AsyncSession, event: Event) -> Event:
    db.add(event)
    await db.flush()
    await db.refresh(event)
    return event


async def update_fields(
    db: AsyncSession,
    event_id: int,
    fields: dict[str, Any],
    expected_version: int,
) -> bool:
    """Apply a partial update as a single conditional row update."""
    result = await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.version == expected_version)
        .values(**fields, version=Event.version + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def increment_confirmed(
    db: AsyncSession,
    event_id: int,
    delta: int,
    expected_version: int,
) -> bool:
    """
    Atomically move the confirmed-participants counter by `delta`.

    The WHERE clause re-checks the seat limit so the row can never end up
    over-allocated, even if the caller computed `delta` from stale data.
    """
    result = await db.execute(
        update(Event)
        .where(
            Event.id == event_id,
            Event.version == expected_version,
            Event.confirmed_requests + delta >= 0,
            or_(
                Event.participant_limit == 0,
                Event.confirmed_requests + delta <= Event.participant_limit,
            ),
        )
        .values(
            confirmed_requests=Event.confirmed_requests + delta,
            version=Event.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
