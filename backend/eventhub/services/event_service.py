"""
Event authoring: creation and owner-side reads.
"""

from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.clock import utcnow
from eventhub.core.config import get_settings
from eventhub.core.errors import NotFoundError, ValidationError
from eventhub.core.logging import get_logger
from eventhub.models.event import Event, EventState
from eventhub.repositories import event_repository
from eventhub.schemas.event import NewEvent

logger = get_logger(__name__)
settings = get_settings()


def check_event_date(event_date: datetime, lead_hours: int) -> None:
    """Reject event dates closer than `lead_hours` from now."""
    earliest = utcnow() + timedelta(hours=lead_hours)
    if event_date < earliest:
        raise ValidationError(
            f"Event date must be at least {lead_hours} hour(s) in the future, "
            f"got {event_date:%Y-%m-%d %H:%M:%S}"
        )


async def create_event(db: AsyncSession, owner_id: int, event_data: NewEvent) -> Event:
    """Create a new event awaiting moderation with no confirmed participants."""
    check_event_date(event_data.event_date, settings.EVENT_MIN_LEAD_HOURS_OWNER)

    event = Event(
        owner_id=owner_id,
        category_id=event_data.category,
        title=event_data.title,
        annotation=event_data.annotation,
        description=event_data.description,
        lat=event_data.location.lat,
        lon=event_data.location.lon,
        event_date=event_data.event_date,
        paid=event_data.paid,
        participant_limit=event_data.participant_limit,
        request_moderation=event_data.request_moderation,
        state=EventState.PENDING.value,
        confirmed_requests=0,
        version=1,
    )
    event = await event_repository.save(db, event)

    logger.info(
        "event_created",
        event_id=event.id,
        owner_id=owner_id,
        participant_limit=event.participant_limit,
    )
    return event


async def list_owner_events(
    db: AsyncSession, owner_id: int, offset: int = 0, size: int = 10
) -> list[Event]:
    result = await db.execute(
        select(Event)
        .where(Event.owner_id == owner_id)
        .order_by(Event.id.asc())
        .offset(offset)
        .limit(size)
    )
    return list(result.scalars().all())


async def get_owner_event(db: AsyncSession, owner_id: int, event_id: int) -> Event:
    event = await event_repository.find(db, event_id)
    if event is None or event.owner_id != owner_id:
        raise NotFoundError(f"Event with id={event_id} was not found")
    return event


async def get_published_event(db: AsyncSession, event_id: int) -> Event:
    """Public read; unpublished events are indistinguishable from missing ones."""
    event = await event_repository.find(db, event_id)
    if event is None or event.state != EventState.PUBLISHED.value:
        raise NotFoundError(f"Event with id={event_id} was not found")
    return event
