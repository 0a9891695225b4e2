"""
Event moderation state machine.

  PENDING --PUBLISH_EVENT (admin)--> PUBLISHED
  PENDING --REJECT_EVENT (admin)---> CANCELED
  PENDING --CANCEL_REVIEW (owner)--> CANCELED
  CANCELED --SEND_TO_REVIEW (owner)--> PENDING

PUBLISHED is terminal for both actors. A single EventUpdate command carries an
optional state action plus optional field edits; the whole change is applied
as one version-guarded row update, so a concurrent arbitration batch and an
owner edit can never interleave on the same row.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.clock import utcnow
from eventhub.core.config import get_settings
from eventhub.core.errors import (
    ForbiddenError,
    InvalidStateError,
    ValidationError,
)
from eventhub.core.logging import get_logger
from eventhub.core.metrics import record_transition
from eventhub.models.event import Event, EventState
from eventhub.repositories import event_repository
from eventhub.schemas.event import ALLOWED_ACTIONS, Actor, EventUpdate, StateAction
from eventhub.services.concurrency import attempts, on_version_conflict
from eventhub.services.event_service import check_event_date

logger = get_logger(__name__)
settings = get_settings()


def _check_action(actor: Actor, update: EventUpdate) -> None:
    if update.state_action is not None and update.state_action not in ALLOWED_ACTIONS[actor]:
        raise ValidationError(
            f"State action {update.state_action.value} is not allowed for {actor.value}"
        )


async def apply_update(
    db: AsyncSession,
    event_id: int,
    update: EventUpdate,
    requester_id: Optional[int] = None,
) -> Event:
    """Dispatch an update command on its actor."""
    if update.actor == Actor.ADMIN:
        return await apply_admin_action(db, event_id, update)
    if update.actor == Actor.OWNER:
        if requester_id is None:
            raise ValidationError("Owner updates require the requesting user")
        return await apply_owner_action(db, event_id, requester_id, update)
    raise ValidationError("Event update has no actor")


async def apply_admin_action(db: AsyncSession, event_id: int, update: EventUpdate) -> Event:
    _check_action(Actor.ADMIN, update)

    for attempt in attempts():
        event = await event_repository.get(db, event_id)
        if event.state != EventState.PENDING.value:
            raise InvalidStateError(
                f"Cannot moderate the event because it's not in the right state: {event.state}"
            )

        values = update.column_values()
        if "event_date" in values:
            check_event_date(values["event_date"], settings.EVENT_MIN_LEAD_HOURS_ADMIN)

        if update.state_action == StateAction.PUBLISH_EVENT:
            check_event_date(
                values.get("event_date", event.event_date),
                settings.EVENT_MIN_LEAD_HOURS_ADMIN,
            )
            values["state"] = EventState.PUBLISHED.value
            values["published_on"] = utcnow()
        elif update.state_action == StateAction.REJECT_EVENT:
            values["state"] = EventState.CANCELED.value

        _check_limit(event, values)
        if not values:
            return event

        if await event_repository.update_fields(db, event_id, values, event.version):
            return await _applied(db, event, Actor.ADMIN, update, values)
        await on_version_conflict(db, "admin_update", event_id, attempt)


async def apply_owner_action(
    db: AsyncSession, event_id: int, requester_id: int, update: EventUpdate
) -> Event:
    _check_action(Actor.OWNER, update)

    for attempt in attempts():
        event = await event_repository.get(db, event_id)
        if event.owner_id != requester_id:
            raise ForbiddenError(
                f"User with id={requester_id} is not the owner of event with id={event_id}"
            )
        if event.state == EventState.PUBLISHED.value:
            raise InvalidStateError("Only pending or canceled events can be changed")

        values = update.column_values()
        if "event_date" in values:
            check_event_date(values["event_date"], settings.EVENT_MIN_LEAD_HOURS_OWNER)

        if update.state_action == StateAction.SEND_TO_REVIEW:
            if event.state != EventState.PENDING.value:
                values["state"] = EventState.PENDING.value
        elif update.state_action == StateAction.CANCEL_REVIEW:
            values["state"] = EventState.CANCELED.value

        _check_limit(event, values)
        if not values:
            return event

        if await event_repository.update_fields(db, event_id, values, event.version):
            return await _applied(db, event, Actor.OWNER, update, values)
        await on_version_conflict(db, "owner_update", event_id, attempt)


def _check_limit(event: Event, values: dict) -> None:
    limit = values.get("participant_limit")
    if limit and limit < event.confirmed_requests:
        raise ValidationError(
            f"Participant limit {limit} is below the {event.confirmed_requests} "
            "already confirmed participants"
        )


async def _applied(
    db: AsyncSession, before: Event, actor: Actor, update: EventUpdate, values: dict
) -> Event:
    from_state = before.state
    event = await event_repository.get(db, before.id)
    if update.state_action is not None:
        record_transition(actor.value, update.state_action.value)
    logger.info(
        "event_updated",
        event_id=event.id,
        actor=actor.value,
        action=update.state_action.value if update.state_action else None,
        from_state=from_state,
        to_state=event.state,
        fields=sorted(k for k in values if k not in ("state", "published_on")),
    )
    return event
