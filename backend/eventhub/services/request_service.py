"""
Participation requests and owner arbitration.

CONCURRENCY STRATEGY: Optimistic Locking with Retry
====================================================

Problem:
  Two owner batches (or a batch and an auto-confirmed submit) race for the
  last seats of an event. Both read confirmed_requests=9 of 10, both confirm
  one more, the event ends up with 11 participants.

Solution:
  Seat accounting only moves through event_repository.increment_confirmed:

    UPDATE events
       SET confirmed_requests = confirmed_requests + :n, version = version + 1
     WHERE id = :event_id AND version = :v
       AND (participant_limit = 0 OR confirmed_requests + :n <= participant_limit)

  Request rows are written with a status guard (WHERE status = 'PENDING').
  Both writes share the request transaction. If the counter UPDATE misses,
  the attempt is rolled back and the batch is re-evaluated from a fresh read;
  if a status UPDATE misses, the batch fails with ConflictError and the
  session dependency rolls everything back.
"""

import time

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.errors import (
    CapacityExceededError,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)
from eventhub.core.logging import get_logger
from eventhub.core.metrics import arbitration_latency, record_arbitration
from eventhub.models.event import Event, EventState
from eventhub.models.participation_request import ParticipationRequest, RequestStatus
from eventhub.repositories import event_repository, request_repository
from eventhub.schemas.participation_request import ArbitrationStatus
from eventhub.services.concurrency import attempts, on_version_conflict

logger = get_logger(__name__)


def _dedupe(request_ids: list[int]) -> list[int]:
    seen = set()
    ordered = []
    for request_id in request_ids:
        if request_id not in seen:
            seen.add(request_id)
            ordered.append(request_id)
    return ordered


async def _owned_event(db: AsyncSession, event_id: int, owner_id: int) -> Event:
    event = await event_repository.get(db, event_id)
    if event.owner_id != owner_id:
        raise ForbiddenError(
            f"User with id={owner_id} is not the owner of event with id={event_id}"
        )
    return event


async def _load_pending_batch(
    db: AsyncSession, event_id: int, request_ids: list[int]
) -> dict[int, ParticipationRequest]:
    """Load the batch; every id must belong to the event and still be PENDING."""
    found = {
        r.id: r for r in await request_repository.find_by_ids(db, request_ids)
        if r.event_id == event_id
    }
    missing = [rid for rid in request_ids if rid not in found]
    if missing:
        raise NotFoundError(
            f"Requests {missing} were not found for event with id={event_id}"
        )
    resolved = [rid for rid in request_ids if found[rid].status != RequestStatus.PENDING.value]
    if resolved:
        raise ConflictError(f"Requests {resolved} are not pending")
    return found


async def update_request_statuses(
    db: AsyncSession,
    event_id: int,
    owner_id: int,
    request_ids: list[int],
    desired: ArbitrationStatus,
) -> tuple[list[ParticipationRequest], list[ParticipationRequest]]:
    """
    Confirm or reject a batch of pending requests for one event.

    Returns (confirmed, rejected), each in the order the caller listed the ids.
    When confirming against a seat limit, the ids past the remaining seats are
    rejected rather than failing the batch.
    """
    ids = _dedupe(request_ids)
    started = time.perf_counter()

    for attempt in attempts():
        event = await _owned_event(db, event_id, owner_id)
        await _load_pending_batch(db, event_id, ids)

        if desired == ArbitrationStatus.REJECTED:
            await _write_status(db, event_id, ids, RequestStatus.REJECTED)
            rejected = await _in_order(db, ids)
            record_arbitration("rejected", len(rejected))
            logger.info("requests_rejected", event_id=event_id, count=len(rejected))
            arbitration_latency.observe(time.perf_counter() - started)
            return [], rejected

        if event.participant_limit == 0:
            to_confirm, overflow = ids, []
        else:
            remaining = event.participant_limit - event.confirmed_requests
            if remaining <= 0:
                logger.warning(
                    "arbitration_capacity_exceeded",
                    event_id=event_id,
                    participant_limit=event.participant_limit,
                )
                raise CapacityExceededError(
                    f"The participant limit of {event.participant_limit} has been reached"
                )
            to_confirm, overflow = ids[:remaining], ids[remaining:]

        if not await event_repository.increment_confirmed(
            db, event_id, len(to_confirm), event.version
        ):
            await on_version_conflict(db, "arbitration", event_id, attempt)
            continue

        await _write_status(db, event_id, to_confirm, RequestStatus.CONFIRMED)
        await _write_status(db, event_id, overflow, RequestStatus.REJECTED)

        confirmed = await _in_order(db, to_confirm)
        rejected = await _in_order(db, overflow)
        record_arbitration("confirmed", len(confirmed))
        record_arbitration("overflow", len(rejected))
        logger.info(
            "requests_confirmed",
            event_id=event_id,
            confirmed=len(confirmed),
            overflow_rejected=len(rejected),
            attempt=attempt,
        )
        arbitration_latency.observe(time.perf_counter() - started)
        return confirmed, rejected


async def _write_status(
    db: AsyncSession, event_id: int, ids: list[int], status: RequestStatus
) -> None:
    changed = await request_repository.set_status(db, event_id, ids, status)
    if changed != len(ids):
        raise ConflictError("Some requests were resolved concurrently, please retry")


async def _in_order(db: AsyncSession, ids: list[int]) -> list[ParticipationRequest]:
    by_id = {r.id: r for r in await request_repository.find_by_ids(db, ids)}
    return [by_id[rid] for rid in ids]


async def submit_request(db: AsyncSession, requester_id: int, event_id: int) -> ParticipationRequest:
    """
    Apply for a seat. Events without a seat limit or without moderation
    confirm the request immediately and take the seat in the same transaction.
    """
    for attempt in attempts():
        event = await event_repository.get(db, event_id)
        if event.owner_id == requester_id:
            raise ConflictError("The event initiator cannot request participation in it")
        existing = await request_repository.find_by_event_and_requester(db, event_id, requester_id)
        if existing is not None:
            raise ConflictError(
                f"User with id={requester_id} already requested event with id={event_id}"
            )
        if event.state != EventState.PUBLISHED.value:
            raise InvalidStateError("Cannot participate in an unpublished event")
        if event.is_full:
            raise CapacityExceededError(
                f"The participant limit of {event.participant_limit} has been reached"
            )

        auto_confirm = event.participant_limit == 0 or not event.request_moderation
        if auto_confirm and not await event_repository.increment_confirmed(
            db, event_id, 1, event.version
        ):
            await on_version_conflict(db, "submit", event_id, attempt)
            continue

        status = RequestStatus.CONFIRMED if auto_confirm else RequestStatus.PENDING
        request = ParticipationRequest(
            event_id=event_id, requester_id=requester_id, status=status.value
        )
        try:
            [request] = await request_repository.save_all(db, [request])
        except IntegrityError:
            raise ConflictError(
                f"User with id={requester_id} already requested event with id={event_id}"
            )

        logger.info(
            "request_submitted",
            request_id=request.id,
            event_id=event_id,
            requester_id=requester_id,
            status=request.status,
        )
        return request


async def cancel_request(db: AsyncSession, requester_id: int, request_id: int) -> ParticipationRequest:
    for attempt in attempts():
        request = await request_repository.find_by_id_and_requester(db, request_id, requester_id)
        if request is None:
            raise NotFoundError(f"Request with id={request_id} was not found")
        if request.status == RequestStatus.CANCELED.value:
            return request
        if request.status == RequestStatus.REJECTED.value:
            raise InvalidStateError("A rejected request cannot be canceled")

        if request.status == RequestStatus.CONFIRMED.value:
            event = await event_repository.get(db, request.event_id)
            if not await event_repository.increment_confirmed(
                db, event.id, -1, event.version
            ):
                await on_version_conflict(db, "cancel", event.id, attempt)
                continue

        previous = RequestStatus(request.status)
        changed = await request_repository.set_status(
            db, request.event_id, [request.id], RequestStatus.CANCELED, expected=previous
        )
        if changed != 1:
            raise ConflictError("Request was changed concurrently, please retry")

        request = await request_repository.find_by_id_and_requester(db, request_id, requester_id)
        logger.info(
            "request_canceled",
            request_id=request.id,
            event_id=request.event_id,
            previous_status=previous.value,
        )
        return request


async def list_user_requests(db: AsyncSession, requester_id: int) -> list[ParticipationRequest]:
    return await request_repository.find_by_requester(db, requester_id)


async def list_event_requests(
    db: AsyncSession, owner_id: int, event_id: int
) -> list[ParticipationRequest]:
    await _owned_event(db, event_id, owner_id)
    return await request_repository.find_for_event(db, event_id)
