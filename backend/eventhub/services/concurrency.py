"""
Shared handling of optimistic-lock conflicts on the events row.

Writers read the event, then issue a version-guarded UPDATE. When the UPDATE
touches no row, someone else changed the event in between: the transaction
is rolled back and the caller starts over from a fresh read, at most
MAX_RETRY_ATTEMPTS times.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.config import get_settings
from eventhub.core.errors import ConflictError
from eventhub.core.logging import get_logger
from eventhub.core.metrics import record_retry

logger = get_logger(__name__)
settings = get_settings()


def attempts() -> range:
    return range(1, settings.MAX_RETRY_ATTEMPTS + 1)


async def on_version_conflict(
    db: AsyncSession, operation: str, event_id: int, attempt: int
) -> None:
    """Roll back the failed attempt; raise ConflictError once retries are spent."""
    logger.info(
        "event_version_conflict",
        operation=operation,
        event_id=event_id,
        attempt=attempt,
    )
    record_retry(operation)
    await db.rollback()
    if attempt >= settings.MAX_RETRY_ATTEMPTS:
        raise ConflictError(
            f"Event with id={event_id} is being modified concurrently, please retry"
        )
