"""
Hit ingestion and view aggregation.

Hits are append-only. Aggregation groups by (app, uri) over an inclusive
time window and counts either every hit or distinct client IPs.
"""

import ipaddress
import time
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.clock import utcnow
from eventhub.core.errors import ValidationError
from eventhub.core.logging import get_logger
from eventhub.core.metrics import record_hit as count_hit, stats_queries
from eventhub.models.hit import EndpointHit
from eventhub.stats.schemas import ViewStats

logger = get_logger(__name__)


async def record_hit(
    db: AsyncSession, app: str, uri: str, ip: str, timestamp: datetime
) -> EndpointHit:
    if not app or not app.strip():
        raise ValidationError("app must not be blank")
    if not uri or not uri.strip():
        raise ValidationError("uri must not be blank")
    try:
        ipaddress.ip_address(ip)
    except ValueError:
        raise ValidationError(f"Malformed ip address: {ip!r}")
    timestamp = timestamp.replace(microsecond=0)
    if timestamp > utcnow():
        raise ValidationError("Hit timestamp must not be in the future")

    hit = EndpointHit(app=app, uri=uri, ip=ip, timestamp=timestamp)
    db.add(hit)
    await db.flush()
    await db.refresh(hit)

    count_hit(app)
    logger.debug("hit_recorded", hit_id=hit.id, app=app, uri=uri)
    return hit


async def get_view_stats(
    db: AsyncSession,
    start: datetime,
    end: datetime,
    uris: Optional[Sequence[str]] = None,
    unique: bool = False,
) -> list[ViewStats]:
    """
    Per-(app, uri) hit counts within [start, end].

    Ordered by hits descending, then uri and app ascending so that results
    are deterministic for equal counts.
    """
    if start >= end:
        raise ValidationError("start must be before end")

    started = time.perf_counter()
    hits = func.count(distinct(EndpointHit.ip)) if unique else func.count(EndpointHit.id)
    query = (
        select(EndpointHit.app, EndpointHit.uri, hits.label("hits"))
        .where(EndpointHit.timestamp >= start, EndpointHit.timestamp <= end)
        .group_by(EndpointHit.app, EndpointHit.uri)
        .order_by(hits.desc(), EndpointHit.uri.asc(), EndpointHit.app.asc())
    )
    if uris:
        query = query.where(EndpointHit.uri.in_(list(uris)))

    result = await db.execute(query)
    stats = [ViewStats(app=row.app, uri=row.uri, hits=row.hits) for row in result]
    stats_queries.observe(time.perf_counter() - started)

    logger.debug("view_stats_computed", rows=len(stats), unique=unique)
    return stats
