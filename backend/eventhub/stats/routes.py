"""
Statistics endpoints: hit ingestion and view aggregation.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventhub.core.errors import ValidationError
from eventhub.db.session import get_stats_db
from eventhub.stats import service
from eventhub.stats.schemas import HitCreate, HitResponse, ViewStats, parse_timestamp

router = APIRouter(tags=["Statistics"])


def _timestamp_param(name: str, value: str):
    try:
        return parse_timestamp(value)
    except ValueError as exc:
        raise ValidationError(f"{name}: {exc}")


@router.post("/hit", response_model=HitResponse, status_code=status.HTTP_201_CREATED)
async def save_hit(hit: HitCreate, db: AsyncSession = Depends(get_stats_db)):
    """Record one access to an endpoint."""
    return await service.record_hit(db, hit.app, hit.uri, hit.ip, hit.timestamp)


@router.get("/stats", response_model=list[ViewStats])
async def get_stats(
    start: str = Query(...),
    end: str = Query(...),
    uris: Optional[list[str]] = Query(None),
    unique: bool = Query(False),
    db: AsyncSession = Depends(get_stats_db),
):
    """
    Hit counts per (app, uri) within [start, end].
    `unique=true` counts distinct client IPs instead of raw hits.
    """
    return await service.get_view_stats(
        db,
        _timestamp_param("start", start),
        _timestamp_param("end", end),
        uris=uris,
        unique=unique,
    )
