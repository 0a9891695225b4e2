"""
Query-string helpers shared by the route modules.
"""

from datetime import datetime
from typing import Optional

from fastapi import Query

from eventhub.core.config import get_settings
from eventhub.core.errors import ValidationError
from eventhub.schemas.common import parse_datetime

settings = get_settings()


def parse_query_datetime(name: str, value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return parse_datetime(value)
    except ValueError as exc:
        raise ValidationError(f"{name}: {exc}")


class Page:
    """`from`/`size` paging parameters."""

    def __init__(
        self,
        offset: int = Query(0, alias="from", ge=0),
        size: int = Query(settings.DEFAULT_PAGE_SIZE, gt=0, le=1000),
    ):
        self.offset = offset
        self.size = size
