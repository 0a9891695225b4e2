"""
HTTP client for the statistics service.

The main service never touches the statistics database directly. Failures
here must not break user-facing requests: `save_hit` logs and gives up, and
`get_stats` returns None so callers can fall back to zero views.
"""

from datetime import datetime
from typing import Optional, Sequence

import httpx
import structlog

from eventhub.core.config import get_settings
from eventhub.core.logging import get_logger
from eventhub.core.metrics import record_stats_client_error

logger = get_logger(__name__)
settings = get_settings()

STATS_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _trace_headers() -> dict:
    request_id = structlog.contextvars.get_contextvars().get("request_id")
    return {"X-Request-ID": request_id} if request_id else {}


class StatsClient:
    def __init__(
        self,
        base_url: str,
        app_name: str,
        timeout: float = 2.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.app_name = app_name
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def save_hit(self, uri: str, ip: str, timestamp: datetime) -> bool:
        payload = {
            "app": self.app_name,
            "uri": uri,
            "ip": ip,
            "timestamp": timestamp.strftime(STATS_TIMESTAMP_FORMAT),
        }
        try:
            response = await self._client.post("/hit", json=payload, headers=_trace_headers())
            response.raise_for_status()
        except httpx.HTTPError as e:
            record_stats_client_error("hit")
            logger.warning("stats_hit_failed", uri=uri, error=str(e))
            return False
        return True

    async def get_stats(
        self,
        start: datetime,
        end: datetime,
        uris: Sequence[str] = (),
        unique: bool = False,
    ) -> Optional[list[dict]]:
        """Raw view stats rows, or None when the statistics service is unavailable."""
        params = {
            "start": start.strftime(STATS_TIMESTAMP_FORMAT),
            "end": end.strftime(STATS_TIMESTAMP_FORMAT),
            "unique": str(unique).lower(),
        }
        if uris:
            params["uris"] = list(uris)
        try:
            response = await self._client.get("/stats", params=params, headers=_trace_headers())
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            record_stats_client_error("stats")
            logger.warning("stats_query_failed", uris=len(uris), error=str(e))
            return None

    async def views_by_uri(
        self, start: datetime, end: datetime, uris: Sequence[str]
    ) -> Optional[dict[str, int]]:
        """Raw hit counts keyed by uri; hits from every app are summed."""
        rows = await self.get_stats(start, end, uris, unique=False)
        if rows is None:
            return None
        views: dict[str, int] = {}
        for row in rows:
            views[row["uri"]] = views.get(row["uri"], 0) + int(row["hits"])
        return views

    async def close(self) -> None:
        await self._client.aclose()


_stats_client: Optional[StatsClient] = None


def get_stats_client() -> StatsClient:
    """FastAPI dependency returning the process-wide client."""
    global _stats_client
    if _stats_client is None:
        _stats_client = StatsClient(
            base_url=settings.STATS_SERVICE_URL,
            app_name=settings.STATS_APP_NAME,
            timeout=settings.STATS_CLIENT_TIMEOUT,
        )
    return _stats_client


async def close_stats_client() -> None:
    global _stats_client
    if _stats_client is not None:
        await _stats_client.close()
        _stats_client = None
