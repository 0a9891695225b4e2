"""
Redis caching for public event search results.

CACHING STRATEGY
================

What we cache:
  - Serialized public search pages (GET /events)
  - Cache key pattern: "events:search:{normalized search params as JSON}"

Invalidation:
  - Any write that changes what a search can return (moderation, arbitration,
    request submit/cancel, ratings) deletes every "events:search:*" key
  - Short TTL (REDIS_CACHE_TTL) bounds staleness of view counts, which change
    on every detail page hit and are never invalidated explicitly

Redis is optional: when disabled or unreachable every call degrades to a
cache miss and the search runs against the database.
"""

import json
from typing import Optional

import redis.asyncio as redis

from eventhub.core.config import get_settings
from eventhub.core.logging import get_logger
from eventhub.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

SEARCH_KEY_PREFIX = "events:search:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except redis.RedisError as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


async def get_cached_search(params_key: str) -> Optional[list]:
    client = await get_redis()
    if not client:
        return None

    key = SEARCH_KEY_PREFIX + params_key
    try:
        data = await client.get(key)
    except redis.RedisError as e:
        logger.error("cache_get_error", key=key, error=str(e))
        return None

    record_cache_operation("get", hit=data is not None)
    if data is None:
        logger.debug("cache_miss", key=key)
        return None
    logger.debug("cache_hit", key=key)
    return json.loads(data)


async def set_cached_search(params_key: str, data: list) -> None:
    client = await get_redis()
    if not client:
        return

    key = SEARCH_KEY_PREFIX + params_key
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except redis.RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_search_cache() -> None:
    """Delete every cached search page (SCAN over the key prefix)."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=SEARCH_KEY_PREFIX + "*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except redis.RedisError as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Redis keyspace hit/miss figures for the health endpoint."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except redis.RedisError as e:
        return {"status": "error", "error": str(e)}
