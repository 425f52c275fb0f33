"""
Redis access for the latest-snapshot cache.

Every helper opens a short-lived client from ``REDIS_URL`` and closes it
when done. The cache is an optimization only: ``cache_get`` and
``cache_set`` log Redis failures and carry on, so a Redis outage never
fails an ingest or a dashboard read.

CHANGELOG:
- 2025-03-04: cache_set only_if_absent (SET NX); drop delete helpers
- 2025-02-22: Shared connection context manager, generic get/set/delete
- 2025-02-16: Initial creation

TODO:
- None
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import redis.asyncio as redis

from solar_telemetry.config import get_settings

logger = logging.getLogger(__name__)

LATEST_CACHE_KEY = "telemetry:latest"


def create_client() -> redis.Redis:
    """Build an async client for the configured ``REDIS_URL``."""
    return redis.from_url(get_settings().REDIS_URL)


@asynccontextmanager
async def redis_connection() -> AsyncIterator[redis.Redis]:
    """Yield a client and close it on exit. Errors propagate."""
    client = create_client()
    try:
        yield client
    finally:
        await client.aclose()


async def cache_get(key: str) -> bytes | None:
    """Return the cached value, or None on a miss or any Redis failure."""
    try:
        async with redis_connection() as client:
            return await client.get(key)
    except Exception:
        logger.warning("Cache read failed for %s", key, exc_info=True)
        return None


async def cache_set(key: str, value: str, ttl_s: int, only_if_absent: bool = False) -> None:
    """Store *value* under *key* for *ttl_s* seconds (best-effort).

    With *only_if_absent* an existing entry is left in place (``SET NX``).
    """
    try:
        async with redis_connection() as client:
            await client.set(key, value, ex=ttl_s, nx=only_if_absent)
    except Exception:
        logger.warning("Cache write failed for %s", key, exc_info=True)

