"""
Readiness check for the telemetry API.

Checks that PostgreSQL answers a trivial query and that Redis answers PING.
Redis only backs the live-snapshot cache, so a Redis outage degrades the
service without making ingest or charting impossible; the check still
reports it so the orchestrator can surface it.

CHANGELOG:
- 2025-02-22: Report per-component latency and the API version
- 2025-02-16: Initial creation

TODO:
- None
"""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from solar_telemetry import __version__
from solar_telemetry.cache.redis_client import redis_connection
from solar_telemetry.db.session import get_async_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_db() -> str:
    """Run ``SELECT 1`` on a fresh session; "ok" or "error"."""
    try:
        async for session in get_async_session():
            await session.execute(text("SELECT 1"))
    except Exception:
        logger.warning("Database check failed", exc_info=True)
        return "error"
    return "ok"


async def _check_redis() -> str:
    """PING the cache; "ok" or "error"."""
    try:
        async with redis_connection() as client:
            await client.ping()
    except Exception:
        logger.warning("Redis check failed", exc_info=True)
        return "error"
    return "ok"


async def _timed(check: Callable[[], Awaitable[str]]) -> tuple[str, float]:
    started = time.perf_counter()
    outcome = await check()
    return outcome, round((time.perf_counter() - started) * 1000, 1)


@router.get("/health")
async def health_check() -> JSONResponse:
    """Check storage and cache.

    Returns:
        JSONResponse: ``status``, ``version``, one status string per component
            and ``latency_ms`` per component. HTTP 200 when every component is
            ok, HTTP 503 otherwise.
    """
    components: dict[str, str] = {}
    latency: dict[str, float] = {}
    for name, check in (("db", _check_db), ("redis", _check_redis)):
        components[name], latency[name] = await _timed(check)

    healthy = all(outcome == "ok" for outcome in components.values())
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "ok" if healthy else "degraded",
            "version": __version__,
            **components,
            "latency_ms": latency,
        },
    )
