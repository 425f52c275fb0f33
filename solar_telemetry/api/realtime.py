"""
Latest telemetry endpoint for the live dashboard.

Serves GET /v1/telemetry/latest: the newest snapshot together with the
summary metrics and status classifications shown on the dashboard cards.
``mode=latest`` (default) reads the newest row and uses Redis as a
read-through cache with TTL-based expiry; ``mode=nonzero`` assembles the
newest usable value per field and is not cached. Cache operations are
best-effort: Redis failures fall through to the database.

Ingest overwrites the cache entry with the row it just stored
(``publish_latest``), while reads only fill an empty entry. A read that
fetched the previous row before an insert therefore cannot replace the
newer entry once ingest has written it.

CHANGELOG:
- 2025-03-04: Ingest writes through; read fills use SET NX
- 2025-02-27: Add mode=nonzero with per-field update times
- 2025-02-22: Use shared cache helpers; ignore unreadable cache entries
- 2025-02-16: Initial creation

TODO:
- None
"""

import logging
from dataclasses import asdict
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Query
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from solar_telemetry.api.deps import DbSession
from solar_telemetry.cache.redis_client import LATEST_CACHE_KEY, cache_get, cache_set
from solar_telemetry.config import get_settings
from solar_telemetry.services.latest import (
    LatestTelemetry,
    fetch_latest_nonzero,
    fetch_latest_snapshot,
)
from solar_telemetry.telemetry.calculations import snapshot_metrics, snapshot_statuses

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["realtime"])


# ---------------------------------------------------------------------------
# Pydantic response schema
# ---------------------------------------------------------------------------


class LatestResponse(BaseModel):
    """Schema for the latest telemetry response.

    Attributes:
        mode: Which latest variant produced the snapshot.
        created_at: Timestamp of the newest contributing row.
        snapshot: Nested readings by subsystem; absent values are null.
        updated_at: Per-field recording times (``nonzero`` mode only).
        metrics: Derived power/energy scalars; null when unavailable.
        status: good/warning/critical classifications; null when unavailable.
    """

    mode: Literal["latest", "nonzero"]
    created_at: datetime
    snapshot: dict
    updated_at: dict | None = None
    metrics: dict[str, float | None]
    status: dict[str, str | None]


def build_latest_response(
    latest: LatestTelemetry, mode: Literal["latest", "nonzero"],
) -> LatestResponse:
    """Assemble the response body from a latest-snapshot read."""
    return LatestResponse(
        mode=mode,
        created_at=latest.created_at,
        snapshot=asdict(latest.snapshot),
        updated_at=None if latest.updated_at is None else asdict(latest.updated_at),
        metrics=snapshot_metrics(latest.snapshot),
        status=snapshot_statuses(latest.snapshot),
    )


# ---------------------------------------------------------------------------
# Cache helpers
# ---------------------------------------------------------------------------


async def _cached_response() -> LatestResponse | None:
    """Return the cached response, or None on a miss or unreadable entry."""
    raw = await cache_get(LATEST_CACHE_KEY)
    if raw is None:
        return None
    try:
        return LatestResponse.model_validate_json(raw)
    except PydanticValidationError:
        # Entry written by an older response schema; refetch.
        logger.warning("Discarding unreadable cached latest telemetry")
        return None


async def publish_latest(latest: LatestTelemetry) -> None:
    """Overwrite the cached latest response with a freshly stored row."""
    response = build_latest_response(latest, "latest")
    await cache_set(LATEST_CACHE_KEY, response.model_dump_json(), get_settings().CACHE_TTL_S)


# ---------------------------------------------------------------------------
# Route
# ---------------------------------------------------------------------------


@router.get("/telemetry/latest", response_model=LatestResponse)
async def get_latest(
    db: DbSession,
    mode: Literal["latest", "nonzero"] = Query("latest", description="Latest variant"),
) -> LatestResponse:
    """Return the latest telemetry snapshot with metrics and statuses.

    Args:
        db: Async database session (injected).
        mode: ``latest`` for the newest row, ``nonzero`` for the newest
            usable value per field.

    Returns:
        LatestResponse: Snapshot, metrics and statuses.

    Raises:
        NotFoundError: If no telemetry exists yet (mapped to 404).
        StorageError: If the query fails (mapped to 503).
    """
    if mode == "nonzero":
        return build_latest_response(await fetch_latest_nonzero(db), mode)

    cached = await _cached_response()
    if cached is not None:
        return cached

    response = build_latest_response(await fetch_latest_snapshot(db), mode)
    await cache_set(
        LATEST_CACHE_KEY,
        response.model_dump_json(),
        get_settings().CACHE_TTL_S,
        only_if_absent=True,
    )
    return response
