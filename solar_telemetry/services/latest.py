"""
Latest-snapshot queries for the live dashboard.

Two variants:

- ``fetch_latest_snapshot``: the most recent telemetry row as a snapshot.
- ``fetch_latest_nonzero``: for every catalog field independently, the
  most recent stored value that is not a sentinel zero (or NULL), plus a
  ``TelemetrySnapshot[datetime]`` telling when each value was recorded.
  Used when packets arrive with channels that were not sampled yet.

Both raise NotFoundError when the table is empty so callers can show a
placeholder instead of retrying.

CHANGELOG:
- 2025-02-27: Per-field latest non-sentinel variant
- 2025-02-16: Initial creation

TODO:
- None
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from solar_telemetry.errors import NotFoundError, StorageError
from solar_telemetry.telemetry.catalog import FieldCatalog, FieldSpec, catalog
from solar_telemetry.telemetry.snapshot import TelemetrySnapshot, to_snapshot

logger = logging.getLogger(__name__)

UPDATED_AT_SUFFIX = "__updated_at"


@dataclass(frozen=True)
class LatestTelemetry:
    """A latest-snapshot read.

    Attributes:
        created_at: Timestamp of the newest contributing row.
        snapshot: The readings.
        updated_at: Per-field recording time (non-zero variant only).
    """

    created_at: datetime
    snapshot: TelemetrySnapshot[float]
    updated_at: TelemetrySnapshot[datetime] | None = None


async def fetch_latest_snapshot(session: AsyncSession) -> LatestTelemetry:
    """Return the most recent telemetry row reshaped into a snapshot.

    Raises:
        NotFoundError: If no telemetry has been stored yet.
        StorageError: If the query fails.
    """
    try:
        result = await session.execute(
            text("SELECT * FROM telemetry ORDER BY created_at DESC LIMIT 1")
        )
        row = result.fetchone()
    except SQLAlchemyError as exc:
        logger.error("Latest telemetry query failed", exc_info=True)
        raise StorageError("Failed to fetch latest telemetry") from exc

    if row is None:
        raise NotFoundError("No telemetry data found")

    mapping = row._mapping
    return LatestTelemetry(created_at=mapping["created_at"], snapshot=to_snapshot(mapping))


def _latest_value_columns(field_spec: FieldSpec) -> str:
    column = field_spec.storage_column
    presence = f"{column} <> 0" if field_spec.zero_is_sentinel else f"{column} IS NOT NULL"
    latest = f"FROM telemetry WHERE {presence} ORDER BY created_at DESC LIMIT 1"
    return (
        f"(SELECT {column} {latest}) AS {column}, "
        f"(SELECT created_at {latest}) AS {column}{UPDATED_AT_SUFFIX}"
    )


async def fetch_latest_nonzero(
    session: AsyncSession, field_catalog: FieldCatalog = catalog,
) -> LatestTelemetry:
    """Return the newest usable value of every field, each with its own time.

    Issued as a single statement of per-column scalar subqueries.

    Raises:
        NotFoundError: If no field has ever been recorded.
        StorageError: If the query fails.
    """
    specs = field_catalog.direct_fields
    sql = "SELECT " + ", ".join(_latest_value_columns(field_spec) for field_spec in specs)
    try:
        result = await session.execute(text(sql))
        row = result.fetchone()
    except SQLAlchemyError as exc:
        logger.error("Latest non-zero telemetry query failed", exc_info=True)
        raise StorageError("Failed to fetch latest telemetry") from exc

    mapping = row._mapping if row is not None else {}
    values = {field_spec.storage_column: mapping.get(field_spec.storage_column) for field_spec in specs}
    times = {
        field_spec.storage_column: mapping.get(field_spec.storage_column + UPDATED_AT_SUFFIX)
        for field_spec in specs
    }
    recorded = [ts for ts in times.values() if ts is not None]
    if not recorded:
        raise NotFoundError("No telemetry data found")

    return LatestTelemetry(
        created_at=max(recorded),
        snapshot=to_snapshot(values),
        updated_at=to_snapshot(times),
    )
