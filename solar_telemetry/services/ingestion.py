"""
Ingestion service for solar car telemetry packets.

Validates the shape of an inbound packet (Pydantic models), normalizes
units, and appends one row to the telemetry table. The database assigns
``created_at``; there is no update or delete path for telemetry rows.

Producer contract: the four battery voltage fields ``sup_bat_v``,
``main_bat_v``, ``low_cell_v`` and ``high_cell_v`` arrive in millivolts
and are stored in volts. ``high_cell_t`` is stored as received.

CHANGELOG:
- 2025-02-26: Accept optional mitsuba.error_frame
- 2025-02-17: Wrap database failures in StorageError
- 2025-02-14: Initial creation

TODO:
- None
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated

from pydantic import AllowInfNan, BaseModel, ConfigDict, Strict
from sqlalchemy import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from solar_telemetry.db.models import TelemetryRecord
from solar_telemetry.errors import StorageError
from solar_telemetry.telemetry.snapshot import (
    BatteryData,
    GpsData,
    MitsubaData,
    MpptData,
    TelemetrySnapshot,
    to_row,
)

logger = logging.getLogger(__name__)

# Battery fields reported in millivolts by the producer.
MILLIVOLT_FIELDS: tuple[str, ...] = ("sup_bat_v", "main_bat_v", "low_cell_v", "high_cell_v")

# Numeric reading: ints and floats accepted, strings, bools, NaN and inf rejected.
Reading = Annotated[float, Strict(), AllowInfNan(False)]


# ---------------------------------------------------------------------------
# Pydantic payload schemas
# ---------------------------------------------------------------------------


class _Subsystem(BaseModel):
    model_config = ConfigDict(extra="ignore")


class GpsPayload(_Subsystem):
    rx_time: Reading
    longitude: Reading
    latitude: Reading
    speed: Reading
    num_sats: Reading


class BatteryPayload(_Subsystem):
    """Battery block; voltages in millivolts."""

    sup_bat_v: Reading
    main_bat_v: Reading
    main_bat_c: Reading
    low_cell_v: Reading
    high_cell_v: Reading
    high_cell_t: Reading
    cell_idx_low_v: Reading
    cell_idx_high_t: Reading


class MpptPayload(_Subsystem):
    input_v: Reading
    input_c: Reading
    output_v: Reading
    output_c: Reading


class MitsubaPayload(_Subsystem):
    voltage: Reading
    current: Reading
    error_frame: Reading | None = None


class TelemetryPayload(BaseModel):
    """Schema for one telemetry packet.

    Every subsystem is required and every field in it (except
    ``mitsuba.error_frame``) must be a number.
    """

    model_config = ConfigDict(extra="ignore")

    gps: GpsPayload
    battery: BatteryPayload
    mppt1: MpptPayload
    mppt2: MpptPayload
    mppt3: MpptPayload
    mitsuba: MitsubaPayload


@dataclass(frozen=True)
class StoredTelemetry:
    """A newly written telemetry row: identity plus the stored values."""

    id: int
    created_at: datetime
    snapshot: TelemetrySnapshot[float]


# ---------------------------------------------------------------------------
# Normalization and storage
# ---------------------------------------------------------------------------


def normalize_payload(payload: TelemetryPayload) -> TelemetrySnapshot[float]:
    """Convert a validated packet into a snapshot in storage units.

    Args:
        payload: Validated packet.

    Returns:
        TelemetrySnapshot: Snapshot with battery voltages in volts.
    """
    battery = payload.battery.model_dump()
    for field in MILLIVOLT_FIELDS:
        battery[field] = battery[field] / 1000

    return TelemetrySnapshot(
        gps=GpsData(**payload.gps.model_dump()),
        battery=BatteryData(**battery),
        mppt1=MpptData(**payload.mppt1.model_dump()),
        mppt2=MpptData(**payload.mppt2.model_dump()),
        mppt3=MpptData(**payload.mppt3.model_dump()),
        mitsuba=MitsubaData(**payload.mitsuba.model_dump()),
    )


async def store_snapshot(
    session: AsyncSession, snapshot: TelemetrySnapshot[float],
) -> StoredTelemetry:
    """Insert one telemetry row for *snapshot*.

    Args:
        session: Async SQLAlchemy session for database operations.
        snapshot: Snapshot already in storage units.

    Returns:
        StoredTelemetry: The new row's id, server-assigned timestamp and values.

    Raises:
        StorageError: If the insert or commit fails.
    """
    stmt = (
        insert(TelemetryRecord)
        .values(**to_row(snapshot))
        .returning(TelemetryRecord.id, TelemetryRecord.created_at)
    )
    try:
        result = await session.execute(stmt)
        row = result.one()
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Failed to store telemetry row", exc_info=True)
        raise StorageError("Failed to store telemetry data") from exc

    return StoredTelemetry(id=row.id, created_at=row.created_at, snapshot=snapshot)


async def ingest_packet(
    session: AsyncSession, payload: TelemetryPayload,
) -> StoredTelemetry:
    """Normalize and store one validated telemetry packet."""
    snapshot = normalize_payload(payload)
    stored = await store_snapshot(session, snapshot)
    logger.info(
        "Stored telemetry row %s",
        stored.id,
        extra={"row_id": stored.id, "main_bat_v": snapshot.battery.main_bat_v},
    )
    return stored
