"""
Telemetry snapshot model and the flat-row <-> snapshot mapper.

A snapshot is one structured reading of the car, grouped by subsystem
(gps, battery, mppt1-3, mitsuba). It is generic over the leaf value type:
``TelemetrySnapshot[float]`` holds readings, ``TelemetrySnapshot[datetime]``
holds the time each field was last updated.

Storage rows are flat: one column per leaf named ``{subsystem}_{field}``.
``to_snapshot`` and ``to_row`` convert between the two shapes without
inventing values: a missing column becomes ``None`` and a ``None`` leaf is
omitted from the row.

CHANGELOG:
- 2025-02-26: Add optional mitsuba.error_frame
- 2025-02-12: Initial creation

TODO:
- None
"""

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class GpsData(Generic[T]):
    """GPS fix. ``speed`` is in mph."""

    rx_time: T | None = None
    longitude: T | None = None
    latitude: T | None = None
    speed: T | None = None
    num_sats: T | None = None


@dataclass(frozen=True)
class BatteryData(Generic[T]):
    """Battery management readings.

    ``main_bat_v`` is the 13-cell-equivalent pack reading, not the true
    pack voltage (see ``calculations.battery_energy_ah``).
    """

    sup_bat_v: T | None = None
    main_bat_v: T | None = None
    main_bat_c: T | None = None
    low_cell_v: T | None = None
    high_cell_v: T | None = None
    high_cell_t: T | None = None
    cell_idx_low_v: T | None = None
    cell_idx_high_t: T | None = None


@dataclass(frozen=True)
class MpptData(Generic[T]):
    """One solar charge-controller channel (panel side in, battery side out)."""

    input_v: T | None = None
    input_c: T | None = None
    output_v: T | None = None
    output_c: T | None = None


@dataclass(frozen=True)
class MitsubaData(Generic[T]):
    """Motor controller readings."""

    voltage: T | None = None
    current: T | None = None
    error_frame: T | None = None


@dataclass(frozen=True)
class TelemetrySnapshot(Generic[T]):
    """One structured telemetry reading; absent subsystems are ``None``."""

    gps: GpsData[T] | None = None
    battery: BatteryData[T] | None = None
    mppt1: MpptData[T] | None = None
    mppt2: MpptData[T] | None = None
    mppt3: MpptData[T] | None = None
    mitsuba: MitsubaData[T] | None = None


# Subsystem name -> leaf model, in storage/display order.
SUBSYSTEMS: dict[str, type] = {
    "gps": GpsData,
    "battery": BatteryData,
    "mppt1": MpptData,
    "mppt2": MpptData,
    "mppt3": MpptData,
    "mitsuba": MitsubaData,
}

MPPT_CHANNELS: tuple[str, ...] = ("mppt1", "mppt2", "mppt3")


def subsystem_fields(subsystem: str) -> tuple[str, ...]:
    """Return the leaf field names of *subsystem* in declaration order.

    Raises:
        KeyError: If *subsystem* is not a known subsystem name.
    """
    return tuple(f.name for f in fields(SUBSYSTEMS[subsystem]))


def column_name(subsystem: str, field: str) -> str:
    """Return the storage column holding ``subsystem.field``."""
    return f"{subsystem}_{field}"


STORAGE_COLUMNS: tuple[str, ...] = tuple(
    column_name(subsystem, field)
    for subsystem in SUBSYSTEMS
    for field in subsystem_fields(subsystem)
)


def to_snapshot(row: Mapping[str, T]) -> TelemetrySnapshot[T]:
    """Reshape a flat storage row into a nested snapshot.

    A subsystem is ``None`` when none of its columns carries a value;
    otherwise every missing or NULL column maps to a ``None`` leaf, never
    to zero. Columns that are not storage columns (``id``, ``created_at``)
    are ignored.

    Args:
        row: Mapping of column name to value, e.g. a SQLAlchemy RowMapping.

    Returns:
        TelemetrySnapshot: The structured snapshot.
    """
    parts = {}
    for subsystem, model in SUBSYSTEMS.items():
        values = {
            field: row.get(column_name(subsystem, field))
            for field in subsystem_fields(subsystem)
        }
        if any(value is not None for value in values.values()):
            parts[subsystem] = model(**values)
    return TelemetrySnapshot(**parts)


def to_row(snapshot: TelemetrySnapshot[T]) -> dict[str, T]:
    """Flatten a snapshot into ``{column: value}`` for storage.

    ``None`` leaves and absent subsystems are omitted so the database
    default (NULL) applies.
    """
    row: dict[str, T] = {}
    for subsystem in SUBSYSTEMS:
        part = getattr(snapshot, subsystem)
        if part is None:
            continue
        for field in subsystem_fields(subsystem):
            value = getattr(part, field)
            if value is not None:
                row[column_name(subsystem, field)] = value
    return row


def get_value(snapshot: TelemetrySnapshot[T], subsystem: str, field: str) -> T | None:
    """Return ``snapshot.subsystem.field`` or ``None`` when either is absent."""
    part = getattr(snapshot, subsystem, None)
    if part is None:
        return None
    return getattr(part, field, None)
