"""
Range query and series merging for the statistics charts.

``fetch_series`` returns one merged, time-ordered record per timestamp for
any mix of raw catalog fields and derived metrics:

- With at least one derived metric, every column of every row in the window
  is fetched once; each row yields one record holding all requested values.
- With raw fields only, each field is queried separately (narrow column
  scan) and the per-field series are merged on exact ``created_at``
  equality.

Sentinel zeros are excluded per field on both paths, so a field's values
do not depend on whether a derived metric was requested alongside it.
Naive window ends are taken as UTC.

Both paths include both window ends and may finally drop records whose
values fall outside the caller's ``[minimum, maximum]`` bounds.

CHANGELOG:
- 2025-03-04: Read naive window ends as UTC; drop sentinel zeros on the
  derived path too
- 2025-02-27: Apply the zero filter only to sentinel fields
- 2025-02-24: Value-bound trimming
- 2025-02-17: Wrap database failures in StorageError
- 2025-02-15: Initial creation

TODO:
- None
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime

from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from solar_telemetry.errors import StorageError, ValidationError
from solar_telemetry.telemetry.calculations import compute_derived
from solar_telemetry.telemetry.catalog import DerivedField, FieldCatalog, FieldSpec, catalog
from solar_telemetry.telemetry.snapshot import to_snapshot

logger = logging.getLogger(__name__)


class SeriesPoint(BaseModel):
    """One merged record: every requested value observed at ``timestamp``.

    Attributes:
        timestamp: Row creation time.
        values: Field identifier -> value. Fields with no value at this
            timestamp are absent, never zero-filled.
    """

    timestamp: datetime
    values: dict[str, float]


def merge_series(
    series: Mapping[str, Iterable[tuple[datetime, float]]],
) -> list[SeriesPoint]:
    """Merge per-field ``(timestamp, value)`` series into aligned records.

    Records are keyed by exact timestamp equality and returned in ascending
    timestamp order.

    Args:
        series: Field identifier -> iterable of (timestamp, value) pairs.

    Returns:
        list: Merged records sorted by timestamp.
    """
    merged: dict[datetime, dict[str, float]] = {}
    for identifier, points in series.items():
        for timestamp, value in points:
            merged.setdefault(timestamp, {})[identifier] = value
    return [
        SeriesPoint(timestamp=timestamp, values=values)
        for timestamp, values in sorted(merged.items(), key=lambda item: item[0])
    ]


def apply_bounds(
    points: Sequence[SeriesPoint],
    minimum: float | None = None,
    maximum: float | None = None,
) -> list[SeriesPoint]:
    """Drop records where any value lies outside ``[minimum, maximum]``.

    A bound of ``None`` is open on that side.
    """
    if minimum is None and maximum is None:
        return list(points)
    kept = []
    for point in points:
        values = point.values.values()
        if minimum is not None and any(value < minimum for value in values):
            continue
        if maximum is not None and any(value > maximum for value in values):
            continue
        kept.append(point)
    return kept


def _as_utc(moment: datetime) -> datetime:
    # Naive window ends are read as UTC so they compare with aware ones.
    return moment.replace(tzinfo=UTC) if moment.tzinfo is None else moment


async def _fetch_rows_with_derived(
    session: AsyncSession,
    start: datetime,
    end: datetime,
    direct: list[FieldSpec],
    derived: list[DerivedField],
) -> list[SeriesPoint]:
    result = await session.execute(
        text(
            "SELECT * FROM telemetry"
            " WHERE created_at BETWEEN :start AND :end"
            " ORDER BY created_at ASC"
        ),
        {"start": start, "end": end},
    )
    points = []
    for row in result.fetchall():
        mapping = row._mapping
        snapshot = to_snapshot(mapping)
        values: dict[str, float] = {}
        for field_spec in direct:
            value = mapping.get(field_spec.storage_column)
            if value is None or (value == 0 and field_spec.zero_is_sentinel):
                continue
            values[field_spec.identifier] = value
        for field in derived:
            value = compute_derived(field, snapshot)
            if value is not None:
                values[field.value] = value
        points.append(SeriesPoint(timestamp=mapping["created_at"], values=values))
    points.sort(key=lambda point: point.timestamp)
    return points


async def _fetch_direct_series(
    session: AsyncSession,
    start: datetime,
    end: datetime,
    direct: list[FieldSpec],
) -> list[SeriesPoint]:
    series: dict[str, list[tuple[datetime, float]]] = {}
    for field_spec in direct:
        column = field_spec.storage_column
        # Column names come from the catalog, never from the request.
        presence = f"{column} <> 0" if field_spec.zero_is_sentinel else f"{column} IS NOT NULL"
        result = await session.execute(
            text(
                f"SELECT created_at, {column} AS value FROM telemetry"
                " WHERE created_at BETWEEN :start AND :end"
                f" AND {presence}"
                " ORDER BY created_at ASC"
            ),
            {"start": start, "end": end},
        )
        series[field_spec.identifier] = [
            (row._mapping["created_at"], row._mapping["value"])
            for row in result.fetchall()
        ]
    return merge_series(series)


async def fetch_series(
    session: AsyncSession,
    start: datetime,
    end: datetime,
    identifiers: Sequence[str],
    minimum: float | None = None,
    maximum: float | None = None,
    field_catalog: FieldCatalog = catalog,
) -> list[SeriesPoint]:
    """Fetch and merge the requested fields over ``[start, end]``.

    Identifiers are validated before any query runs. A window with no rows
    (including ``start > end``) yields an empty list.

    Args:
        session: Async SQLAlchemy session.
        start: Window start, inclusive.
        end: Window end, inclusive.
        identifiers: Raw field identifiers and/or derived metric identifiers.
        minimum: Optional lower bound applied to every value of a record.
        maximum: Optional upper bound applied to every value of a record.
        field_catalog: Catalog used to resolve identifiers.

    Returns:
        list: Merged records in ascending timestamp order.

    Raises:
        UnknownFieldError: If any identifier is not in the catalog.
        ValidationError: If no identifiers are given or the bounds are inverted.
        StorageError: If any query fails; no partial result is returned.
    """
    direct, derived = field_catalog.partition(identifiers)
    if not direct and not derived:
        raise ValidationError("At least one field identifier is required")
    if minimum is not None and maximum is not None and minimum > maximum:
        raise ValidationError(f"Invalid bounds: min {minimum} > max {maximum}")
    start, end = _as_utc(start), _as_utc(end)
    if start > end:
        return []

    try:
        if derived:
            points = await _fetch_rows_with_derived(session, start, end, direct, derived)
        else:
            points = await _fetch_direct_series(session, start, end, direct)
    except SQLAlchemyError as exc:
        logger.error(
            "Series query failed for fields %s", list(identifiers), exc_info=True,
        )
        raise StorageError("Failed to fetch telemetry series") from exc

    return apply_bounds(points, minimum, maximum)
