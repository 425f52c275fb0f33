"""
Series API endpoints for the statistics charts.

Provides GET /v1/series for merged time series of any mix of raw fields and
derived metrics over an inclusive date range, GET /v1/series/export for the
same data as CSV, and GET /v1/fields for the selectable field catalog.

CHANGELOG:
- 2025-02-25: Add CSV export endpoint
- 2025-02-24: Add min/max value bounds
- 2025-02-15: Initial creation

TODO:
- None
"""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from solar_telemetry.api.deps import DbSession
from solar_telemetry.services.export import render_delimited
from solar_telemetry.services.series import SeriesPoint, fetch_series
from solar_telemetry.telemetry.catalog import catalog

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["series"])

FieldsParam = Annotated[list[str], Query(description="Field identifiers, repeatable")]
MinParam = Annotated[float | None, Query(alias="min", description="Lower value bound")]
MaxParam = Annotated[float | None, Query(alias="max", description="Upper value bound")]


class SeriesResponse(BaseModel):
    """Schema for the series response.

    Attributes:
        start: Window start (inclusive).
        end: Window end (inclusive).
        fields: Requested identifiers in request order.
        series: Merged records in ascending timestamp order.
    """

    start: datetime
    end: datetime
    fields: list[str]
    series: list[SeriesPoint]


@router.get("/fields")
async def get_fields() -> dict:
    """List selectable fields grouped by subsystem, derived metrics last.

    Returns:
        dict: JSON with a ``groups`` array of ``{label, options}``.
    """
    return {"groups": catalog.list_groups()}


@router.get("/series", response_model=SeriesResponse)
async def get_series(
    db: DbSession,
    start: datetime,
    end: datetime,
    fields: FieldsParam,
    minimum: MinParam = None,
    maximum: MaxParam = None,
) -> SeriesResponse:
    """Get the merged time series for the selected fields.

    Args:
        db: Async database session.
        start: Window start, inclusive.
        end: Window end, inclusive.
        fields: Raw field and/or derived metric identifiers.
        minimum: Drop records with any value below this.
        maximum: Drop records with any value above this.

    Returns:
        SeriesResponse: The merged series.

    Raises:
        ValidationError: Unknown identifier or inverted bounds (mapped to 400).
        StorageError: If a query fails (mapped to 503).
    """
    series = await fetch_series(db, start, end, fields, minimum, maximum)
    return SeriesResponse(start=start, end=end, fields=fields, series=series)


@router.get("/series/export", response_class=PlainTextResponse)
async def export_series(
    db: DbSession,
    start: datetime,
    end: datetime,
    fields: FieldsParam,
    minimum: MinParam = None,
    maximum: MaxParam = None,
) -> PlainTextResponse:
    """Download the merged series as CSV.

    Same parameters and errors as GET /v1/series.

    Returns:
        PlainTextResponse: ``text/csv`` attachment.
    """
    series = await fetch_series(db, start, end, fields, minimum, maximum)
    body = render_delimited(series, fields)
    logger.info("Exported %d series records for %s", len(series), fields)
    return PlainTextResponse(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="telemetry.csv"'},
    )
