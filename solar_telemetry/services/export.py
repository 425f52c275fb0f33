"""
Delimited-text export of a merged telemetry series.

One header row of human labels (``Timestamp`` first, then each field in
request order) and one line per record. Timestamps are rendered in the
locale's date-time format; values are written as-is and a field with no
value at a timestamp leaves its cell empty. The output is a view for
spreadsheets, not a re-importable format.

CHANGELOG:
- 2025-02-25: Initial creation

TODO:
- None
"""

import csv
import io
from collections.abc import Sequence
from datetime import datetime

from solar_telemetry.services.series import SeriesPoint
from solar_telemetry.telemetry.catalog import FieldCatalog, catalog

TIMESTAMP_HEADER = "Timestamp"


def format_timestamp(timestamp: datetime) -> str:
    return timestamp.strftime("%c")


def render_delimited(
    points: Sequence[SeriesPoint],
    identifiers: Sequence[str],
    delimiter: str = ",",
    field_catalog: FieldCatalog = catalog,
) -> str:
    """Render *points* as delimited text.

    Args:
        points: Merged series records.
        identifiers: Field order for the columns after the timestamp.
            Duplicates are written once.
        delimiter: Single-character field separator.
        field_catalog: Catalog supplying the column labels.

    Returns:
        str: The full document, header included.

    Raises:
        UnknownFieldError: If an identifier has no catalog label.
    """
    columns = list(dict.fromkeys(identifiers))
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter, lineterminator="\n")
    writer.writerow([TIMESTAMP_HEADER, *(field_catalog.label(i) for i in columns)])
    for point in points:
        writer.writerow(
            [format_timestamp(point.timestamp), *(point.values.get(i, "") for i in columns)]
        )
    return buffer.getvalue()
