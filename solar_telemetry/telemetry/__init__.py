"""
Pure telemetry core: snapshot model, field catalog, discharge curve and
derived-value calculations. Nothing in this package performs I/O beyond
loading the packaged calibration table at import.

CHANGELOG:
- 2025-02-13: Initial creation

TODO:
- None
"""

from solar_telemetry.telemetry.catalog import DerivedField, FieldCatalog, FieldSpec, catalog
from solar_telemetry.telemetry.snapshot import TelemetrySnapshot, to_row, to_snapshot

__all__ = [
    "DerivedField",
    "FieldCatalog",
    "FieldSpec",
    "TelemetrySnapshot",
    "catalog",
    "to_row",
    "to_snapshot",
]
