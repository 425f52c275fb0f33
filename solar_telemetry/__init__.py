"""Solar car telemetry API: ingest, live snapshot, chart series."""

__version__ = "0.1.0"
