"""Storage-facing telemetry services."""
