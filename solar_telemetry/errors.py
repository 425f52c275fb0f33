"""
Error taxonomy for the telemetry core and services.

Services raise these; the API layer maps them to HTTP status codes
(ValidationError -> 400, NotFoundError -> 404, StorageError -> 503).
Authentication failures never reach the services: they are rejected in
the FastAPI dependency layer.

CHANGELOG:
- 2025-02-14: Initial creation

TODO:
- None
"""

from collections.abc import Iterable


class TelemetryError(Exception):
    """Base class for all telemetry service errors."""


class ValidationError(TelemetryError):
    """Request input is malformed; raised before any storage access."""


class UnknownFieldError(ValidationError):
    """One or more field identifiers are neither catalog fields nor derived.

    Attributes:
        identifiers: The rejected identifiers, in request order.
    """

    def __init__(self, identifiers: Iterable[str]) -> None:
        self.identifiers = list(identifiers)
        super().__init__(
            f"Unknown field identifier(s): {', '.join(self.identifiers)}"
        )


class NotFoundError(TelemetryError):
    """The requested record does not exist (no telemetry yet, unknown user)."""


class StorageError(TelemetryError):
    """A storage round-trip failed. Safe to retry; details are only logged."""
