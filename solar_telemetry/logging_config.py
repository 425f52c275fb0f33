"""
JSON-lines logging for the telemetry service.

``setup_logging()`` points the root logger at stderr through
:class:`JSONFormatter`. Each line is one object with ``timestamp`` (UTC,
millisecond precision), ``level``, ``logger`` and ``message``, followed by
any ``extra={...}`` fields passed at the call site and, when present, the
formatted ``exc_info`` / ``stack_info``.

Example::

    logger.info("Stored telemetry row", extra={"row_id": 7})
    {"timestamp": "...", "level": "INFO", ..., "row_id": 7}

CHANGELOG:
- 2025-02-22: Emit call-site extra fields; use basicConfig(force=True)
- 2025-02-20: Include formatted traceback for records logged with exc_info
- 2025-02-11: Initial creation

TODO:
- None
"""

import json
import logging
from datetime import UTC, datetime

# Attributes every LogRecord carries; anything else came in through extra=.
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """Render each record as a single-line JSON object."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        return datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec="milliseconds")

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)
        return json.dumps(entry, default=str)


def setup_logging(level: int | str = logging.INFO) -> None:
    """Replace the root handlers with one JSON stream handler.

    Args:
        level: Level number or name (``"DEBUG"``, ``"INFO"``, ...).
    """
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    logging.basicConfig(level=level, handlers=[handler], force=True)
