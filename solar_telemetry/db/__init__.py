"""
Database package: ORM models and async session management.

CHANGELOG:
- 2025-02-22: Export get_engine instead of the raw singletons
- 2025-02-21: Export User and init_db
- 2025-02-12: Initial creation

TODO:
- None
"""

from solar_telemetry.db.models import Base, TelemetryRecord, User
from solar_telemetry.db.session import dispose_engine, get_async_session, get_engine, init_db

__all__ = [
    "Base",
    "TelemetryRecord",
    "User",
    "dispose_engine",
    "get_async_session",
    "get_engine",
    "init_db",
]
