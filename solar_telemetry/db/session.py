"""
Async engine and request-scoped sessions for PostgreSQL (asyncpg).

The engine is created on first use from ``DATABASE_URL`` and shared by the
whole process. ``init_db()`` runs at startup and creates the telemetry and
users tables when they are missing; ``dispose_engine()`` runs at shutdown.

CHANGELOG:
- 2025-02-22: Collapse engine/session singletons behind get_engine()
- 2025-02-21: Add init_db() table creation at startup
- 2025-02-12: Initial creation

TODO:
- None
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from solar_telemetry.config import get_settings
from solar_telemetry.db.models import Base

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Return the process-wide engine, creating it on first call."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is None:
        _engine = create_async_engine(get_settings().DATABASE_URL, pool_pre_ping=True)
        _session_factory = async_sessionmaker(_engine, expire_on_commit=False)
    return _engine


async def init_db() -> None:
    """Create missing tables. Existing tables are left untouched."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close pooled connections; the next get_engine() starts afresh."""
    global _engine, _session_factory  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, closed afterwards.

    Yields:
        AsyncSession: An async SQLAlchemy session.
    """
    get_engine()
    assert _session_factory is not None
    async with _session_factory() as session:
        yield session
