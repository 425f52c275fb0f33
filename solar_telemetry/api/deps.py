"""
Request dependencies shared by the routers.

``DbSession`` injects a request-scoped session. ``require_ingest_key`` and
``require_admin_key`` guard routes with the ``auth-key`` shared secret.

CHANGELOG:
- 2025-02-21: Add require_admin_key for user management
- 2025-02-14: Add require_ingest_key (auth-key header)
- 2025-02-12: Initial creation

TODO:
- None
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Security
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from solar_telemetry.auth.api_key import AUTH_HEADER, verify_auth_key
from solar_telemetry.config import get_settings
from solar_telemetry.db.session import get_async_session

logger = logging.getLogger(__name__)

# Route parameter annotation, e.g. ``async def route(db: DbSession)``.
DbSession = Annotated[AsyncSession, Depends(get_async_session)]


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

# auto_error=False: a missing header is a 401 from _reject, not a 403.
_auth_key_scheme = APIKeyHeader(name=AUTH_HEADER, auto_error=False)


def _reject(realm: str) -> HTTPException:
    logger.warning("Rejected %s request: missing or invalid %s header", realm, AUTH_HEADER)
    return HTTPException(status_code=401, detail="Unauthorized - Invalid auth key")


async def require_ingest_key(
    auth_key: str | None = Security(_auth_key_scheme),
) -> None:
    """FastAPI dependency: the ``auth-key`` header must equal INGEST_AUTH_KEY.

    Raises:
        HTTPException: 401 if the header is missing or does not match.
    """
    if not verify_auth_key(auth_key, get_settings().INGEST_AUTH_KEY):
        raise _reject("ingest")


async def require_admin_key(
    auth_key: str | None = Security(_auth_key_scheme),
) -> None:
    """FastAPI dependency: the ``auth-key`` header must equal ADMIN_AUTH_KEY.

    Raises:
        HTTPException: 401 if the header is missing or does not match.
    """
    if not verify_auth_key(auth_key, get_settings().ADMIN_AUTH_KEY):
        raise _reject("admin")
