"""
User and verification management.

Plain CRUD over the ``users`` table used by the admin page: list users,
edit name/email/verification, toggle verification, delete.

CHANGELOG:
- 2025-02-21: Initial creation

TODO:
- None
"""

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from solar_telemetry.db.models import User
from solar_telemetry.errors import NotFoundError, StorageError

logger = logging.getLogger(__name__)


async def list_users(session: AsyncSession) -> list[User]:
    """Return all users, newest id first."""
    try:
        result = await session.execute(select(User).order_by(User.id.desc()))
        return list(result.scalars().all())
    except SQLAlchemyError as exc:
        logger.error("Failed to list users", exc_info=True)
        raise StorageError("Failed to fetch users") from exc


async def _update(session: AsyncSession, user_id: int, values: dict) -> User:
    stmt = update(User).where(User.id == user_id).values(**values).returning(User)
    try:
        result = await session.execute(stmt)
        user = result.scalar_one_or_none()
        if user is None:
            await session.rollback()
            raise NotFoundError(f"User {user_id} not found")
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Failed to update user %s", user_id, exc_info=True)
        raise StorageError("Failed to update user") from exc
    logger.info("Updated user %s: %s", user_id, sorted(values))
    return user


async def update_user(
    session: AsyncSession,
    user_id: int,
    name: str | None,
    email: str,
    is_verified: bool,
) -> User:
    """Replace a user's name, email and verification flag.

    Raises:
        NotFoundError: If no user has this id.
        StorageError: If the update fails (e.g. duplicate email).
    """
    return await _update(
        session, user_id, {"name": name, "email": email, "is_verified": is_verified},
    )


async def set_verification(session: AsyncSession, user_id: int, is_verified: bool) -> User:
    """Set only the verification flag of a user.

    Raises:
        NotFoundError: If no user has this id.
    """
    return await _update(session, user_id, {"is_verified": is_verified})


async def delete_user(session: AsyncSession, user_id: int) -> None:
    """Delete a user.

    Raises:
        NotFoundError: If no user has this id.
    """
    stmt = delete(User).where(User.id == user_id).returning(User.id)
    try:
        result = await session.execute(stmt)
        deleted = result.scalar_one_or_none()
        if deleted is None:
            await session.rollback()
            raise NotFoundError(f"User {user_id} not found")
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Failed to delete user %s", user_id, exc_info=True)
        raise StorageError("Failed to delete user") from exc
    logger.info("Deleted user %s", user_id)
