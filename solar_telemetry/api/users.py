"""
User verification API for the admin page.

GET/PUT/PATCH/DELETE under /v1/users, all guarded by the admin
``auth-key``. Unknown user ids map to 404.

CHANGELOG:
- 2025-02-21: Initial creation

TODO:
- None
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from solar_telemetry.api.deps import DbSession, require_admin_key
from solar_telemetry.services.users import (
    delete_user,
    list_users,
    set_verification,
    update_user,
)

router = APIRouter(
    prefix="/v1/users",
    tags=["users"],
    dependencies=[Depends(require_admin_key)],
)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str | None
    email: str
    is_verified: bool


class UserUpdate(BaseModel):
    name: str | None = None
    email: str
    is_verified: bool


class VerificationUpdate(BaseModel):
    is_verified: bool


@router.get("")
async def get_users(db: DbSession) -> dict:
    """List users, newest first."""
    users = await list_users(db)
    return {"users": [UserOut.model_validate(user) for user in users]}


@router.put("/{user_id}")
async def put_user(user_id: int, body: UserUpdate, db: DbSession) -> dict:
    """Replace a user's name, email and verification flag."""
    user = await update_user(db, user_id, body.name, body.email, body.is_verified)
    return {"user": UserOut.model_validate(user)}


@router.patch("/{user_id}/verification")
async def patch_verification(
    user_id: int, body: VerificationUpdate, db: DbSession,
) -> dict:
    """Verify or un-verify a user."""
    user = await set_verification(db, user_id, body.is_verified)
    return {"user": UserOut.model_validate(user)}


@router.delete("/{user_id}")
async def remove_user(user_id: int, db: DbSession) -> dict:
    """Delete a user."""
    await delete_user(db, user_id)
    return {"message": "User deleted successfully"}
