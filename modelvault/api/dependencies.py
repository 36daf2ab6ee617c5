"""API dependencies for the record store and the requesting user"""

from typing import Optional

from fastapi import Depends, Header

from modelvault.database import AsyncSessionLocal
from modelvault.models.user import UserRole
from modelvault.schemas.user import CurrentUser
from modelvault.services.current_user import NotAuthenticatedError, NotAuthorizedError
from modelvault.store.record_store import RecordStore, Filter


def get_store() -> RecordStore:
    """Record store bound to the application session factory"""
    return RecordStore(AsyncSessionLocal)


async def get_current_user(
    x_user_id: Optional[int] = Header(None),
    store: RecordStore = Depends(get_store),
) -> CurrentUser:
    """
    Resolve the requesting user from the X-User-Id header.

    Raises:
        NotAuthenticatedError: If the header is missing or the user is unknown or unapproved
    """
    if x_user_id is None:
        raise NotAuthenticatedError("X-User-Id header missing")

    user = await store.select_one("users", [Filter.eq("id", x_user_id)])
    if user is None or not user["is_approved"]:
        raise NotAuthenticatedError("User not found or not approved")

    return CurrentUser(
        id=user["id"],
        role=user["role"],
        is_approved=user["is_approved"],
        full_name=user.get("full_name"),
    )


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """
    Require the admin role.

    Raises:
        NotAuthorizedError: If the user is not an admin
    """
    if current_user.role != UserRole.ADMIN.value:
        raise NotAuthorizedError("Admin role required")
    return current_user
