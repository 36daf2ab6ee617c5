"""Admin user approval"""

import logging
from typing import List

from modelvault.store.record_store import RecordStore, Filter, RecordNotFoundError

logger = logging.getLogger(__name__)


class AdminService:
    """Service for approving and rejecting sign-ups"""

    def __init__(self, store: RecordStore):
        """Initialize with record store"""
        self.store = store

    async def fetch_unapproved_users(self) -> List[dict]:
        """Users waiting for approval, oldest first"""
        return await self.store.select(
            "users", [Filter.eq("is_approved", False)], order_by="created_at"
        )

    async def approve_user(self, user_id: int) -> None:
        """
        Approve a user.

        Raises:
            RecordNotFoundError: If the user does not exist
        """
        updated = await self.store.update(
            "users", {"is_approved": True}, [Filter.eq("id", user_id)]
        )
        if not updated:
            raise RecordNotFoundError(f"users record {user_id} not found")
        logger.info(f"Approved user {user_id}")

    async def reject_user(self, user_id: int) -> None:
        """Reject a sign-up by deleting the user"""
        await self.store.delete("users", [Filter.eq("id", user_id)])
        logger.info(f"Rejected user {user_id}")
