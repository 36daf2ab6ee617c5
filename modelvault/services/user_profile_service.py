"""Per-user profile statistics"""

import asyncio
import logging

from modelvault.schemas.user import UserStatistics
from modelvault.store.record_store import RecordStore, Filter

logger = logging.getLogger(__name__)


class UserProfileService:
    """Service for profile page data"""

    def __init__(self, store: RecordStore):
        self.store = store

    async def fetch_user_statistics(self, user_id: int) -> UserStatistics:
        """
        Count the user's assigned projects, favourites and comments.

        The three counts run concurrently; each opens its own session.
        """
        by_user = [Filter.eq("user_id", user_id)]
        projects, favourites, comments = await asyncio.gather(
            self.store.count("project_clients", by_user),
            self.store.count("user_favourites", by_user),
            self.store.count("comments", by_user),
        )
        logger.debug(f"Statistics for user {user_id}: {projects} projects, {favourites} favourites, {comments} comments")
        return UserStatistics(projects=projects, favourites=favourites, comments=comments)
