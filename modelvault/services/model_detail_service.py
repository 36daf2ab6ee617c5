"""Model detail page: model summary, version history and comments"""

import logging
from typing import List, Optional

from modelvault.config import settings
from modelvault.schemas.comment import CommentAuthor, CommentView
from modelvault.services.current_user import CurrentUserProvider
from modelvault.services.version_resolution import sort_versions
from modelvault.store.record_store import RecordStore, Filter
from modelvault.store.relations import first_or_none, related_value

logger = logging.getLogger(__name__)

DEFAULT_AUTHOR_NAME = "Unknown"
DEFAULT_AUTHOR_ROLE = "user"


def assemble_comment(comment: dict) -> CommentView:
    """Comment view with its author flattened; a missing author gets the default name"""
    author = first_or_none(comment.get("author")) or {}

    return CommentView(
        id=comment["id"],
        version_id=comment["version_id"],
        text=comment.get("text") or "",
        created_at=comment.get("created_at"),
        user_id=comment["user_id"],
        user=CommentAuthor(
            full_name=author.get("full_name") or DEFAULT_AUTHOR_NAME,
            photo_url=author.get("photo_url"),
            role=author.get("role") or DEFAULT_AUTHOR_ROLE,
        ),
    )


class ModelDetailService:
    """Service for a single model's detail page"""

    def __init__(self, store: RecordStore):
        """Initialize with record store"""
        self.store = store

    async def fetch_model_details(self, model_id: int) -> Optional[dict]:
        """
        Model record with project name, category and status flattened.

        Returns:
            Dict with id, name, project_id, project_name, category, status,
            created_at; None if the model does not exist
        """
        model = await self.store.select_one(
            "models",
            [Filter.eq("id", model_id)],
            include=("project", "category", "status"),
        )
        if model is None:
            return None

        return {
            "id": model["id"],
            "name": model["name"],
            "project_id": model["project_id"],
            "project_name": related_value(model, "project", "name", ""),
            "category": related_value(model, "category", "name", settings.default_model_category),
            "status": related_value(model, "status", "status", settings.default_model_status),
            "created_at": model.get("created_at"),
        }

    async def fetch_model_versions(self, model_id: int) -> List[dict]:
        """Versions with their images, newest first by number"""
        versions = await self.store.select(
            "model_versions", [Filter.eq("model_id", model_id)], include=("images",)
        )
        return sort_versions(versions)

    async def fetch_comments(self, version_id: int) -> List[CommentView]:
        """Comments on a version, newest first"""
        records = await self.store.select(
            "comments",
            [Filter.eq("version_id", version_id)],
            include=("author",),
            order_by="created_at",
            descending=True,
        )
        return [assemble_comment(c) for c in records]

    async def post_comment(
        self, version_id: int, text: str, user_provider: CurrentUserProvider
    ) -> dict:
        """Post a comment as the current user"""
        user = user_provider.get_current_user()

        text = text.strip()
        if not text:
            raise ValueError("Comment text is required")

        [comment] = await self.store.insert(
            "comments", {"version_id": version_id, "user_id": user.id, "text": text}
        )
        logger.info(f"User {user.id} commented on version {version_id}")
        return comment

    async def delete_comment(self, comment_id: int) -> None:
        await self.store.delete("comments", [Filter.eq("id", comment_id)])
