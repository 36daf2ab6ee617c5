"""Favourites: toggling and grouping favourited versions by model"""

import logging
from typing import Dict, List, Sequence

from modelvault.schemas.favourites import FavouriteVersionEntry, ModelFavouriteGroup
from modelvault.services.current_user import CurrentUserProvider
from modelvault.services.version_resolution import version_number
from modelvault.store.record_store import RecordStore, Filter
from modelvault.store.relations import as_list, first_or_none

logger = logging.getLogger(__name__)

# Favourite -> version -> model, plus the version's images
FAVOURITE_INCLUDE = (
    "version.model",
    "version.images",
)


def group_favourites_by_model(favourites: Sequence[dict]) -> List[ModelFavouriteGroup]:
    """
    Group favourite records by the model their version belongs to.

    Groups and the versions inside each group keep the order in which the
    favourites were encountered; versions are deliberately not re-sorted by
    number. A favourite whose version or model join is missing is skipped.

    Args:
        favourites: Favourite records with embedded version -> model and version images

    Returns:
        One ModelFavouriteGroup per distinct model id
    """
    groups: Dict[int, ModelFavouriteGroup] = {}

    for favourite in as_list(favourites):
        version = first_or_none(favourite.get("version")) if isinstance(favourite, dict) else None
        model = first_or_none(version.get("model")) if version else None

        if version is None or model is None or model.get("id") is None:
            logger.warning(f"Skipping favourite with incomplete joins: {favourite!r}")
            continue

        images = [img for img in as_list(version.get("images")) if isinstance(img, dict)]
        number = version_number(version)

        entry = FavouriteVersionEntry(
            version_id=version["id"],
            version_number=None if number == float("-inf") else number,
            created_at=version.get("created_at"),
            image_path=images[0].get("image_path") if images else None,
        )

        group = groups.get(model["id"])
        if group is None:
            group = ModelFavouriteGroup(model_id=model["id"], model_name=model.get("name") or "")
            groups[model["id"]] = group
        group.versions.append(entry)

    return list(groups.values())


class FavouritesService:
    """Service for a user's favourited model versions"""

    def __init__(self, store: RecordStore):
        """Initialize with record store"""
        self.store = store

    async def fetch_user_favourites(self, user_id: int) -> List[dict]:
        """Favourite records for a user with their version, model and images"""
        return await self.store.select(
            "user_favourites",
            [Filter.eq("user_id", user_id)],
            include=FAVOURITE_INCLUDE,
            order_by="id",
        )

    async def fetch_grouped_favourites(self, user_id: int) -> List[ModelFavouriteGroup]:
        """A user's favourites grouped by model"""
        return group_favourites_by_model(await self.fetch_user_favourites(user_id))

    async def fetch_current_user_favourites(
        self, user_provider: CurrentUserProvider
    ) -> List[ModelFavouriteGroup]:
        user = user_provider.get_current_user()
        return await self.fetch_grouped_favourites(user.id)

    async def toggle_favourite(self, user_id: int, version_id: int) -> Dict[str, str]:
        """
        Add the favourite if absent, remove it if present.

        This is check-then-act without a transaction; callers disable the
        trigger while a toggle is in flight.

        Returns:
            {"action": "added"} or {"action": "removed"}
        """
        existing = await self.store.select_one(
            "user_favourites",
            [Filter.eq("user_id", user_id), Filter.eq("version_id", version_id)],
        )

        if existing:
            await self.store.delete("user_favourites", [Filter.eq("id", existing["id"])])
            logger.info(f"User {user_id} unfavourited version {version_id}")
            return {"action": "removed"}

        await self.store.insert("user_favourites", {"user_id": user_id, "version_id": version_id})
        logger.info(f"User {user_id} favourited version {version_id}")
        return {"action": "added"}
