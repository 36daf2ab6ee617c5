"""Creator-side project, model and version operations"""

import asyncio
import logging
from datetime import date
from typing import Dict, List, Optional, Sequence

from modelvault.config import settings
from modelvault.models.user import UserRole
from modelvault.schemas.graph import ProjectView
from modelvault.schemas.upload import FileUpload, ModelVersionUpdate
from modelvault.services.blob_store import BlobStore, BlobStoreError
from modelvault.services.graph_assembler import CREATOR_PROJECT_INCLUDE, assemble_creator_view
from modelvault.services.version_resolution import next_version_number
from modelvault.store.record_store import RecordStore, Filter

logger = logging.getLogger(__name__)


def safe_cover_index(index: int, count: int) -> int:
    """Cover index clamped to the uploaded batch; out-of-range falls back to 0"""
    return index if 0 <= index < count else 0


class CreatorService:
    """
    Service for a creator's projects, models and versions.
    Store failures propagate as StoreError; upload failures as BlobStoreError.
    """

    def __init__(self, store: RecordStore, blob_store: BlobStore):
        """Initialize with record store and blob store"""
        self.store = store
        self.blob_store = blob_store

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def fetch_creator_projects(self, creator_id: int) -> List[ProjectView]:
        """All projects of a creator with their model/version trees, newest first"""
        records = await self.store.select(
            "projects",
            [Filter.eq("creator_id", creator_id)],
            include=CREATOR_PROJECT_INCLUDE,
            order_by="id",
            descending=True,
        )
        return assemble_creator_view(records)

    async def fetch_version_images(self, version_id: int) -> List[dict]:
        return await self.store.select(
            "model_images", [Filter.eq("version_id", version_id)], order_by="id"
        )

    async def fetch_clients(self) -> List[dict]:
        """Approved client users, for project assignment"""
        return await self.store.select(
            "users",
            [Filter.eq("role", UserRole.CLIENT.value), Filter.eq("is_approved", True)],
            order_by="full_name",
        )

    async def fetch_categories(self) -> List[dict]:
        return await self.store.select("model_categories", order_by="name")

    async def fetch_model_statuses(self) -> List[dict]:
        return await self.store.select("model_status", order_by="id")

    async def _status_id(self, collection: str, name: str) -> Optional[int]:
        row = await self.store.select_one(collection, [Filter.ilike("status", name)])
        return row["id"] if row else None

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def create_project(
        self,
        creator_id: int,
        name: str,
        start_date: Optional[date] = None,
        client_ids: Sequence[int] = (),
    ) -> dict:
        """Create a project with the default status and link its clients"""
        status_id = await self._status_id("project_status", settings.new_project_status)

        [project] = await self.store.insert(
            "projects",
            {
                "name": name,
                "start_date": start_date,
                "creator_id": creator_id,
                "status_id": status_id,
            },
        )

        if client_ids:
            await self.store.insert(
                "project_clients",
                [{"project_id": project["id"], "user_id": cid} for cid in dict.fromkeys(client_ids)],
            )

        logger.info(f"Created project {project['id']} for creator {creator_id}")
        return project

    async def update_project(
        self,
        project_id: int,
        name: str,
        start_date: Optional[date] = None,
        client_ids: Sequence[int] = (),
        status_id: Optional[int] = None,
    ) -> None:
        """Rename/re-date a project and replace its client links"""
        values = {"name": name, "start_date": start_date}
        if status_id is not None:
            values["status_id"] = status_id

        await self.store.update("projects", values, [Filter.eq("id", project_id)])

        # Sync clients: delete old links, insert new ones
        await self.store.delete("project_clients", [Filter.eq("project_id", project_id)])
        if client_ids:
            await self.store.insert(
                "project_clients",
                [{"project_id": project_id, "user_id": cid} for cid in dict.fromkeys(client_ids)],
            )

        logger.info(f"Updated project {project_id}")

    async def delete_project(self, project_id: int) -> None:
        await self.store.delete("projects", [Filter.eq("id", project_id)])
        logger.info(f"Deleted project {project_id}")

    # ------------------------------------------------------------------
    # Models and versions
    # ------------------------------------------------------------------

    async def add_model_to_project(
        self,
        project_id: int,
        name: str,
        category_id: int,
        model_files: Sequence[FileUpload],
        image_files: Sequence[FileUpload] = (),
        thumbnail_index: int = 0,
    ) -> dict:
        """
        Create a model with version 1.

        The asset folder is uploaded before the version row is written so
        the version points at the real .gltf URL.
        """
        status_id = await self._status_id("model_status", settings.default_model_status)

        [model] = await self.store.insert(
            "models",
            {
                "name": name,
                "project_id": project_id,
                "category_id": category_id,
                "status_id": status_id,
            },
        )

        await self._create_version(model["id"], 1, model_files, image_files, thumbnail_index)
        logger.info(f"Added model {model['id']} to project {project_id}")
        return model

    async def add_new_version_to_model(
        self,
        model_id: int,
        model_files: Sequence[FileUpload],
        image_files: Sequence[FileUpload] = (),
        thumbnail_index: int = 0,
    ) -> int:
        """
        Add the next version to a model.

        Returns:
            The new version number
        """
        versions = await self.store.select("model_versions", [Filter.eq("model_id", model_id)])
        number = next_version_number(versions)

        await self._create_version(model_id, number, model_files, image_files, thumbnail_index)
        logger.info(f"Added version {number} to model {model_id}")
        return number

    async def _create_version(
        self,
        model_id: int,
        number: int,
        model_files: Sequence[FileUpload],
        image_files: Sequence[FileUpload],
        thumbnail_index: int,
    ) -> dict:
        file_url = await self.blob_store.upload_model_folder(model_id, number, model_files)

        [version] = await self.store.insert(
            "model_versions",
            {
                "model_id": model_id,
                "version": number,
                "file_path": file_url,
                "can_download": False,
            },
        )

        if image_files:
            urls = await self.upload_model_images(model_id, version["id"], number, image_files)
            cover_url = urls[safe_cover_index(thumbnail_index, len(urls))] if urls else None
            if cover_url:
                await self.store.update(
                    "model_versions",
                    {"thumbnail_url": cover_url},
                    [Filter.eq("id", version["id"])],
                )
                version["thumbnail_url"] = cover_url

        return version

    async def upload_model_images(
        self,
        model_id: int,
        version_id: int,
        version_number: int,
        files: Sequence[FileUpload],
    ) -> List[str]:
        """
        Upload images for a version and record them.

        Returns:
            Image URLs in the order of `files`
        """
        result = await self.blob_store.upload_images(model_id, version_number, files)
        if not result.success:
            raise BlobStoreError(result.error or "Failed to upload images")

        await self._record_images(version_id, result.image_urls)
        return result.image_urls

    async def _record_images(self, version_id: int, urls: Sequence[str]) -> None:
        if urls:
            await self.store.insert(
                "model_images",
                [{"version_id": version_id, "image_path": url} for url in urls],
            )

    async def delete_model_images(self, image_paths: Sequence[str]) -> None:
        """Remove images from the blob store and their rows from the store"""
        if not image_paths:
            return

        await asyncio.to_thread(self.blob_store.delete_images, list(image_paths))
        await self.store.delete("model_images", [Filter.isin("image_path", image_paths)])

    async def update_model_and_version(
        self,
        model_id: int,
        version_id: int,
        version_number: int,
        updates: ModelVersionUpdate,
    ) -> None:
        """
        Apply an edit session's combined update: model name and category,
        image deletions, newly uploaded image rows, an optional asset
        replacement and the version's cover.
        """
        await self.store.update(
            "models",
            {"name": updates.model_name, "category_id": updates.category_id},
            [Filter.eq("id", model_id)],
        )

        await self.delete_model_images(updates.images_to_delete)
        await self._record_images(version_id, updates.new_image_urls)

        version_values: Dict[str, object] = {"thumbnail_url": updates.cover_url}
        if updates.new_model_files:
            version_values["file_path"] = await self.blob_store.upload_model_folder(
                model_id, version_number, updates.new_model_files
            )

        await self.store.update("model_versions", version_values, [Filter.eq("id", version_id)])
        logger.info(f"Updated model {model_id} version {version_number}")

    async def update_model_status(self, model_id: int, status_id: int) -> None:
        """
        Set a model's status. Models moved to a status that is not allowed
        on portfolio pages are removed from every page.
        """
        await self.store.update("models", {"status_id": status_id}, [Filter.eq("id", model_id)])

        status = await self.store.select_one("model_status", [Filter.eq("id", status_id)])
        if status and status["status"] not in settings.portfolio_statuses_list:
            removed = await self.store.delete(
                "portfolio_page_models", [Filter.eq("model_id", model_id)]
            )
            if removed:
                logger.info(
                    f"Model {model_id} moved to '{status['status']}', removed from {removed} portfolio pages"
                )

    async def update_version_download_status(self, version_id: int, can_download: bool) -> None:
        await self.store.update(
            "model_versions", {"can_download": can_download}, [Filter.eq("id", version_id)]
        )

    async def delete_model(self, model_id: int) -> None:
        await self.store.delete("models", [Filter.eq("id", model_id)])
        logger.info(f"Deleted model {model_id}")
