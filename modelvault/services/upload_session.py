"""Edit session for a model version's images: staging, batch upload, cover correlation, save"""

import enum
import itertools
import logging
from typing import Dict, List, Optional, Sequence

from modelvault.config import settings
from modelvault.schemas.upload import (
    ExistingImage,
    FileUpload,
    ImageItem,
    ModelVersionUpdate,
    NewImage,
    UploadSlot,
)
from modelvault.services.blob_store import BlobStoreError
from modelvault.services.creator_service import CreatorService
from modelvault.services.version_resolution import resolve_cover_image
from modelvault.store.relations import as_list

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    """Edit session lifecycle"""
    IDLE = "idle"
    IMAGES_STAGED = "images_staged"
    UPLOADING = "uploading"
    RECONCILED = "reconciled"
    SAVED = "saved"
    ERROR = "error"


class UploadValidationError(Exception):
    """Field-level validation failure; nothing was sent to the backend"""

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{field}: {message}" for field, message in errors.items()))


class InvalidSessionStateError(Exception):
    """Operation not allowed in the session's current state"""
    pass


class CorrelationError(Exception):
    """The selected cover could not be matched to an uploaded URL"""
    pass


class UploadSession:
    """
    Tracks one edit of a model version.

    The working image list mixes already persisted images and newly staged
    files. Exactly one of them is the cover (`cover_id`). On commit, the new
    files are uploaded as a single batch, each staged image is paired with
    the URL returned at its position, the cover URL is resolved through that
    pairing, and one combined update is saved.
    """

    def __init__(
        self,
        creator_service: CreatorService,
        model_id: int,
        version_id: int,
        version_number: int,
        max_images: Optional[int] = None,
    ):
        self.creator_service = creator_service
        self.model_id = model_id
        self.version_id = version_id
        self.version_number = version_number
        self.max_images = max_images or settings.max_images_per_version

        self.state = SessionState.IDLE
        self.model_name = ""
        self.category_id: Optional[int] = None
        self.images: List[ImageItem] = []
        self.cover_id: Optional[str] = None
        self.images_to_delete: List[str] = []
        self.new_model_files: List[FileUpload] = []
        self.slots: List[UploadSlot] = []
        self.final_cover_url: Optional[str] = None

        self._temp_ids = itertools.count(1)

    @classmethod
    async def start(
        cls,
        creator_service: CreatorService,
        model_id: int,
        version_id: int,
        model_name: str = "",
        category_id: Optional[int] = None,
    ) -> "UploadSession":
        """Open a session on a persisted version, staging its current images"""
        version = await creator_service.store.get(
            "model_versions", version_id, include=("images",)
        )
        session = cls(creator_service, model_id, version_id, version["version"])
        session.set_details(model_name, category_id)
        session.load_existing(version.get("images"), version.get("thumbnail_url"))
        return session

    # ------------------------------------------------------------------
    # Staging
    # ------------------------------------------------------------------

    def load_existing(self, images: Sequence[dict], cover_url: Optional[str] = None) -> None:
        """Stage persisted images; the cover is the one matching `cover_url`, else the first"""
        self._require(SessionState.IDLE, SessionState.IMAGES_STAGED)

        records = [img for img in as_list(images) if isinstance(img, dict)]
        self.images = [
            ExistingImage(id=str(img["id"]), url=img["image_path"]) for img in records
        ][: self.max_images]

        cover = resolve_cover_image(records[: self.max_images], cover_url)
        self.cover_id = str(cover["id"]) if cover else None
        self.state = SessionState.IMAGES_STAGED

    def set_details(self, model_name: str, category_id: Optional[int]) -> None:
        self.model_name = model_name
        self.category_id = category_id

    def add_files(self, files: Sequence[FileUpload]) -> List[NewImage]:
        """
        Stage new image files. Files beyond the per-version limit are dropped.
        The first image becomes the cover when none is selected.

        Returns:
            The staged NewImage entries
        """
        self._require(SessionState.IDLE, SessionState.IMAGES_STAGED)

        room = max(self.max_images - len(self.images), 0)
        if len(files) > room:
            logger.info(f"Dropping {len(files) - room} images over the limit of {self.max_images}")

        added = [
            NewImage(id=f"new-{next(self._temp_ids)}-{f.filename}", file=f)
            for f in list(files)[:room]
        ]
        self.images.extend(added)

        if self.cover_id is None and self.images:
            self.cover_id = self.images[0].id

        self.state = SessionState.IMAGES_STAGED
        return added

    def remove_image(self, image_id: str) -> None:
        """
        Remove a staged image. Persisted images are queued for deletion. If
        the cover is removed, the new first image becomes the cover.
        """
        self._require(SessionState.IDLE, SessionState.IMAGES_STAGED)

        item = self._find(image_id)
        if item is None:
            raise UploadValidationError({"images": f"Image {image_id} is not in this version"})

        if isinstance(item, ExistingImage):
            self.images_to_delete.append(item.url)

        self.images = [i for i in self.images if i.id != image_id]

        if image_id == self.cover_id:
            self.cover_id = self.images[0].id if self.images else None

    def set_cover(self, image_id: str) -> None:
        self._require(SessionState.IDLE, SessionState.IMAGES_STAGED)
        if self._find(image_id) is None:
            raise UploadValidationError({"cover": f"Image {image_id} is not in this version"})
        self.cover_id = image_id

    def set_cover_index(self, index: int) -> None:
        if not 0 <= index < len(self.images):
            raise UploadValidationError({"cover": f"No image at position {index}"})
        self.set_cover(self.images[index].id)

    def replace_model_files(self, files: Sequence[FileUpload]) -> None:
        """Stage a replacement 3D asset folder for the version"""
        self.new_model_files = list(files)

    def new_images(self) -> List[NewImage]:
        """Staged new images, in working-list order"""
        return [i for i in self.images if isinstance(i, NewImage)]

    # ------------------------------------------------------------------
    # Commit pipeline
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """
        Check the session before any network call.

        Raises:
            UploadValidationError: with one message per failing field
        """
        errors: Dict[str, str] = {}

        if not self.model_name or not self.model_name.strip():
            errors["name"] = "Name is required"
        if not self.category_id:
            errors["category"] = "Category is required"
        if not self.images:
            errors["images"] = "Must have at least one image"
        if not self.cover_id or self._find(self.cover_id) is None:
            errors["cover"] = "Please select a cover image"

        if errors:
            raise UploadValidationError(errors)

    async def upload(self) -> List[UploadSlot]:
        """
        Validate, then upload every staged new file in one batch.

        Returns:
            One slot per new image, paired with the URL at the same position
        """
        if self.state == SessionState.ERROR:
            self.retry()
        self._require(SessionState.IDLE, SessionState.IMAGES_STAGED)
        self.validate()

        self.state = SessionState.UPLOADING
        new_images = self.new_images()

        if not new_images:
            self.slots = []
            return self.slots

        try:
            result = await self.creator_service.blob_store.upload_images(
                self.model_id, self.version_number, [i.file for i in new_images]
            )
        except Exception:
            self.state = SessionState.ERROR
            raise

        if not result.success:
            self.state = SessionState.ERROR
            raise BlobStoreError(result.error or "Failed to upload images")

        urls = result.image_urls
        if len(urls) != len(new_images):
            logger.warning(
                f"Upload returned {len(urls)} URLs for {len(new_images)} files on model {self.model_id}"
            )

        self.slots = [
            UploadSlot(image=image, url=urls[index] if index < len(urls) else None)
            for index, image in enumerate(new_images)
        ]
        return self.slots

    def _cover_url(self) -> str:
        cover = self._find(self.cover_id)

        if isinstance(cover, ExistingImage):
            return cover.url

        for slot in self.slots:
            if cover is not None and slot.image.id == cover.id:
                if slot.url:
                    return slot.url
                break

        raise CorrelationError(f"No uploaded URL for cover {self.cover_id}")

    def reconcile(self) -> str:
        """
        Resolve the final cover URL.

        A persisted cover keeps its URL; a new cover takes the URL of its
        upload slot. If that fails, the first available URL is used, newly
        uploaded ones first.
        """
        if self.state != SessionState.UPLOADING:
            raise InvalidSessionStateError(f"Cannot reconcile from {self.state.value}")

        try:
            self.final_cover_url = self._cover_url()
        except CorrelationError as e:
            fallback = [s.url for s in self.slots if s.url] + [
                i.url for i in self.images if isinstance(i, ExistingImage)
            ]
            self.final_cover_url = fallback[0] if fallback else None
            logger.warning(f"{e}; falling back to {self.final_cover_url}")

        self.state = SessionState.RECONCILED
        return self.final_cover_url

    async def save(self) -> ModelVersionUpdate:
        """Issue the combined update for the session"""
        if self.state != SessionState.RECONCILED:
            raise InvalidSessionStateError(f"Cannot save from {self.state.value}")

        update = ModelVersionUpdate(
            model_name=self.model_name.strip(),
            category_id=self.category_id,
            cover_url=self.final_cover_url,
            images_to_delete=list(self.images_to_delete),
            new_image_urls=[s.url for s in self.slots if s.url],
            new_model_files=self.new_model_files,
        )

        try:
            await self.creator_service.update_model_and_version(
                self.model_id, self.version_id, self.version_number, update
            )
        except Exception:
            self.state = SessionState.ERROR
            raise

        self.state = SessionState.SAVED
        return update

    def retry(self) -> None:
        """Return a failed session to staging, keeping its images, cover and details"""
        self._require(SessionState.ERROR)
        self.slots = []
        self.final_cover_url = None
        self.state = SessionState.IMAGES_STAGED
        logger.info(f"Retrying edit of model {self.model_id} version {self.version_number}")

    async def commit(self) -> ModelVersionUpdate:
        """Upload, reconcile and save in one call"""
        await self.upload()
        self.reconcile()
        return await self.save()

    # ------------------------------------------------------------------

    def _find(self, image_id: Optional[str]) -> Optional[ImageItem]:
        for item in self.images:
            if item.id == image_id:
                return item
        return None

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            raise InvalidSessionStateError(
                f"Operation not allowed while session is {self.state.value}"
            )
