"""Upload session schemas"""

from typing import List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class FileUpload(BaseModel):
    """In-memory file payload handed to the blob store"""
    filename: str
    content: bytes = b""
    content_type: str = "application/octet-stream"
    relative_path: Optional[str] = Field(None, description="Path inside an uploaded folder")

    @property
    def extension(self) -> str:
        """File extension without the dot"""
        return self.filename.rsplit(".", 1)[-1].lower() if "." in self.filename else ""


class ExistingImage(BaseModel):
    """Already persisted image, identified by its record id and URL"""
    kind: Literal["existing"] = "existing"
    id: str
    url: str


class NewImage(BaseModel):
    """Staged file with a session-local temporary id"""
    kind: Literal["new"] = "new"
    id: str
    file: FileUpload
    preview: Optional[str] = None


ImageItem = Union[ExistingImage, NewImage]


class UploadSlot(BaseModel):
    """A staged new image paired with the URL its upload produced"""
    image: NewImage
    url: Optional[str] = None


class BatchUploadResult(BaseModel):
    """Outcome of a batch image upload; image_urls follow the input order"""
    success: bool
    image_urls: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class ModelVersionUpdate(BaseModel):
    """Combined update issued when an edit session is saved"""
    model_config = ConfigDict(protected_namespaces=())

    model_name: str
    category_id: int
    cover_url: Optional[str] = None
    images_to_delete: List[str] = Field(default_factory=list)
    new_image_urls: List[str] = Field(default_factory=list)
    new_model_files: List[FileUpload] = Field(default_factory=list)
