"""Blob store for model images and 3D asset folders (S3-compatible)"""

import asyncio
import logging
import time
from typing import List, Optional, Sequence
from urllib.parse import quote, unquote

import boto3
from botocore.exceptions import ClientError
from botocore.config import Config

from modelvault.config import settings
from modelvault.schemas.upload import BatchUploadResult, FileUpload

logger = logging.getLogger(__name__)


class BlobStoreError(Exception):
    """Base exception for blob store errors"""
    pass


class BlobConnectionError(BlobStoreError):
    """S3 connection or request error"""
    pass


class MissingAssetError(BlobStoreError):
    """Uploaded asset folder has no .gltf entry point"""
    pass


class BlobStore:
    """Uploads files and returns their public URLs"""

    ASSET_ENTRY_EXTENSION = "gltf"

    def __init__(self):
        """Initialize S3 client with retry configuration"""
        retry_config = Config(
            retries={
                "max_attempts": 3,
                "mode": "standard",
            },
            connect_timeout=5,
            read_timeout=30,
        )

        client_kwargs = {
            "region_name": settings.aws_region,
            "config": retry_config,
        }

        # Add credentials if provided (not needed for IAM roles)
        if settings.aws_access_key_id and settings.aws_secret_access_key:
            client_kwargs["aws_access_key_id"] = settings.aws_access_key_id
            client_kwargs["aws_secret_access_key"] = settings.aws_secret_access_key

        # Use custom endpoint for local development (MinIO)
        if settings.aws_endpoint_url:
            client_kwargs["endpoint_url"] = settings.aws_endpoint_url

        try:
            self.s3_client = boto3.client("s3", **client_kwargs)
            logger.info("S3 client initialized")
        except Exception as e:
            logger.error(f"Failed to initialize S3 client: {e}")
            raise BlobConnectionError(f"Failed to initialize S3 client: {e}")

    def public_url(self, bucket: str, key: str) -> str:
        """Public URL of an object"""
        if settings.aws_endpoint_url:
            # For local development with MinIO
            return f"{settings.aws_endpoint_url}/{bucket}/{quote(key)}"
        return f"https://{bucket}.s3.{settings.aws_region}.amazonaws.com/{quote(key)}"

    def key_from_url(self, bucket: str, url: str) -> Optional[str]:
        """Object key for a URL produced by public_url, or None if it points elsewhere"""
        marker = f"/{bucket}/" if settings.aws_endpoint_url else f"{bucket}.s3."
        if marker not in url:
            return None

        if settings.aws_endpoint_url:
            key = url.split(marker, 1)[1]
        else:
            key = url.split(".amazonaws.com/", 1)[-1]
        return unquote(key) or None

    def upload(self, path_hint: str, file: FileUpload, bucket: Optional[str] = None) -> str:
        """
        Upload one file.

        Args:
            path_hint: Object key to store the file under
            file: File payload
            bucket: Target bucket (default: images bucket)

        Returns:
            Public URL of the uploaded object

        Raises:
            BlobConnectionError: If upload fails
        """
        bucket = bucket or settings.s3_images_bucket

        try:
            self.s3_client.put_object(
                Bucket=bucket,
                Key=path_hint,
                Body=file.content,
                ContentType=file.content_type,
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"Error uploading {path_hint}: {error_code} - {e}")
            raise BlobConnectionError(f"Failed to upload {file.filename}: {error_code}")

        url = self.public_url(bucket, path_hint)
        logger.info(f"Uploaded {len(file.content)} bytes to {url}")
        return url

    @staticmethod
    def image_key(model_id: int, version_number: int, index: int, file: FileUpload) -> str:
        """
        Key for a version image:
        model-{model_id}/version-{n}/{model_id}-{n}-{timestamp}-{index}.{ext}
        """
        unique_id = int(time.time() * 1000)
        name = f"{model_id}-{version_number}-{unique_id}-{index}"
        if file.extension:
            name = f"{name}.{file.extension}"
        return f"model-{model_id}/version-{version_number}/{name}"

    async def upload_images(
        self,
        model_id: int,
        version_number: int,
        files: Sequence[FileUpload],
    ) -> BatchUploadResult:
        """
        Upload a batch of version images.

        The returned image_urls are in the same order as `files`. The batch
        fails as a whole: if any upload fails, no URLs are returned.
        """
        if not files:
            return BatchUploadResult(success=True, image_urls=[])

        tasks = [
            asyncio.to_thread(
                self.upload,
                self.image_key(model_id, version_number, index, file),
                file,
                settings.s3_images_bucket,
            )
            for index, file in enumerate(files)
        ]

        try:
            urls = await asyncio.gather(*tasks)
        except BlobStoreError as e:
            logger.error(f"Image batch upload failed for model {model_id}: {e}")
            return BatchUploadResult(success=False, error=str(e))

        return BatchUploadResult(success=True, image_urls=list(urls))

    async def upload_model_folder(
        self,
        model_id: int,
        version_number: int,
        files: Sequence[FileUpload],
    ) -> str:
        """
        Upload a 3D asset folder, preserving relative paths.

        Returns:
            Public URL of the folder's .gltf file

        Raises:
            MissingAssetError: If the folder has no .gltf file
            BlobConnectionError: If any upload fails
        """
        if not any(f.extension == self.ASSET_ENTRY_EXTENSION for f in files):
            raise MissingAssetError("No .gltf file found in the uploaded folder.")

        keys = [
            f"model-{model_id}/version-{version_number}/{f.relative_path or f.filename}"
            for f in files
        ]
        urls = await asyncio.gather(
            *(
                asyncio.to_thread(self.upload, key, f, settings.s3_models_bucket)
                for key, f in zip(keys, files)
            )
        )

        for f, url in zip(files, urls):
            if f.extension == self.ASSET_ENTRY_EXTENSION:
                return url

        raise MissingAssetError("No .gltf file found in the uploaded folder.")

    def delete_images(self, urls: Sequence[str]) -> List[str]:
        """
        Delete version images by URL. URLs outside the images bucket are skipped.

        Returns:
            Keys that were deleted
        """
        keys = [
            key
            for key in (self.key_from_url(settings.s3_images_bucket, url) for url in urls)
            if key
        ]
        if not keys:
            return []

        try:
            self.s3_client.delete_objects(
                Bucket=settings.s3_images_bucket,
                Delete={"Objects": [{"Key": key} for key in keys]},
            )
        except ClientError as e:
            logger.error(f"Error deleting images: {e}")
            raise BlobConnectionError(f"Failed to delete images: {e}")

        logger.info(f"Deleted {len(keys)} images")
        return keys
