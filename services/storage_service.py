"""
Object storage service for product images.

Uploads go to the configured Supabase Storage bucket and are served from
its public URL.
"""

from dataclasses import dataclass
from typing import Optional
import time
import structlog

from config import get_supabase_client, settings
from exceptions import InvalidImageError, StorageUploadError
from utils.text_utils import file_extension, slugify

logger = structlog.get_logger(__name__)


@dataclass
class ImageFile:
    """An image waiting to be uploaded."""
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class StorageService:
    """Upload images to the product image bucket."""

    def __init__(self):
        self.db = get_supabase_client()
        self.bucket = settings.storage_bucket
        self.folder = settings.storage_folder

    def validate_image(self, filename: str, content_type: str, size: int) -> None:
        """
        Reject files that are not acceptable product images.

        Raises:
            InvalidImageError: Wrong content type, empty or too large
        """
        if content_type not in settings.allowed_image_types:
            raise InvalidImageError(filename, f"unsupported content type {content_type}")
        if size <= 0:
            raise InvalidImageError(filename, "file is empty")
        if size > settings.max_image_size_bytes:
            raise InvalidImageError(
                filename,
                f"file exceeds {settings.max_image_size_mb} MB"
            )

    def build_object_path(
        self,
        name_hint: str,
        filename: str,
        timestamp_ms: Optional[int] = None
    ) -> str:
        """
        Unique object path for an upload.

        Example: ("classic-tee-Red-0", "front.JPG") →
                 "products/classic-tee-red-0-1718000000000.jpg"
        """
        if timestamp_ms is None:
            timestamp_ms = int(time.time() * 1000)
        base = slugify(name_hint) or "image"
        return f"{self.folder}/{base}-{timestamp_ms}.{file_extension(filename)}"

    def upload_object(self, data: bytes, path: str, content_type: str) -> str:
        """
        Upload bytes and return the object's public URL.

        Never overwrites an existing object.

        Raises:
            StorageUploadError: If storage rejects the upload
        """
        logger.info("uploading_object", bucket=self.bucket, path=path, size=len(data))

        try:
            bucket = self.db.storage.from_(self.bucket)
            bucket.upload(
                path=path,
                file=data,
                file_options={"content-type": content_type, "upsert": "false"}
            )
            url = bucket.get_public_url(path)

        except Exception as e:
            logger.error(
                "upload_object_failed",
                bucket=self.bucket,
                path=path,
                error=str(e)
            )
            raise StorageUploadError(path, str(e))

        logger.info("object_uploaded", path=path)
        return url

    def upload_image(self, image: ImageFile, name_hint: str) -> str:
        """Validate, upload and return the public URL of one image."""
        self.validate_image(image.filename, image.content_type, image.size)
        path = self.build_object_path(name_hint, image.filename)
        return self.upload_object(image.data, path, image.content_type)
