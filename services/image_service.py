"""
Product image service.

Image metadata lives in product_images; the files themselves are in
object storage (see StorageService).
"""

from typing import Optional, Sequence
import structlog

from config import get_supabase_client
from models.image import (
    ImageUploadOutcome,
    ImageUploadSummary,
    ProductImageCreate,
    ProductImageResponse,
)
from services.storage_service import ImageFile, StorageService
from exceptions import AppError, DatabaseError, ProductImageNotFoundError

logger = structlog.get_logger(__name__)


class ImageService:
    """
    Product image business logic.

    Handles image metadata CRUD and sequential variant image uploads.
    """

    def __init__(self, storage: Optional[StorageService] = None):
        self.db = get_supabase_client()
        self.table = "product_images"
        self.storage = storage or StorageService()

    # ===================
    # READ OPERATIONS
    # ===================

    def get_by_product(self, product_id: str) -> list[ProductImageResponse]:
        """Get a product's images in display order."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("product_id", product_id)
                .order("display_order")
                .execute()
            )
            return [ProductImageResponse(**row) for row in result.data]

        except Exception as e:
            logger.error("get_images_failed", product_id=product_id, error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_id(self, image_id: str) -> ProductImageResponse:
        """
        Get one image.

        Raises:
            ProductImageNotFoundError: If image doesn't exist
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", image_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_image_failed", image_id=image_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise ProductImageNotFoundError(image_id)
        return ProductImageResponse(**result.data[0])

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: ProductImageCreate) -> ProductImageResponse:
        """
        Insert image metadata.

        Args:
            data: Image row (URL must already point at an uploaded object)

        Returns:
            Created ProductImageResponse
        """
        try:
            result = (
                self.db.table(self.table)
                .insert(data.model_dump())
                .execute()
            )
            image = ProductImageResponse(**result.data[0])

            logger.info(
                "image_created",
                image_id=image.id,
                product_id=data.product_id,
                variant_id=data.variant_id
            )
            return image

        except Exception as e:
            logger.error(
                "create_image_failed",
                product_id=data.product_id,
                error=str(e)
            )
            raise DatabaseError("insert", str(e))

    def delete(self, image_id: str) -> bool:
        """
        Delete image metadata.

        The stored object is left in the bucket.

        Raises:
            ProductImageNotFoundError: If image doesn't exist
        """
        logger.info("deleting_image", image_id=image_id)

        self.get_by_id(image_id)

        try:
            self.db.table(self.table).delete().eq("id", image_id).execute()
            logger.info("image_deleted", image_id=image_id)
            return True

        except Exception as e:
            logger.error("delete_image_failed", image_id=image_id, error=str(e))
            raise DatabaseError("delete", str(e))

    # ===================
    # UPLOADS
    # ===================

    def upload_images(
        self,
        product_id: str,
        variant_id: str,
        color: str,
        files: Sequence[ImageFile],
        name_hint: str,
        alt_text: Optional[str] = None,
        mark_primary: bool = False
    ) -> ImageUploadSummary:
        """
        Upload a color group's images one after another.

        Each file is uploaded, then its metadata row is written. A failure
        is recorded and the remaining files are still attempted.

        Args:
            product_id: Owning product
            variant_id: Variant the images illustrate
            color: Color label (for reporting)
            files: Images in display order
            name_hint: Prefix for storage object names
            alt_text: Alt text for every image
            mark_primary: Make the first file the product's primary image

        Returns:
            ImageUploadSummary with one outcome per file
        """
        summary = ImageUploadSummary()

        for index, image in enumerate(files):
            outcome = ImageUploadOutcome(color=color, filename=image.filename, index=index)
            try:
                url = self.storage.upload_image(image, f"{name_hint}-{index}")
                outcome.image = self.create(ProductImageCreate(
                    product_id=product_id,
                    variant_id=variant_id,
                    image_url=url,
                    alt_text=alt_text,
                    is_primary=mark_primary and index == 0,
                    display_order=index,
                ))
            except AppError as e:
                logger.warning(
                    "image_upload_failed",
                    product_id=product_id,
                    variant_id=variant_id,
                    filename=image.filename,
                    index=index,
                    error=e.message
                )
                outcome.error = e.message
            summary.results.append(outcome)

        logger.info(
            "variant_images_uploaded",
            product_id=product_id,
            variant_id=variant_id,
            attempted=summary.attempted,
            succeeded=summary.succeeded
        )
        return summary


# Singleton instance for convenience
_image_service: Optional[ImageService] = None

def get_image_service() -> ImageService:
    """Get or create ImageService instance."""
    global _image_service
    if _image_service is None:
        _image_service = ImageService()
    return _image_service
