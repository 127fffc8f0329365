"""
Product image API routes.
"""

from fastapi import APIRouter, UploadFile, File, Form
import asyncio
import structlog

from models.image import ProductImageResponse
from services.image_service import get_image_service
from services.storage_service import ImageFile
from services.variant_service import get_variant_service
from exceptions import VariantNotFoundError
from routes.errors import handle_error

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Images"])


@router.get("/products/{product_id}/images", response_model=list[ProductImageResponse])
async def list_images(product_id: str):
    """List a product's images in display order."""
    try:
        return get_image_service().get_by_product(product_id)

    except Exception as e:
        return handle_error(e)


@router.post("/products/{product_id}/images")
async def upload_images(
    product_id: str,
    variant_id: str = Form(..., description="Variant the images belong to"),
    files: list[UploadFile] = File(..., description="Images in display order"),
    is_primary: bool = Form(False, description="Make the first image primary")
):
    """
    Upload images for one variant, one at a time.

    A failed file does not stop the others; the response lists the
    outcome of each.

    Raises:
        404: Variant not found for this product
    """
    logger.info(
        "image_upload_started",
        product_id=product_id,
        variant_id=variant_id,
        files=len(files)
    )

    try:
        variant = get_variant_service().get_by_id(variant_id)
        if variant.product_id != product_id:
            raise VariantNotFoundError(variant_id)

        images = [
            ImageFile(
                filename=f.filename or "image",
                content_type=f.content_type or "application/octet-stream",
                data=await f.read()
            )
            for f in files
        ]
        color = variant.color or ""

        summary = await asyncio.to_thread(
            get_image_service().upload_images,
            product_id,
            variant_id,
            color,
            images,
            f"{product_id}-{color}",
            color or None,
            is_primary,
        )

        return {**summary.to_counts(), "results": [r.model_dump() for r in summary.results]}

    except Exception as e:
        return handle_error(e)


@router.delete("/images/{image_id}", status_code=204)
async def delete_image(image_id: str):
    """
    Delete an image record.

    Raises:
        404: Image not found
    """
    try:
        get_image_service().delete(image_id)
        return None

    except Exception as e:
        return handle_error(e)
