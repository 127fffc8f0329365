"""
Product API routes.

Plain CRUD plus the admin form endpoints, which save a product together
with its variant draft and image attachments in one request.
"""

from fastapi import APIRouter, Query, UploadFile, File, Form
from typing import Optional
from pydantic import ValidationError as PydanticValidationError
import structlog

from config import settings
from models.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductWithDetails,
    ProductListResponse,
    ProductFormValues,
    ProductFormState,
    ProductType,
)
from services.product_service import get_product_service
from services.product_form_service import get_product_form_service
from exceptions import ProductNotFoundError, ValidationError
from routes.errors import handle_error

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# ROUTES
# ===================

@router.get("", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(settings.default_page_size, ge=1, le=100, description="Items per page"),
    product_type: Optional[ProductType] = Query(None, description="Filter by catalog section"),
    include_inactive: bool = Query(False, description="Include inactive products")
):
    """
    List products with category, variants and images.

    Returns paginated list of products, newest first.
    """
    try:
        service = get_product_service()

        products, total = service.get_all(
            page=page,
            page_size=page_size,
            product_type=product_type,
            active_only=not include_inactive
        )

        total_pages = (total + page_size - 1) // page_size

        return ProductListResponse(
            data=products,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages
        )

    except Exception as e:
        return handle_error(e)


@router.get("/count/total")
async def count_products(
    include_inactive: bool = Query(False, description="Include inactive")
):
    """Get total product count."""
    try:
        service = get_product_service()
        count = service.count(active_only=not include_inactive)
        return {"count": count}

    except Exception as e:
        return handle_error(e)


@router.get("/slug/{slug}", response_model=ProductWithDetails)
async def get_product_by_slug(slug: str):
    """
    Get a product by slug.

    Raises:
        404: Product not found
    """
    try:
        service = get_product_service()
        product = service.get_by_slug(slug)

        if not product:
            raise ProductNotFoundError(slug)

        return product

    except Exception as e:
        return handle_error(e)


@router.get("/{product_id}", response_model=ProductWithDetails)
async def get_product(product_id: str):
    """
    Get a single product by ID.

    Raises:
        404: Product not found
    """
    try:
        service = get_product_service()
        return service.get_by_id(product_id)

    except Exception as e:
        return handle_error(e)


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(data: ProductCreate):
    """
    Create a product without variants.

    Raises:
        409: Slug already exists
        422: Validation error
    """
    try:
        service = get_product_service()
        return service.create(data)

    except Exception as e:
        return handle_error(e)


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(product_id: str, data: ProductUpdate):
    """
    Update an existing product.

    Only provided fields are updated.

    Raises:
        404: Product not found
        409: New slug already exists
        422: Validation error
    """
    try:
        service = get_product_service()
        return service.update(product_id, data)

    except Exception as e:
        return handle_error(e)


@router.delete("/{product_id}", status_code=204)
async def delete_product(product_id: str):
    """
    Delete a product with its variants and images.

    Raises:
        404: Product not found
    """
    try:
        service = get_product_service()
        service.delete(product_id)
        return None  # 204 No Content

    except Exception as e:
        return handle_error(e)


@router.delete("")
async def delete_all_products():
    """Delete every product. Returns how many were removed."""
    try:
        service = get_product_service()
        deleted = service.delete_all()
        return {"deleted_count": deleted}

    except Exception as e:
        return handle_error(e)


# ===================
# FORM ROUTES
# ===================

@router.get("/{product_id}/form", response_model=ProductFormState)
async def open_product_form(product_id: str):
    """
    Load a product into the edit form.

    Variants come back grouped by color, ready to edit and submit.

    Raises:
        404: Product not found
    """
    try:
        service = get_product_form_service()
        with service.open_session(product_id) as session:
            return ProductFormState(product=session.product, variants=session.variants)

    except Exception as e:
        return handle_error(e)


def _parse_form_values(payload: str) -> ProductFormValues:
    try:
        return ProductFormValues.model_validate_json(payload)
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid product form",
            details={"errors": e.errors(include_url=False, include_context=False)}
        )


async def _submit_form(
    product_id: Optional[str],
    payload: str,
    images: Optional[list[UploadFile]],
    image_groups: list[int]
):
    images = images or []
    if len(images) != len(image_groups):
        raise ValidationError(
            "Each image needs a color group index",
            code="IMAGE_GROUP_MISMATCH",
            details={"images": len(images), "image_groups": len(image_groups)}
        )

    values = _parse_form_values(payload)
    out_of_range = [i for i in image_groups if not 0 <= i < len(values.variants)]
    if out_of_range:
        raise ValidationError(
            "Image group index does not match a color group",
            code="IMAGE_GROUP_MISMATCH",
            details={"image_groups": out_of_range, "groups": len(values.variants)}
        )

    service = get_product_form_service()

    with service.open_session(product_id) as session:
        for upload, group_index in zip(images, image_groups):
            session.attach_image(
                group_index,
                upload.filename or "image",
                upload.content_type or "application/octet-stream",
                await upload.read()
            )
        result = await session.submit(values)

    return result.summary()


@router.post("/form", status_code=201)
async def submit_new_product_form(
    payload: str = Form(..., description="ProductFormValues as JSON"),
    images: Optional[list[UploadFile]] = File(None, description="Images to attach"),
    image_groups: list[int] = Form([], description="Color group index for each image")
):
    """
    Create a product with its variants and images.

    Raises:
        409: Slug already exists
        422: Duplicate variants or SKUs, missing sizes, invalid images or image groups
        500: Variant sync failed (product row was saved)
    """
    try:
        return await _submit_form(None, payload, images, image_groups)

    except Exception as e:
        return handle_error(e)


@router.put("/{product_id}/form")
async def submit_product_form(
    product_id: str,
    payload: str = Form(..., description="ProductFormValues as JSON"),
    images: Optional[list[UploadFile]] = File(None, description="Images to attach"),
    image_groups: list[int] = Form([], description="Color group index for each image")
):
    """
    Save an edited product: fields, variant changes and new images.

    Raises:
        404: Product not found
        409: New slug already exists
        422: Duplicate variants or SKUs, unknown variant ids, invalid images or image groups
        500: Variant sync failed (re-fetch the product before retrying)
    """
    try:
        return await _submit_form(product_id, payload, images, image_groups)

    except Exception as e:
        return handle_error(e)
