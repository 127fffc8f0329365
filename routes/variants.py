"""
Variant API routes.

Validation and change-set preview never write; PUT applies a whole
draft to a product's variants.
"""

from fastapi import APIRouter, Query
import structlog

from models.variant import (
    VariantResponse,
    VariantChanges,
    VariantDraftRequest,
    VariantSyncResponse,
)
from services.variant_service import get_variant_service
from services.product_form_service import get_product_form_service
from services.variant_reconciler import generate_sku
from routes.errors import handle_error

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Variants"])


@router.get("/products/{product_id}/variants", response_model=list[VariantResponse])
async def list_variants(product_id: str):
    """List a product's variants."""
    try:
        return get_variant_service().get_by_product(product_id)

    except Exception as e:
        return handle_error(e)


@router.post("/variants/validate")
async def validate_variants(data: VariantDraftRequest):
    """
    Check a draft for duplicate color/size pairs, duplicate SKUs and
    missing stock. Always 200; read is_valid.
    """
    try:
        report = get_product_form_service().validate(data.variants)
        return {"is_valid": report.is_valid, **report.model_dump()}

    except Exception as e:
        return handle_error(e)


@router.get("/variants/sku")
async def suggest_sku(
    slug: str = Query(..., min_length=1, description="Product slug"),
    color: str = Query(..., description="Variant color"),
    size: str = Query(..., description="Variant size")
):
    """SKU that will be used if the SKU field is left blank."""
    return {"sku": generate_sku(slug, color, size)}


@router.post("/products/{product_id}/variants/changes", response_model=VariantChanges)
async def preview_variant_changes(product_id: str, data: VariantDraftRequest):
    """
    Show what saving a draft would create, update and delete.

    Raises:
        422: Duplicate variants or SKUs, unknown variant ids
    """
    try:
        return get_product_form_service().preview_changes(product_id, data.variants)

    except Exception as e:
        return handle_error(e)


@router.put("/products/{product_id}/variants", response_model=VariantSyncResponse)
async def sync_variants(product_id: str, data: VariantDraftRequest):
    """
    Apply a draft to a product's variants.

    Raises:
        404: Product not found
        422: Duplicate variants or SKUs, unknown variant ids
        500: A batch failed (re-fetch variants before retrying)
    """
    try:
        service = get_product_form_service()
        result, warnings = await service.sync_draft(product_id, data.variants, data.slug)

        return VariantSyncResponse(
            created=result.created,
            updated=result.updated,
            deleted=result.deleted,
            warnings=warnings
        )

    except Exception as e:
        return handle_error(e)


@router.delete("/variants/{variant_id}", status_code=204)
async def delete_variant(variant_id: str):
    """
    Delete one variant.

    Raises:
        404: Variant not found
    """
    try:
        get_variant_service().delete(variant_id)
        return None

    except Exception as e:
        return handle_error(e)
