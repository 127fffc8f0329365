"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    TimestampMixin,
    PaginationParams,
)
from models.category import CategoryResponse
from models.product import (
    ProductType,
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductWithDetails,
    ProductListResponse,
    ProductFormValues,
    ProductFormState,
    ProductSubmitResult,
)
from models.variant import (
    VariantResponse,
    VariantWrite,
    VariantSizeDraft,
    VariantGroupDraft,
    FlatVariant,
    VariantPair,
    VariantChanges,
    VariantSyncPlan,
    VariantSyncResult,
    VariantValidationReport,
    VariantDraftRequest,
    VariantSyncResponse,
)
from models.image import (
    ProductImageCreate,
    ProductImageResponse,
    ImageUploadOutcome,
    ImageUploadSummary,
)

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",
    "PaginationParams",

    # Category
    "CategoryResponse",

    # Product
    "ProductType",
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "ProductWithDetails",
    "ProductListResponse",
    "ProductFormValues",
    "ProductFormState",
    "ProductSubmitResult",

    # Variant
    "VariantResponse",
    "VariantWrite",
    "VariantSizeDraft",
    "VariantGroupDraft",
    "FlatVariant",
    "VariantPair",
    "VariantChanges",
    "VariantSyncPlan",
    "VariantSyncResult",
    "VariantValidationReport",
    "VariantDraftRequest",
    "VariantSyncResponse",

    # Image
    "ProductImageCreate",
    "ProductImageResponse",
    "ImageUploadOutcome",
    "ImageUploadSummary",
]
