"""
Custom exceptions module.

All application errors derive from AppError.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    DuplicateError,
    ExternalServiceError,
    DatabaseError,

    # Product-specific
    ProductNotFoundError,
    ProductSlugExistsError,
    CategoryNotFoundError,

    # Variant-specific
    VariantNotFoundError,
    DuplicateVariantError,
    DuplicateVariantSKUError,
    MissingVariantSizeError,
    UnknownVariantIdError,
    RepeatedVariantIdError,
    VariantSyncError,

    # Image-specific
    ProductImageNotFoundError,
    InvalidImageError,
    StorageUploadError,
)

__all__ = [
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicateError",
    "ExternalServiceError",
    "DatabaseError",
    "ProductNotFoundError",
    "ProductSlugExistsError",
    "CategoryNotFoundError",
    "VariantNotFoundError",
    "DuplicateVariantError",
    "DuplicateVariantSKUError",
    "MissingVariantSizeError",
    "UnknownVariantIdError",
    "RepeatedVariantIdError",
    "VariantSyncError",
    "ProductImageNotFoundError",
    "InvalidImageError",
    "StorageUploadError",
]
