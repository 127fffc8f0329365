"""
Custom exception classes for the application.

Every error carries a stable code, an HTTP status and a details dict so
routes can return the same JSON shape for all failures.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "PRODUCT_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class DuplicateError(ConflictError):
    """Duplicate resource (409)."""

    def __init__(
        self,
        resource: str,
        field: str,
        value: str
    ):
        super().__init__(
            code=f"{resource.upper()}_{field.upper()}_EXISTS",
            message=f"{resource} with this {field} already exists",
            details={field: value}
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# PRODUCT ERRORS
# ===================

class ProductNotFoundError(NotFoundError):
    """Product not found."""

    def __init__(self, product_id: str):
        super().__init__(
            resource="Product",
            identifier=product_id,
            code="PRODUCT_NOT_FOUND"
        )


class ProductSlugExistsError(DuplicateError):
    """Product slug already exists."""

    def __init__(self, slug: str):
        super().__init__(
            resource="Product",
            field="slug",
            value=slug
        )


class CategoryNotFoundError(NotFoundError):
    """Category not found."""

    def __init__(self, category_id: str):
        super().__init__(
            resource="Category",
            identifier=category_id,
            code="CATEGORY_NOT_FOUND"
        )


# ===================
# VARIANT ERRORS
# ===================

class VariantNotFoundError(NotFoundError):
    """Product variant not found."""

    def __init__(self, variant_id: str):
        super().__init__(
            resource="Variant",
            identifier=variant_id,
            code="VARIANT_NOT_FOUND"
        )


class DuplicateVariantError(ValidationError):
    """Two draft entries share the same color and size."""

    def __init__(self, duplicates: list[dict]):
        combos = ", ".join(f"{d['color']} - {d['size']}" for d in duplicates)
        super().__init__(
            code="DUPLICATE_VARIANTS",
            message=f"Found duplicate combinations: {combos}",
            details={"duplicates": duplicates}
        )


class DuplicateVariantSKUError(ValidationError):
    """Two draft entries share the same SKU."""

    def __init__(self, skus: list[str]):
        super().__init__(
            code="DUPLICATE_SKUS",
            message=f"SKUs must be unique: {', '.join(skus)}",
            details={"skus": skus}
        )


class MissingVariantSizeError(ValidationError):
    """A draft entry has no size label."""

    def __init__(self, colors: list[str]):
        super().__init__(
            code="MISSING_SIZE",
            message=f"Size is required for: {', '.join(colors)}",
            details={"colors": colors}
        )


class UnknownVariantIdError(ValidationError):
    """Draft entry references a variant id the product does not have."""

    def __init__(self, variant_ids: list[str]):
        super().__init__(
            code="UNKNOWN_VARIANT_ID",
            message="Draft references variants that do not belong to this product",
            details={"variant_ids": variant_ids}
        )


class RepeatedVariantIdError(ValidationError):
    """The same variant id appears on more than one draft entry."""

    def __init__(self, variant_ids: list[str]):
        super().__init__(
            code="REPEATED_VARIANT_ID",
            message="Each existing variant may appear only once in the draft",
            details={"variant_ids": variant_ids}
        )


class VariantSyncError(AppError):
    """
    One or more variant batches failed.

    Raised only after every batch has settled. details carries the
    outcome of each batch plus whatever was applied before the failure,
    since there is no transaction across batches.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="VARIANT_SYNC_FAILED",
            message=f"Variant {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# IMAGE ERRORS
# ===================

class ProductImageNotFoundError(NotFoundError):
    """Product image not found."""

    def __init__(self, image_id: str):
        super().__init__(
            resource="Product image",
            identifier=image_id,
            code="PRODUCT_IMAGE_NOT_FOUND"
        )


class InvalidImageError(ValidationError):
    """Uploaded file is not an acceptable image."""

    def __init__(self, filename: str, reason: str):
        super().__init__(
            code="INVALID_IMAGE",
            message=f"Invalid image {filename}: {reason}",
            details={"filename": filename, "reason": reason}
        )


class StorageUploadError(ExternalServiceError):
    """Object storage rejected an upload."""

    def __init__(self, path: str, message: str):
        super().__init__(
            service="storage",
            message=f"Failed to upload image: {message}",
            details={"path": path}
        )
