"""
Product schemas for validation and serialization.
"""

from pydantic import Field, field_validator
from typing import Optional
from enum import Enum

from models.base import BaseSchema, TimestampMixin
from models.category import CategoryResponse
from models.variant import VariantResponse, VariantGroupDraft, VariantSyncResult
from models.image import ProductImageResponse, ImageUploadSummary
from utils.text_utils import slugify


class ProductType(str, Enum):
    """Top-level catalog sections."""
    CLOTHES = "clothes"
    SHOES = "shoes"
    ACCESSORIES = "accessories"


class ProductCreate(BaseSchema):
    """
    Create a new product.

    Required: name, slug, price, product_type
    """

    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Product name",
        examples=["Classic White T-Shirt"]
    )
    slug: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="URL-friendly identifier (unique)",
        examples=["classic-white-tshirt"]
    )
    description: Optional[str] = None
    price: float = Field(..., ge=0, description="Price in store currency")
    compare_at_price: Optional[float] = Field(None, ge=0)
    category_id: Optional[str] = None
    product_type: ProductType = ProductType.CLOTHES
    brand: Optional[str] = None
    material: Optional[str] = None
    is_featured: bool = False
    is_active: bool = True

    @field_validator("slug")
    @classmethod
    def slug_normalized(cls, v: str) -> str:
        """Slug is always stored in slug form."""
        return slugify(v)

    def to_row(self) -> dict:
        """Column values for insert. Blank optional text is stored as NULL."""
        row = self.model_dump(exclude={"variants"})
        row["product_type"] = self.product_type.value
        for key in ("description", "brand", "material", "category_id"):
            if not row.get(key):
                row[key] = None
        return row


class ProductUpdate(BaseSchema):
    """
    Update existing product.

    All fields optional - only provided fields are updated.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    slug: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    compare_at_price: Optional[float] = Field(None, ge=0)
    category_id: Optional[str] = None
    product_type: Optional[ProductType] = None
    brand: Optional[str] = None
    material: Optional[str] = None
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("slug")
    @classmethod
    def slug_normalized(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return slugify(v)


class ProductResponse(BaseSchema, TimestampMixin):
    """
    Product response with all fields.

    Used for GET responses.
    """

    id: str = Field(..., description="Product UUID")
    name: str
    slug: str
    description: Optional[str] = None
    price: float
    compare_at_price: Optional[float] = None
    category_id: Optional[str] = None
    product_type: ProductType
    brand: Optional[str] = None
    material: Optional[str] = None
    is_featured: bool = False
    is_active: bool = True


class ProductWithDetails(ProductResponse):
    """Product joined with its category, variants and images."""

    categories: Optional[CategoryResponse] = None
    product_variants: list[VariantResponse] = Field(default_factory=list)
    product_images: list[ProductImageResponse] = Field(default_factory=list)

    @property
    def total_stock(self) -> int:
        return sum(v.stock for v in self.product_variants)


class ProductListResponse(BaseSchema):
    """List of products with pagination."""

    data: list[ProductWithDetails]
    total: int
    page: int
    page_size: int
    total_pages: int


# ===================
# FORM SUBMISSION
# ===================

class ProductFormValues(ProductCreate):
    """
    Everything the admin product form submits.

    Product fields plus the variant draft grouped by color.
    """

    variants: list[VariantGroupDraft] = Field(..., min_length=1)


class ProductFormState(BaseSchema):
    """What the edit form opens with: the product and its seeded draft."""

    product: Optional[ProductWithDetails] = None
    variants: list[VariantGroupDraft] = Field(default_factory=list)


class ProductSubmitResult(BaseSchema):
    """Outcome of a product form submission."""

    product: ProductResponse
    variants: VariantSyncResult
    images: ImageUploadSummary = Field(default_factory=ImageUploadSummary)
    warnings: list[str] = Field(default_factory=list)

    def summary(self) -> dict:
        return {
            "product_id": self.product.id,
            "created": len(self.variants.created),
            "updated": len(self.variants.updated),
            "deleted": len(self.variants.deleted),
            "images": self.images.to_counts(),
            "warnings": self.warnings,
        }
