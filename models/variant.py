"""
Variant schemas: persisted rows, editor drafts and change-sets.

Drafts are grouped by color (one entry per color, many sizes) the way the
admin form edits them. Flattened records use the persisted row shape and
are what change detection compares.
"""

from pydantic import Field
from typing import Optional
from datetime import datetime

from models.base import BaseSchema


# ===================
# PERSISTED
# ===================

class VariantResponse(BaseSchema):
    """A row of the product_variants table."""

    id: str = Field(..., description="Variant UUID")
    product_id: Optional[str] = Field(None, description="Owning product UUID")
    color: Optional[str] = None
    color_code: Optional[str] = Field(None, description="Swatch color, e.g. #1f2a44")
    size: Optional[str] = None
    stock: int = Field(0, ge=0)
    sku: Optional[str] = None
    price_override: Optional[float] = None
    weight: Optional[float] = None
    is_available: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class VariantWrite(BaseSchema):
    """
    Variant row ready to be inserted or updated.

    id is set for updates only.
    """

    id: Optional[str] = None
    product_id: str
    color: str
    color_code: Optional[str] = None
    size: str
    stock: int = Field(0, ge=0)
    sku: str
    is_available: bool = True

    def to_row(self) -> dict:
        """Column values for insert/update (never includes id)."""
        return self.model_dump(exclude={"id"})


# ===================
# DRAFT (EDITOR)
# ===================

class VariantSizeDraft(BaseSchema):
    """One size entry inside a color group."""

    id: Optional[str] = Field(None, description="Persisted variant id, absent for new entries")
    # Blank while seeding from rows saved without a size; rejected on save
    size: str = Field("", description="Size label, e.g. M or 42")
    stock: int = Field(0, ge=0)
    sku: Optional[str] = Field(None, description="Leave blank to generate one")


class VariantGroupDraft(BaseSchema):
    """
    One color group as edited in the product form.

    id is the id of the first persisted variant of the group. Size entries
    carry their own ids; the group id only stands in for the first entry
    when that entry has none.
    """

    id: Optional[str] = None
    color: str = Field(..., min_length=1)
    color_code: Optional[str] = None
    sizes: list[VariantSizeDraft] = Field(default_factory=list)
    existing_images: list[str] = Field(
        default_factory=list,
        description="URLs of images already attached to this color"
    )


class FlatVariant(BaseSchema):
    """One (color, size) record of a flattened draft."""

    id: Optional[str] = None
    color: str
    color_code: Optional[str] = None
    size: str
    stock: int = 0
    sku: Optional[str] = None


class VariantPair(BaseSchema):
    """A (color, size) combination, used when reporting duplicates."""

    color: str
    size: str


# ===================
# CHANGE-SET
# ===================

class VariantChanges(BaseSchema):
    """
    Difference between persisted variants and a draft.

    to_create, to_update and to_delete never share an id.
    """

    to_create: list[FlatVariant] = Field(default_factory=list)
    to_update: list[FlatVariant] = Field(default_factory=list)
    to_delete: list[str] = Field(default_factory=list, description="Ids of variants to delete")
    unchanged: list[str] = Field(default_factory=list, description="Ids kept as-is")

    @property
    def has_changes(self) -> bool:
        return bool(self.to_create or self.to_update or self.to_delete)


class VariantSyncPlan(BaseSchema):
    """Change-set converted to rows, with product_id and SKUs filled in."""

    to_create: list[VariantWrite] = Field(default_factory=list)
    to_update: list[VariantWrite] = Field(default_factory=list)
    to_delete: list[str] = Field(default_factory=list)


class VariantSyncResult(BaseSchema):
    """What the backend reported after applying a sync plan."""

    created: list[VariantResponse] = Field(default_factory=list)
    updated: list[VariantResponse] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)


class VariantValidationReport(BaseSchema):
    """Result of validating a draft without touching the backend."""

    missing_sizes: list[str] = Field(default_factory=list)
    duplicate_variants: list[VariantPair] = Field(default_factory=list)
    duplicate_skus: list[str] = Field(default_factory=list)
    has_stock: bool = True
    warnings: list[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not (self.missing_sizes or self.duplicate_variants or self.duplicate_skus)


class VariantDraftRequest(BaseSchema):
    """Request body carrying a full draft for one product."""

    slug: Optional[str] = Field(
        None,
        description="Product slug used for generated SKUs (defaults to the product's own)"
    )
    variants: list[VariantGroupDraft] = Field(..., min_length=1)


class VariantSyncResponse(BaseSchema):
    """Response for a variant sync request."""

    created: list[VariantResponse]
    updated: list[VariantResponse]
    deleted: list[str]
    warnings: list[str] = Field(default_factory=list)
