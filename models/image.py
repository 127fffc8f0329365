"""
Product image schemas and upload summaries.
"""

from pydantic import Field
from typing import Optional
from datetime import datetime

from models.base import BaseSchema


class ProductImageCreate(BaseSchema):
    """Image metadata written after a successful storage upload."""

    product_id: str
    variant_id: Optional[str] = None
    image_url: str
    alt_text: Optional[str] = None
    is_primary: bool = False
    display_order: int = Field(0, ge=0)


class ProductImageResponse(ProductImageCreate):
    """A row of the product_images table."""

    id: str
    created_at: Optional[datetime] = None


class ImageUploadOutcome(BaseSchema):
    """Result of uploading one file."""

    color: str
    filename: str
    index: int
    image: Optional[ProductImageResponse] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ImageUploadSummary(BaseSchema):
    """Per-file outcomes of a batch of sequential uploads."""

    results: list[ImageUploadOutcome] = Field(default_factory=list)
    skipped_groups: list[str] = Field(
        default_factory=list,
        description="Colors whose variant id could not be resolved, or \"group N\" for an index past the last group"
    )

    @property
    def attempted(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return self.attempted - self.succeeded

    def merge(self, other: "ImageUploadSummary") -> None:
        self.results.extend(other.results)
        self.skipped_groups.extend(other.skipped_groups)

    def to_counts(self) -> dict:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped_groups": self.skipped_groups,
        }
