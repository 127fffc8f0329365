"""
Category schemas.
"""

from pydantic import Field
from typing import Optional

from models.base import BaseSchema, TimestampMixin


class CategoryResponse(BaseSchema, TimestampMixin):
    """Category as stored in the categories table."""

    id: str = Field(..., description="Category UUID")
    name: str = Field(..., description="Display name")
    slug: str = Field(..., description="URL-friendly identifier")
    description: Optional[str] = None
