"""
Category service (read-only; categories are managed in the database).
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.category import CategoryResponse
from exceptions import CategoryNotFoundError, DatabaseError

logger = structlog.get_logger(__name__)


class CategoryService:
    """Category lookups for the product form and catalog filters."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "categories"

    def get_all(self) -> list[CategoryResponse]:
        """Get all categories ordered by name."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .order("name")
                .execute()
            )
            return [CategoryResponse(**row) for row in result.data]

        except Exception as e:
            logger.error("get_categories_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_by_id(self, category_id: str) -> CategoryResponse:
        """
        Get one category.

        Raises:
            CategoryNotFoundError: If category doesn't exist
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", category_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_category_failed", category_id=category_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise CategoryNotFoundError(category_id)
        return CategoryResponse(**result.data[0])


# Singleton instance for convenience
_category_service: Optional[CategoryService] = None

def get_category_service() -> CategoryService:
    """Get or create CategoryService instance."""
    global _category_service
    if _category_service is None:
        _category_service = CategoryService()
    return _category_service
