"""
Category API routes.
"""

from fastapi import APIRouter
import structlog

from models.category import CategoryResponse
from services.category_service import get_category_service
from routes.errors import handle_error

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("", response_model=list[CategoryResponse])
async def list_categories():
    """List all categories ordered by name."""
    try:
        return get_category_service().get_all()

    except Exception as e:
        return handle_error(e)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: str):
    """
    Get one category.

    Raises:
        404: Category not found
    """
    try:
        return get_category_service().get_by_id(category_id)

    except Exception as e:
        return handle_error(e)
