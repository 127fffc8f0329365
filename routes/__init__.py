"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.products import router as products_router
from routes.categories import router as categories_router
from routes.variants import router as variants_router
from routes.images import router as images_router

__all__ = [
    "products_router",
    "categories_router",
    "variants_router",
    "images_router",
]
