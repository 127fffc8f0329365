"""
Business logic services.

Each service handles one domain area.
"""

from services.product_service import ProductService, get_product_service
from services.category_service import CategoryService, get_category_service
from services.variant_service import VariantService, get_variant_service
from services.storage_service import StorageService, ImageFile
from services.image_service import ImageService, get_image_service
from services.product_form_service import (
    ProductFormService,
    ProductFormSession,
    ImageAttachment,
    build_variant_groups,
    get_product_form_service,
)

__all__ = [
    "ProductService",
    "get_product_service",
    "CategoryService",
    "get_category_service",
    "VariantService",
    "get_variant_service",
    "StorageService",
    "ImageFile",
    "ImageService",
    "get_image_service",
    "ProductFormService",
    "ProductFormSession",
    "ImageAttachment",
    "build_variant_groups",
    "get_product_form_service",
]
