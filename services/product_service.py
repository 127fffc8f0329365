"""
Product service for business logic operations.

Products are read together with their category, variants and images
in a single embedded select.
"""

from typing import Optional
import structlog

from config import get_supabase_client, get_admin_client
from models.base import PaginationParams
from models.product import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductWithDetails,
    ProductType,
)
from exceptions import (
    ProductNotFoundError,
    ProductSlugExistsError,
    DatabaseError
)

logger = structlog.get_logger(__name__)

DETAILS_SELECT = "*, categories(*), product_variants(*), product_images(*)"

# Matches no real row; PostgREST refuses a DELETE without a filter
NIL_UUID = "00000000-0000-0000-0000-000000000000"


class ProductService:
    """
    Product business logic.

    Handles CRUD operations for products.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "products"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_all(
        self,
        page: int = 1,
        page_size: int = 8,
        product_type: Optional[ProductType] = None,
        active_only: bool = True
    ) -> tuple[list[ProductWithDetails], int]:
        """
        Get products with details, newest first.

        Args:
            page: Page number (1-indexed)
            page_size: Items per page
            product_type: Filter by catalog section
            active_only: Only return active products

        Returns:
            Tuple of (products list, total count)
        """
        logger.info(
            "getting_products",
            page=page,
            page_size=page_size,
            product_type=product_type
        )

        pagination = PaginationParams(page=page, page_size=page_size)

        try:
            query = self.db.table(self.table).select(DETAILS_SELECT, count="exact")

            if active_only:
                query = query.eq("is_active", True)
            if product_type:
                query = query.eq("product_type", product_type.value)

            query = query.order("created_at", desc=True)
            query = query.range(
                pagination.offset,
                pagination.offset + pagination.limit - 1
            )

            result = query.execute()

            products = [ProductWithDetails(**row) for row in result.data]
            total = result.count or 0

            logger.info(
                "products_retrieved",
                count=len(products),
                total=total
            )

            return products, total

        except Exception as e:
            logger.error(
                "get_products_failed",
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    def get_by_id(self, product_id: str) -> ProductWithDetails:
        """
        Get a single product with its category, variants and images.

        Args:
            product_id: Product UUID

        Returns:
            ProductWithDetails

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.debug("getting_product", product_id=product_id)

        try:
            result = (
                self.db.table(self.table)
                .select(DETAILS_SELECT)
                .eq("id", product_id)
                .single()
                .execute()
            )

            if not result.data:
                raise ProductNotFoundError(product_id)

            return ProductWithDetails(**result.data)

        except ProductNotFoundError:
            raise
        except Exception as e:
            logger.error(
                "get_product_failed",
                product_id=product_id,
                error=str(e)
            )
            # Check if it's a "not found" from Supabase
            if "0 rows" in str(e) or "no rows" in str(e).lower():
                raise ProductNotFoundError(product_id)
            raise DatabaseError("select", str(e))

    def get_by_slug(self, slug: str) -> Optional[ProductWithDetails]:
        """
        Get a product by slug.

        Args:
            slug: Product slug

        Returns:
            ProductWithDetails or None if not found
        """
        logger.debug("getting_product_by_slug", slug=slug)

        try:
            result = (
                self.db.table(self.table)
                .select(DETAILS_SELECT)
                .eq("slug", slug)
                .execute()
            )

            if not result.data:
                return None

            return ProductWithDetails(**result.data[0])

        except Exception as e:
            logger.error(
                "get_product_by_slug_failed",
                slug=slug,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: ProductCreate) -> ProductResponse:
        """
        Create a new product (without variants).

        Args:
            data: Product creation data

        Returns:
            Created ProductResponse

        Raises:
            ProductSlugExistsError: If slug already exists
        """
        logger.info("creating_product", slug=data.slug)

        if self.get_by_slug(data.slug):
            raise ProductSlugExistsError(data.slug)

        try:
            result = (
                self.db.table(self.table)
                .insert(data.to_row())
                .execute()
            )

            product = ProductResponse(**result.data[0])

            logger.info(
                "product_created",
                product_id=product.id,
                slug=product.slug
            )

            return product

        except Exception as e:
            logger.error(
                "create_product_failed",
                slug=data.slug,
                error=str(e)
            )
            raise DatabaseError("insert", str(e))

    def update(self, product_id: str, data: ProductUpdate) -> ProductResponse:
        """
        Update an existing product.

        Args:
            product_id: Product UUID
            data: Fields to update

        Returns:
            Updated ProductResponse

        Raises:
            ProductNotFoundError: If product doesn't exist
            ProductSlugExistsError: If new slug already exists
        """
        logger.info("updating_product", product_id=product_id)

        existing = self.get_by_id(product_id)

        if data.slug and data.slug != existing.slug:
            if self.get_by_slug(data.slug):
                raise ProductSlugExistsError(data.slug)

        update_data = data.model_dump(exclude_unset=True)
        if data.product_type is not None:
            update_data["product_type"] = data.product_type.value

        if not update_data:
            # Nothing to update, return existing
            return ProductResponse(**existing.model_dump())

        try:
            result = (
                self.db.table(self.table)
                .update(update_data)
                .eq("id", product_id)
                .execute()
            )

            product = ProductResponse(**result.data[0])

            logger.info(
                "product_updated",
                product_id=product_id,
                fields=list(update_data.keys())
            )

            return product

        except Exception as e:
            logger.error(
                "update_product_failed",
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("update", str(e))

    def delete(self, product_id: str) -> bool:
        """
        Delete a product with its variants and images.

        Variants and images are removed first even though the foreign
        keys cascade.

        Raises:
            ProductNotFoundError: If product doesn't exist
        """
        logger.info("deleting_product", product_id=product_id)

        self.get_by_id(product_id)

        try:
            self.db.table("product_variants").delete().eq("product_id", product_id).execute()
            self.db.table("product_images").delete().eq("product_id", product_id).execute()
            self.db.table(self.table).delete().eq("id", product_id).execute()

            logger.info("product_deleted", product_id=product_id)

            return True

        except Exception as e:
            logger.error(
                "delete_product_failed",
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("delete", str(e))

    # ===================
    # BULK OPERATIONS
    # ===================

    def delete_all(self) -> int:
        """
        Delete every product, variant and image.

        Uses the service-role client when configured.

        Returns:
            Number of products deleted
        """
        logger.warning("deleting_all_products")

        client = get_admin_client() or self.db

        try:
            products = client.table(self.table).select("id").execute()
            if not products.data:
                return 0

            client.table("product_variants").delete().neq("product_id", NIL_UUID).execute()
            client.table("product_images").delete().neq("product_id", NIL_UUID).execute()
            client.table(self.table).delete().neq("id", NIL_UUID).execute()

            deleted = len(products.data)
            logger.warning("all_products_deleted", count=deleted)
            return deleted

        except Exception as e:
            logger.error("delete_all_products_failed", error=str(e))
            raise DatabaseError("delete", str(e))

    # ===================
    # UTILITY METHODS
    # ===================

    def slug_exists(self, slug: str) -> bool:
        """Check if a slug is already taken."""
        return self.get_by_slug(slug) is not None

    def count(self, active_only: bool = True) -> int:
        """Count total products."""
        try:
            query = self.db.table(self.table).select("id", count="exact")
            if active_only:
                query = query.eq("is_active", True)
            result = query.execute()
            return result.count or 0
        except Exception as e:
            logger.error("count_products_failed", error=str(e))
            raise DatabaseError("count", str(e))


# Singleton instance for convenience
_product_service: Optional[ProductService] = None

def get_product_service() -> ProductService:
    """Get or create ProductService instance."""
    global _product_service
    if _product_service is None:
        _product_service = ProductService()
    return _product_service
