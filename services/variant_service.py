"""
Variant service for product_variants persistence.

Wraps the Supabase table with the batch primitives the reconciler's
sync plan needs, and applies a plan with the three batches in parallel.
"""

from typing import Optional
import asyncio
import structlog

from config import get_supabase_client
from models.variant import (
    VariantResponse,
    VariantSyncPlan,
    VariantSyncResult,
    VariantWrite,
)
from exceptions import (
    AppError,
    DatabaseError,
    VariantNotFoundError,
    VariantSyncError,
)

logger = structlog.get_logger(__name__)

# Order in which batch errors are surfaced when more than one fails
SYNC_OPERATIONS = ("create", "update", "delete")


class VariantService:
    """
    Variant persistence.

    Handles reads, batch writes and change-set application for variants.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "product_variants"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_by_product(self, product_id: str) -> list[VariantResponse]:
        """
        Get all variants of a product, oldest first.

        Args:
            product_id: Product UUID

        Returns:
            List of VariantResponse (empty if the product has none)
        """
        logger.debug("getting_variants", product_id=product_id)

        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("product_id", product_id)
                .order("created_at")
                .execute()
            )
            return [VariantResponse(**row) for row in result.data]

        except Exception as e:
            logger.error(
                "get_variants_failed",
                product_id=product_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

    def get_by_id(self, variant_id: str) -> VariantResponse:
        """
        Get a single variant.

        Raises:
            VariantNotFoundError: If variant doesn't exist
        """
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("id", variant_id)
                .execute()
            )
        except Exception as e:
            logger.error("get_variant_failed", variant_id=variant_id, error=str(e))
            raise DatabaseError("select", str(e))

        if not result.data:
            raise VariantNotFoundError(variant_id)
        return VariantResponse(**result.data[0])

    # ===================
    # WRITE OPERATIONS
    # ===================

    def batch_insert(self, variants: list[VariantWrite]) -> list[VariantResponse]:
        """
        Insert many variants in one request.

        Args:
            variants: Rows to insert (ids are assigned by the database)

        Returns:
            Created variants with their new ids
        """
        if not variants:
            return []

        logger.info("inserting_variants", count=len(variants))

        try:
            result = (
                self.db.table(self.table)
                .insert([v.to_row() for v in variants])
                .execute()
            )
            created = [VariantResponse(**row) for row in result.data]

            logger.info("variants_inserted", count=len(created))
            return created

        except Exception as e:
            logger.error(
                "insert_variants_failed",
                count=len(variants),
                error=str(e)
            )
            raise DatabaseError("insert", str(e))

    def create(self, variant: VariantWrite) -> VariantResponse:
        """Insert a single variant."""
        return self.batch_insert([variant])[0]

    def update(self, variant_id: str, fields: dict) -> VariantResponse:
        """
        Partially update one variant.

        Args:
            variant_id: Variant UUID
            fields: Columns to change

        Returns:
            Updated VariantResponse

        Raises:
            VariantNotFoundError: If no row matched
        """
        try:
            result = (
                self.db.table(self.table)
                .update(fields)
                .eq("id", variant_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "update_variant_failed",
                variant_id=variant_id,
                error=str(e)
            )
            raise DatabaseError("update", str(e), {"variant_id": variant_id})

        if not result.data:
            raise VariantNotFoundError(variant_id)

        return VariantResponse(**result.data[0])

    def batch_delete(self, variant_ids: list[str]) -> list[str]:
        """
        Delete variants by id in one request.

        Returns:
            The ids that were requested for deletion
        """
        if not variant_ids:
            return []

        logger.info("deleting_variants", count=len(variant_ids))

        try:
            self.db.table(self.table).delete().in_("id", variant_ids).execute()

            logger.info("variants_deleted", count=len(variant_ids))
            return list(variant_ids)

        except Exception as e:
            logger.error(
                "delete_variants_failed",
                count=len(variant_ids),
                error=str(e)
            )
            raise DatabaseError("delete", str(e))

    def delete(self, variant_id: str) -> bool:
        """
        Delete a single variant.

        Raises:
            VariantNotFoundError: If variant doesn't exist
        """
        self.get_by_id(variant_id)
        self.batch_delete([variant_id])
        return True

    # ===================
    # SYNC
    # ===================

    def _update_batch(
        self,
        variants: list[VariantWrite],
        applied: list[VariantResponse]
    ) -> list[VariantResponse]:
        """Update one row at a time; applied collects rows as they succeed."""
        for variant in variants:
            applied.append(self.update(variant.id, variant.to_row()))
        return applied

    async def sync_variants(
        self,
        product_id: str,
        plan: VariantSyncPlan
    ) -> VariantSyncResult:
        """
        Apply a sync plan: insert, update and delete batches in parallel.

        The batches touch disjoint ids so they run concurrently. All three
        are awaited before any error is reported, so a failed insert never
        hides a failed delete. There is no transaction across batches: on
        error the caller must re-read the product's variants.

        Args:
            product_id: Product the variants belong to
            plan: Rows to create/update and ids to delete

        Returns:
            VariantSyncResult with created rows, updated rows, deleted ids

        Raises:
            VariantSyncError: If any batch failed (first failure in
                create, update, delete order)
        """
        logger.info(
            "syncing_variants",
            product_id=product_id,
            to_create=len(plan.to_create),
            to_update=len(plan.to_update),
            to_delete=len(plan.to_delete)
        )

        updated: list[VariantResponse] = []

        outcomes = await asyncio.gather(
            asyncio.to_thread(self.batch_insert, plan.to_create),
            asyncio.to_thread(self._update_batch, plan.to_update, updated),
            asyncio.to_thread(self.batch_delete, plan.to_delete),
            return_exceptions=True,
        )

        results: dict[str, list] = {}
        failures: dict[str, Exception] = {}
        for operation, outcome in zip(SYNC_OPERATIONS, outcomes):
            if isinstance(outcome, Exception):
                failures[operation] = outcome
                results[operation] = []
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results[operation] = outcome

        result = VariantSyncResult(
            created=results["create"],
            updated=updated,
            deleted=results["delete"],
        )

        if failures:
            for operation, error in failures.items():
                logger.error(
                    "variant_sync_batch_failed",
                    product_id=product_id,
                    operation=operation,
                    error=str(error),
                    error_type=type(error).__name__
                )

            operation, first = next(
                (op, failures[op]) for op in SYNC_OPERATIONS if op in failures
            )
            message = first.message if isinstance(first, AppError) else str(first)
            raise VariantSyncError(
                operation,
                message,
                details={
                    "product_id": product_id,
                    "failed_operations": [op for op in SYNC_OPERATIONS if op in failures],
                    "created": [v.id for v in result.created],
                    "updated": [v.id for v in result.updated],
                    "deleted": result.deleted,
                }
            )

        logger.info(
            "variants_synced",
            product_id=product_id,
            created=len(result.created),
            updated=len(result.updated),
            deleted=len(result.deleted)
        )

        return result


# Singleton instance for convenience
_variant_service: Optional[VariantService] = None

def get_variant_service() -> VariantService:
    """Get or create VariantService instance."""
    global _variant_service
    if _variant_service is None:
        _variant_service = VariantService()
    return _variant_service
