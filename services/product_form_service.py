"""
Product form workflow.

Ties the variant reconciler to persistence the way the admin product
form submits:

    1. validate the draft (duplicates block, zero stock only warns)
    2. compute the change-set against the persisted variants
    3. create or update the product row
    4. apply the change-set (parallel batches)
    5. upload attached images, one at a time, per color group

Steps 1-2 run before anything is written, so a rejected draft leaves
the backend untouched. Nothing after step 3 is rolled back.
"""

from typing import Optional, Sequence
import asyncio
import tempfile
import structlog

from models.image import ImageUploadSummary, ProductImageResponse
from models.product import (
    ProductCreate,
    ProductFormValues,
    ProductResponse,
    ProductSubmitResult,
    ProductUpdate,
    ProductWithDetails,
)
from models.variant import (
    VariantChanges,
    VariantGroupDraft,
    VariantResponse,
    VariantSizeDraft,
    VariantSyncResult,
    VariantValidationReport,
)
from services.product_service import ProductService
from services.variant_service import VariantService
from services.image_service import ImageService
from services.storage_service import ImageFile
from services.variant_reconciler import (
    build_sync_plan,
    detect_variant_changes,
    ensure_valid_draft,
    validate_draft,
)

logger = structlog.get_logger(__name__)

# Color label for persisted variants that have none
DEFAULT_COLOR = "Default"

# Attachments larger than this spill from memory to disk
SPOOL_MAX_BYTES = 1024 * 1024


def build_variant_groups(
    variants: Sequence[VariantResponse],
    images: Sequence[ProductImageResponse] = ()
) -> list[VariantGroupDraft]:
    """
    Seed the form draft from persisted variants.

    Variants are grouped by exact color in encounter order. Every size
    entry keeps its variant id; the group id is the first variant's id.
    Images linked to any variant of a group become its existing_images.
    """
    groups: list[VariantGroupDraft] = []
    by_color: dict[str, VariantGroupDraft] = {}
    group_variant_ids: dict[str, set[str]] = {}

    for variant in variants:
        color = variant.color or DEFAULT_COLOR
        entry = VariantSizeDraft(
            id=variant.id,
            size=variant.size or "",
            stock=variant.stock or 0,
            sku=variant.sku or "",
        )

        group = by_color.get(color)
        if group is None:
            group = VariantGroupDraft(
                id=variant.id,
                color=color,
                color_code=variant.color_code or "",
                sizes=[entry],
            )
            by_color[color] = group
            group_variant_ids[color] = set()
            groups.append(group)
        else:
            group.sizes.append(entry)
        group_variant_ids[color].add(variant.id)

    for group in groups:
        ids = group_variant_ids[group.color]
        group.existing_images = [img.image_url for img in images if img.variant_id in ids]

    return groups


class ImageAttachment:
    """
    An image file attached in the form but not uploaded yet.

    Holds the bytes in a spooled temporary file until the session
    submits, the attachment is removed, or the session closes.
    """

    def __init__(self, filename: str, content_type: str, data: bytes):
        self.filename = filename
        self.content_type = content_type
        self.size = len(data)
        self._file = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_BYTES)
        self._file.write(data)

    @property
    def closed(self) -> bool:
        return self._file.closed

    def read(self) -> bytes:
        self._file.seek(0)
        return self._file.read()

    def to_image_file(self) -> ImageFile:
        return ImageFile(
            filename=self.filename,
            content_type=self.content_type,
            data=self.read(),
        )

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()


class ProductFormSession:
    """
    State of one open product form.

    Owns the persisted variants seen at open, the seeded draft, and the
    image attachments keyed by color-group index. Attachments are released
    when removed, when their group is removed, and when the session closes
    (submit always closes it).

    Usage:
        with service.open_session(product_id) as session:
            session.attach_image(0, "front.jpg", "image/jpeg", data)
            result = await session.submit(values)
    """

    def __init__(
        self,
        service: "ProductFormService",
        product: Optional[ProductWithDetails] = None
    ):
        self.service = service
        self.product = product
        self.original_variants: list[VariantResponse] = (
            list(product.product_variants) if product else []
        )
        self.variants = build_variant_groups(
            self.original_variants,
            product.product_images if product else ()
        )
        self._attachments: dict[int, list[ImageAttachment]] = {}
        self._closed = False

    @property
    def is_editing(self) -> bool:
        return self.product is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("form session is closed")

    # ===================
    # ATTACHMENTS
    # ===================

    def attach_image(
        self,
        group_index: int,
        filename: str,
        content_type: str,
        data: bytes
    ) -> ImageAttachment:
        """
        Attach an image to a color group.

        Raises:
            InvalidImageError: Unsupported type, empty or too large
        """
        self._ensure_open()
        self.service.images.storage.validate_image(filename, content_type, len(data))

        attachment = ImageAttachment(filename, content_type, data)
        self._attachments.setdefault(group_index, []).append(attachment)

        logger.debug(
            "image_attached",
            group_index=group_index,
            filename=filename,
            size=attachment.size
        )
        return attachment

    def attachments(self, group_index: int) -> list[ImageAttachment]:
        return list(self._attachments.get(group_index, []))

    def remove_image(self, group_index: int, image_index: int) -> None:
        """Detach one image and release it."""
        attachments = self._attachments.get(group_index, [])
        attachments.pop(image_index).close()
        if not attachments:
            self._attachments.pop(group_index, None)

    def remove_group(self, group_index: int) -> None:
        """
        Release a color group's attachments.

        Later groups shift down by one, matching the form's array.
        """
        for attachment in self._attachments.pop(group_index, []):
            attachment.close()

        self._attachments = {
            (index - 1 if index > group_index else index): items
            for index, items in self._attachments.items()
        }
        if group_index < len(self.variants):
            del self.variants[group_index]

    def release(self) -> None:
        """Close every attachment."""
        count = 0
        for attachments in self._attachments.values():
            for attachment in attachments:
                attachment.close()
                count += 1
        self._attachments.clear()
        if count:
            logger.debug("attachments_released", count=count)

    def close(self) -> None:
        self.release()
        self._closed = True

    def __enter__(self) -> "ProductFormSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # ===================
    # SUBMIT
    # ===================

    async def submit(self, values: ProductFormValues) -> ProductSubmitResult:
        """Submit the form and close the session."""
        self._ensure_open()
        try:
            images = {
                index: [a.to_image_file() for a in attachments]
                for index, attachments in self._attachments.items()
            }
            return await self.service.submit(values, product=self.product, images=images)
        finally:
            self.close()


class ProductFormService:
    """
    Orchestrates product form submissions.

    Services are injectable for tests; by default each is created here.
    """

    def __init__(
        self,
        product_service: Optional[ProductService] = None,
        variant_service: Optional[VariantService] = None,
        image_service: Optional[ImageService] = None
    ):
        self.products = product_service or ProductService()
        self.variants = variant_service or VariantService()
        self.images = image_service or ImageService()

    def open_session(self, product_id: Optional[str] = None) -> ProductFormSession:
        """
        Open a form for a new product, or for editing an existing one.

        Raises:
            ProductNotFoundError: If product_id doesn't exist
        """
        product = self.products.get_by_id(product_id) if product_id else None
        logger.info("form_session_opened", product_id=product_id)
        return ProductFormSession(self, product)

    # ===================
    # DRAFT OPERATIONS
    # ===================

    def validate(self, draft: Sequence[VariantGroupDraft]) -> VariantValidationReport:
        """Report every problem in a draft without writing anything."""
        return validate_draft(draft)

    def preview_changes(
        self,
        product_id: str,
        draft: Sequence[VariantGroupDraft]
    ) -> VariantChanges:
        """
        Compute what syncing a draft would do.

        Raises:
            DuplicateVariantError, DuplicateVariantSKUError,
            UnknownVariantIdError, RepeatedVariantIdError
        """
        original = self.variants.get_by_product(product_id)
        ensure_valid_draft(draft)
        return detect_variant_changes(original, draft)

    async def sync_draft(
        self,
        product_id: str,
        draft: Sequence[VariantGroupDraft],
        slug: Optional[str] = None
    ) -> tuple[VariantSyncResult, list[str]]:
        """
        Validate a draft and apply it to a product's variants.

        Returns:
            Tuple of (sync result, warnings)

        Raises:
            ProductNotFoundError: If product doesn't exist
            VariantSyncError: If any batch failed
        """
        product = self.products.get_by_id(product_id)
        warnings = ensure_valid_draft(draft)
        changes = detect_variant_changes(product.product_variants, draft)

        plan = build_sync_plan(changes, product.id, slug or product.slug)
        result = await self.variants.sync_variants(product.id, plan)
        return result, warnings

    # ===================
    # SUBMIT
    # ===================

    async def submit(
        self,
        values: ProductFormValues,
        product: Optional[ProductWithDetails] = None,
        images: Optional[dict[int, list[ImageFile]]] = None
    ) -> ProductSubmitResult:
        """
        Save a product form.

        Args:
            values: Product fields and variant draft
            product: Product being edited (None to create one)
            images: Files to upload, keyed by color-group index

        Returns:
            ProductSubmitResult

        Raises:
            MissingVariantSizeError: Before any write
            DuplicateVariantError: Before any write
            DuplicateVariantSKUError: Before any write
            UnknownVariantIdError: Before any write
            ProductSlugExistsError: Before any variant write
            VariantSyncError: After the product row was saved
        """
        logger.info(
            "submitting_product_form",
            product_id=product.id if product else None,
            slug=values.slug,
            groups=len(values.variants)
        )

        warnings = ensure_valid_draft(values.variants)
        original = product.product_variants if product else []
        changes = detect_variant_changes(original, values.variants)

        fields = values.model_dump(exclude={"variants"})
        if product:
            saved = self.products.update(product.id, ProductUpdate(**fields))
        else:
            saved = self.products.create(ProductCreate(**fields))

        plan = build_sync_plan(changes, saved.id, saved.slug)
        synced = await self.variants.sync_variants(saved.id, plan)

        uploads = await self._upload_images(saved, values, synced, images or {})
        if uploads.failed:
            warnings.append(f"{uploads.failed} image(s) failed to upload")
        if uploads.skipped_groups:
            warnings.append(
                "No variant found for images of: " + ", ".join(uploads.skipped_groups)
            )

        result = ProductSubmitResult(
            product=saved,
            variants=synced,
            images=uploads,
            warnings=warnings,
        )

        logger.info("product_form_submitted", **result.summary())
        return result

    def _resolve_variant_id(
        self,
        group: VariantGroupDraft,
        synced: VariantSyncResult
    ) -> Optional[str]:
        """Variant an image group attaches to: its own, or the one just created."""
        first = group.sizes[0] if group.sizes else None
        existing = (first.id if first else None) or group.id
        if existing and existing not in synced.deleted:
            return existing
        if first is None:
            return None
        for variant in synced.created:
            if variant.color == group.color and variant.size == first.size:
                return variant.id
        return None

    async def _upload_images(
        self,
        product: ProductResponse,
        values: ProductFormValues,
        synced: VariantSyncResult,
        images: dict[int, list[ImageFile]]
    ) -> ImageUploadSummary:
        summary = ImageUploadSummary()

        for group_index, group in enumerate(values.variants):
            files = images.get(group_index) or []
            if not files:
                continue

            variant_id = self._resolve_variant_id(group, synced)
            if not variant_id:
                logger.warning(
                    "image_variant_not_found",
                    product_id=product.id,
                    color=group.color,
                    files=len(files)
                )
                summary.skipped_groups.append(group.color)
                continue

            group_summary = await asyncio.to_thread(
                self.images.upload_images,
                product.id,
                variant_id,
                group.color,
                files,
                f"{product.slug}-{group.color}",
                f"{values.name} - {group.color}",
                group_index == 0,
            )
            summary.merge(group_summary)

        for group_index in sorted(images):
            if 0 <= group_index < len(values.variants) or not images[group_index]:
                continue
            logger.warning(
                "image_group_out_of_range",
                product_id=product.id,
                group_index=group_index,
                files=len(images[group_index])
            )
            summary.skipped_groups.append(f"group {group_index}")

        return summary


# Singleton instance for convenience
_product_form_service: Optional[ProductFormService] = None

def get_product_form_service() -> ProductFormService:
    """Get or create ProductFormService instance."""
    global _product_form_service
    if _product_form_service is None:
        _product_form_service = ProductFormService()
    return _product_form_service
