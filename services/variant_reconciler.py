"""
Variant reconciliation: core business logic.

Pure functions over the product form's variant draft:

    validation       detect/list duplicate (color, size) pairs and SKUs,
                     stock warning
    SKU generation   slug-color-size, upper-cased
    flatten          color groups → one record per (color, size)
    change detection persisted variants vs draft → create/update/delete
    sync plan        change-set → rows ready for the backend

Nothing here performs I/O. Applying a plan is VariantService.sync_variants.
"""

from typing import Any, Iterator, Optional, Sequence
import structlog

from models.variant import (
    FlatVariant,
    VariantChanges,
    VariantGroupDraft,
    VariantPair,
    VariantResponse,
    VariantSizeDraft,
    VariantSyncPlan,
    VariantValidationReport,
    VariantWrite,
)
from exceptions import (
    DuplicateVariantError,
    DuplicateVariantSKUError,
    MissingVariantSizeError,
    RepeatedVariantIdError,
    UnknownVariantIdError,
)
from utils.text_utils import slugify

logger = structlog.get_logger(__name__)

# Fields compared when deciding whether a persisted variant was edited
COMPARED_FIELDS = ("color", "size", "stock", "sku", "color_code")

NO_STOCK_WARNING = "All variants have 0 stock. Product won't be purchasable."


def normalize(value: Any) -> Any:
    """Treat None and empty string as the same value."""
    return "" if value is None else value


def _iter_entries(
    draft: Sequence[VariantGroupDraft],
) -> Iterator[tuple[VariantGroupDraft, VariantSizeDraft]]:
    for group in draft:
        for entry in group.sizes:
            yield group, entry


# ===================
# VALIDATION
# ===================

def detect_duplicate_variants(draft: Sequence[VariantGroupDraft]) -> bool:
    """
    Check whether two entries share a color and size.

    Color is compared to color and size to size, both case-insensitively.
    """
    seen: set[tuple[str, str]] = set()
    for group, entry in _iter_entries(draft):
        key = (group.color.lower(), entry.size.lower())
        if key in seen:
            return True
        seen.add(key)
    return False


def list_duplicate_variants(draft: Sequence[VariantGroupDraft]) -> list[VariantPair]:
    """
    List colliding (color, size) pairs for error messages.

    A pair is reported once for every occurrence after the first, using
    the casing of that occurrence, in encounter order.
    """
    seen: set[tuple[str, str]] = set()
    duplicates: list[VariantPair] = []
    for group, entry in _iter_entries(draft):
        key = (group.color.lower(), entry.size.lower())
        if key in seen:
            duplicates.append(VariantPair(color=group.color, size=entry.size))
        else:
            seen.add(key)
    return duplicates


def has_unique_skus(draft: Sequence[VariantGroupDraft]) -> bool:
    """
    Check that non-blank SKUs are unique (case-insensitive).

    Blank SKUs are exempt; they get generated later.
    """
    seen: set[str] = set()
    for _, entry in _iter_entries(draft):
        if not entry.sku:
            continue
        key = entry.sku.upper()
        if key in seen:
            return False
        seen.add(key)
    return True


def list_duplicate_skus(draft: Sequence[VariantGroupDraft]) -> list[str]:
    """
    List SKUs used more than once, upper-cased, in first-seen order.

    Each duplicated SKU appears once regardless of how often it repeats.
    """
    counts: dict[str, int] = {}
    for _, entry in _iter_entries(draft):
        if entry.sku:
            key = entry.sku.upper()
            counts[key] = counts.get(key, 0) + 1
    return [sku for sku, count in counts.items() if count > 1]


def list_missing_sizes(draft: Sequence[VariantGroupDraft]) -> list[str]:
    """Colors that have a size entry with a blank size label, in draft order."""
    colors: list[str] = []
    for group, entry in _iter_entries(draft):
        if not entry.size and group.color not in colors:
            colors.append(group.color)
    return colors


def has_stock_available(draft: Sequence[VariantGroupDraft]) -> bool:
    """True if at least one size entry has stock."""
    return any(entry.stock > 0 for _, entry in _iter_entries(draft))


def validate_draft(draft: Sequence[VariantGroupDraft]) -> VariantValidationReport:
    """
    Run every draft check and collect the results.

    Never raises; use ensure_valid_draft to block on errors.
    """
    has_stock = has_stock_available(draft)
    return VariantValidationReport(
        missing_sizes=list_missing_sizes(draft),
        duplicate_variants=list_duplicate_variants(draft),
        duplicate_skus=list_duplicate_skus(draft),
        has_stock=has_stock,
        warnings=[] if has_stock else [NO_STOCK_WARNING],
    )


def ensure_valid_draft(draft: Sequence[VariantGroupDraft]) -> list[str]:
    """
    Validate a draft before anything is written.

    Returns:
        Non-blocking warnings (e.g. no stock anywhere)

    Raises:
        MissingVariantSizeError: An entry has no size
        DuplicateVariantError: Two entries share color and size
        DuplicateVariantSKUError: Two entries share a SKU
    """
    missing = list_missing_sizes(draft)
    if missing:
        logger.warning("variant_sizes_missing", colors=missing)
        raise MissingVariantSizeError(missing)

    if detect_duplicate_variants(draft):
        duplicates = list_duplicate_variants(draft)
        logger.warning("duplicate_variants_detected", count=len(duplicates))
        raise DuplicateVariantError([d.model_dump() for d in duplicates])

    if not has_unique_skus(draft):
        skus = list_duplicate_skus(draft)
        logger.warning("duplicate_skus_detected", skus=skus)
        raise DuplicateVariantSKUError(skus)

    if not has_stock_available(draft):
        logger.info("draft_has_no_stock", groups=len(draft))
        return [NO_STOCK_WARNING]

    return []


# ===================
# SKU GENERATION
# ===================

def generate_sku(product_slug: str, color: Optional[str], size: Optional[str]) -> str:
    """
    Derive a default SKU for a variant.

    Example: ("classic-tee", "Deep Blue", "XL") → "CLASSIC-TEE-DEEP-BLUE-XL"
    """
    return f"{product_slug}-{slugify(color)}-{slugify(size)}".upper()


# ===================
# FLATTEN
# ===================

def flatten_variants(draft: Sequence[VariantGroupDraft]) -> list[FlatVariant]:
    """
    Turn color groups into one record per (color, size).

    Order is group order, then size order within the group. A size entry
    keeps its own id; if the first entry of a group has none it inherits
    the group id.
    """
    flattened: list[FlatVariant] = []
    for group in draft:
        for index, entry in enumerate(group.sizes):
            variant_id = entry.id
            if variant_id is None and index == 0:
                variant_id = group.id
            flattened.append(FlatVariant(
                id=variant_id,
                color=group.color,
                color_code=group.color_code,
                size=entry.size,
                stock=entry.stock,
                sku=entry.sku,
            ))
    return flattened


# ===================
# CHANGE DETECTION
# ===================

def variant_changed(original: VariantResponse, updated: FlatVariant) -> bool:
    """Compare the editable fields, treating None and "" as equal."""
    return any(
        normalize(getattr(original, field)) != normalize(getattr(updated, field))
        for field in COMPARED_FIELDS
    )


def detect_variant_changes(
    original_variants: Sequence[VariantResponse],
    updated_variants: Sequence[VariantGroupDraft],
) -> VariantChanges:
    """
    Compute the change-set between persisted variants and a draft.

    Every original id ends up in exactly one of unchanged, to_update or
    to_delete; every draft record without an id ends up in to_create.

    Args:
        original_variants: Variants currently stored for the product
        updated_variants: Draft from the product form

    Returns:
        VariantChanges

    Raises:
        UnknownVariantIdError: Draft id that matches no original
        RepeatedVariantIdError: Same id on more than one draft record
    """
    flattened = flatten_variants(updated_variants)
    originals = {v.id: v for v in original_variants}

    to_create = [v for v in flattened if not v.id]
    with_id = [v for v in flattened if v.id]

    unknown = [v.id for v in with_id if v.id not in originals]
    if unknown:
        logger.warning("unknown_variant_ids_in_draft", variant_ids=unknown)
        raise UnknownVariantIdError(unknown)

    seen: set[str] = set()
    repeated: list[str] = []
    for v in with_id:
        if v.id in seen and v.id not in repeated:
            repeated.append(v.id)
        seen.add(v.id)
    if repeated:
        logger.warning("repeated_variant_ids_in_draft", variant_ids=repeated)
        raise RepeatedVariantIdError(repeated)

    to_update: list[FlatVariant] = []
    unchanged: list[str] = []
    for v in with_id:
        if variant_changed(originals[v.id], v):
            to_update.append(v)
        else:
            unchanged.append(v.id)

    to_delete = [v.id for v in original_variants if v.id not in seen]

    changes = VariantChanges(
        to_create=to_create,
        to_update=to_update,
        to_delete=to_delete,
        unchanged=unchanged,
    )

    logger.debug(
        "variant_changes_detected",
        to_create=len(to_create),
        to_update=len(to_update),
        to_delete=len(to_delete),
        unchanged=len(unchanged)
    )

    return changes


# ===================
# SYNC PLAN
# ===================

def _to_write(variant: FlatVariant, product_id: str, product_slug: str) -> VariantWrite:
    return VariantWrite(
        id=variant.id,
        product_id=product_id,
        color=variant.color,
        color_code=variant.color_code or None,
        size=variant.size,
        stock=variant.stock,
        sku=variant.sku or generate_sku(product_slug, variant.color, variant.size),
        is_available=True,
    )


def build_sync_plan(
    changes: VariantChanges,
    product_id: str,
    product_slug: str,
) -> VariantSyncPlan:
    """
    Convert a change-set into backend rows.

    Blank SKUs are filled with generate_sku so stored variants always
    have one.
    """
    return VariantSyncPlan(
        to_create=[_to_write(v, product_id, product_slug) for v in changes.to_create],
        to_update=[_to_write(v, product_id, product_slug) for v in changes.to_update],
        to_delete=list(changes.to_delete),
    )
