"""
Text utilities for slugs and identifiers.

Product slugs, SKU tokens and storage object names all go through
slugify so the same input always yields the same token.
"""

import re
import unicodedata
from typing import Optional

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def strip_accents(text: str) -> str:
    """
    Remove accent marks, keeping the base characters.

    - "Café" → "Cafe"
    - "Azul Océano" → "Azul Oceano"
    """
    # NFD decomposition separates base chars from accents
    normalized = unicodedata.normalize("NFD", text)
    return "".join(c for c in normalized if unicodedata.category(c) != "Mn")


def slugify(text: Optional[str]) -> str:
    """
    Convert text to a URL-safe slug token.

    Lowercases, drops accents, collapses every run of non-alphanumeric
    characters into a single hyphen and trims hyphens from both ends:

    - "Deep Blue" → "deep-blue"
    - "  Off-White / Cream " → "off-white-cream"
    - "Café" → "cafe"

    Args:
        text: Arbitrary text (None is treated as empty)

    Returns:
        Slug, possibly empty
    """
    if not text:
        return ""
    return _NON_ALNUM.sub("-", strip_accents(text).lower()).strip("-")


def file_extension(filename: Optional[str], default: str = "bin") -> str:
    """
    Lowercased extension of a filename, without the dot.

    - "photo.JPG" → "jpg"
    - "archive.tar.gz" → "gz"
    - "noext" → default
    """
    if not filename or "." not in filename:
        return default
    ext = filename.rsplit(".", 1)[-1].lower()
    return _NON_ALNUM.sub("", ext) or default
