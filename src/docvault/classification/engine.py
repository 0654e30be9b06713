"""Name-based classification of vault documents.

Categories come from keyword heuristics over the lowercased file name and
type hints from a fixed extension table. Both are pure lookups so they can be
re-evaluated whenever a document's name changes.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import Optional

from docvault.state.models import Category, TypeHint

# Ordered: the first rule with a matching keyword wins.
_CATEGORY_RULES: tuple[tuple[tuple[str, ...], Category], ...] = (
    (("passport", "id", "identity"), Category.PASSPORTS),
    (("cv", "resume", "certificate"), Category.CV),
    (("tax", "receipt", "invoice"), Category.TAX),
    (("license", "driving"), Category.LICENSE),
)

_TYPE_HINTS: dict[str, TypeHint] = {
    "pdf": TypeHint.PDF,
    **{
        ext: TypeHint.IMAGE
        for ext in ("jpg", "jpeg", "png", "gif", "heic", "heif", "tif", "tiff", "bmp", "webp")
    },
    **{
        ext: TypeHint.OFFICE_DOCUMENT
        for ext in (
            "doc",
            "docx",
            "xls",
            "xlsx",
            "ppt",
            "pptx",
            "odt",
            "ods",
            "odp",
            "pages",
            "numbers",
            "key",
        )
    },
    **{ext: TypeHint.TEXT for ext in ("txt", "md", "rtf", "csv", "json", "xml")},
}


def classify(name: str) -> Category:
    """Return the category for a file name.

    Args:
        name: Display name, extension included.

    Returns:
        Category: First category whose keywords occur in the name, else ``OTHER``.
    """
    lowered = name.lower()
    for keywords, category in _CATEGORY_RULES:
        if any(keyword in lowered for keyword in keywords):
            return category
    return Category.OTHER


def type_hint_for(name: str) -> Optional[TypeHint]:
    """Return the type hint for a file name, or ``None`` without an extension.

    Unknown extensions map to ``TypeHint.GENERIC``.
    """
    extension = PurePath(name).suffix.lower().lstrip(".")
    if not extension:
        return None
    return _TYPE_HINTS.get(extension, TypeHint.GENERIC)
