"""Catalog data models for vault documents."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class Category(str, Enum):
    """Semantic grouping derived from a document's name."""

    PASSPORTS = "Passports & IDs"
    CV = "CVs & Certificates"
    TAX = "Tax & Receipts"
    LICENSE = "Driver License"
    OTHER = "Other"
    TRASH = "Trash"


class TypeHint(str, Enum):
    """Content type inferred from a file extension."""

    PDF = "pdf"
    IMAGE = "image"
    OFFICE_DOCUMENT = "office-document"
    TEXT = "text"
    GENERIC = "generic"


def new_document_id() -> str:
    """Return a fresh opaque document identifier."""
    return uuid.uuid4().hex


class Document(BaseModel):
    """A catalog entry describing one stored file.

    Attributes:
        id: Opaque identifier, stable across renames.
        display_name: Current file name including extension.
        location: Absolute path of the backing file.
        type_hint: Content type fixed at creation.
        is_protected: Whether the backing file carries the protection attribute.
        added_at: Creation timestamp used for newest-first ordering.
        category: Category derived from ``display_name``.
    """

    id: str = Field(default_factory=new_document_id)
    display_name: str
    location: Path
    type_hint: TypeHint = TypeHint.GENERIC
    is_protected: bool = False
    added_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    category: Category = Category.OTHER


__all__ = ["Category", "TypeHint", "Document", "new_document_id"]
