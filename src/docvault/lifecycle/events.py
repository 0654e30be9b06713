"""Catalog change notifications."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Optional

from docvault.state import CollectionName, Document

EventKind = Literal["added", "updated", "removed", "reloaded"]


@dataclass(slots=True, frozen=True)
class CatalogEvent:
    """A successful catalog mutation.

    Attributes:
        kind: What happened to the document.
        collection: Collection the change applies to; ``None`` for reloads.
        document: Copy of the affected document; ``None`` for reloads.
    """

    kind: EventKind
    collection: Optional[CollectionName] = None
    document: Optional[Document] = None


CatalogObserver = Callable[[CatalogEvent], None]

__all__ = ["CatalogEvent", "CatalogObserver", "EventKind"]
