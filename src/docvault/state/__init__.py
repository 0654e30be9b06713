"""In-memory catalog of vault documents."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Literal

from .errors import CatalogError, DocumentNotFoundError, InvalidNameError
from .models import Category, Document, TypeHint, new_document_id

CollectionName = Literal["active", "trashed"]


class Catalog:
    """Two disjoint document collections: ``active`` and ``trashed``.

    ``active`` is kept newest first by ``added_at``; ``trashed`` keeps the
    order in which documents were trashed. The catalog holds the live entries;
    callers outside the lifecycle manager only ever see copies.
    """

    def __init__(self) -> None:
        self._active: list[Document] = []
        self._trashed: list[Document] = []

    @property
    def active(self) -> list[Document]:
        """Return the active documents in display order."""
        return list(self._active)

    @property
    def trashed(self) -> list[Document]:
        """Return the trashed documents in trash order."""
        return list(self._trashed)

    def find(self, document_id: str, collection: CollectionName = "active") -> Document:
        """Return the live entry for ``document_id`` in ``collection``.

        Raises:
            DocumentNotFoundError: If the id is not in that collection.
        """
        for document in self._collection(collection):
            if document.id == document_id:
                return document
        raise DocumentNotFoundError(document_id, collection)

    def contains(self, document_id: str) -> bool:
        """Return whether ``document_id`` is in either collection."""
        return any(document.id == document_id for document in self._active + self._trashed)

    def insert_active(self, document: Document) -> None:
        """Insert a newly created document at the head of ``active``."""
        self._ensure_unique(document.id)
        self._active.insert(0, document)

    def restore(self, document: Document) -> None:
        """Return a document to ``active`` and re-establish newest-first order."""
        self._ensure_unique(document.id)
        self._active.append(document)
        self.sort_active()

    def append_trashed(self, document: Document) -> None:
        """Append a document to the end of ``trashed``."""
        self._ensure_unique(document.id)
        self._trashed.append(document)

    def remove(self, document_id: str, collection: CollectionName = "active") -> Document:
        """Detach and return the entry for ``document_id`` from ``collection``."""
        document = self.find(document_id, collection)
        self._collection(collection).remove(document)
        return document

    def replace_active(self, documents: Iterable[Document]) -> None:
        """Replace ``active`` wholesale, sorting newest first."""
        replacement = list(documents)
        trashed_ids = {document.id for document in self._trashed}
        if len({document.id for document in replacement} | trashed_ids) != len(replacement) + len(
            trashed_ids
        ):
            raise CatalogError("Document ids must be unique across the catalog.")
        self._active = replacement
        self.sort_active()

    def sort_active(self) -> None:
        """Order ``active`` by ``added_at`` descending."""
        self._active.sort(key=lambda document: document.added_at, reverse=True)

    def trashed_locations(self) -> set[Path]:
        """Return the backing paths still referenced by trashed documents."""
        return {document.location for document in self._trashed}

    def _collection(self, collection: CollectionName) -> list[Document]:
        return self._active if collection == "active" else self._trashed

    def _ensure_unique(self, document_id: str) -> None:
        if self.contains(document_id):
            raise CatalogError(f"Document id {document_id!r} is already catalogued.")


__all__ = [
    "Catalog",
    "CollectionName",
    "Category",
    "Document",
    "TypeHint",
    "new_document_id",
    "CatalogError",
    "DocumentNotFoundError",
    "InvalidNameError",
]
