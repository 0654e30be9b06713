"""Catalog errors."""


class CatalogError(Exception):
    """Base exception for catalog operations."""


class DocumentNotFoundError(CatalogError):
    """Raised when an id is not present in the collection an operation targets."""

    def __init__(self, document_id: str, collection: str = "active") -> None:
        super().__init__(f"No {collection} document with id {document_id!r}")
        self.document_id = document_id
        self.collection = collection


class InvalidNameError(CatalogError):
    """Raised when a file name cannot be stored in the vault."""
