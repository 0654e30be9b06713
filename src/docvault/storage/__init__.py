"""Backing store access for Docvault."""

from .adapter import DEFAULT_PROTECTED_MODE, DEFAULT_UNPROTECTED_MODE, FileStore
from .errors import StorageError, StorageErrorKind

__all__ = [
    "FileStore",
    "StorageError",
    "StorageErrorKind",
    "DEFAULT_PROTECTED_MODE",
    "DEFAULT_UNPROTECTED_MODE",
]
