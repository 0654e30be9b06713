"""Backing store errors."""

from __future__ import annotations

import errno
from enum import Enum
from pathlib import Path
from typing import Optional


class StorageErrorKind(str, Enum):
    """Failure classes reported by the file store."""

    NOT_FOUND = "not-found"
    PERMISSION_DENIED = "permission-denied"
    ALREADY_EXISTS = "already-exists"
    IO_ERROR = "io-error"


class StorageError(Exception):
    """Raised when a backing store operation fails.

    Attributes:
        kind: Failure class.
        path: Path the failing operation was addressing, when known.
    """

    def __init__(self, kind: StorageErrorKind, message: str, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.path = path

    @classmethod
    def from_os_error(cls, exc: OSError, path: Optional[Path] = None) -> "StorageError":
        """Translate an ``OSError`` into a ``StorageError`` of the matching kind."""
        if isinstance(exc, FileNotFoundError):
            kind = StorageErrorKind.NOT_FOUND
        elif isinstance(exc, PermissionError) or exc.errno in (errno.EACCES, errno.EPERM):
            kind = StorageErrorKind.PERMISSION_DENIED
        elif isinstance(exc, FileExistsError):
            kind = StorageErrorKind.ALREADY_EXISTS
        else:
            kind = StorageErrorKind.IO_ERROR
        target = path if path is not None else exc.filename
        message = f"{kind.value}: {exc.strerror or exc}"
        if target is not None:
            message = f"{message} ({target})"
        return cls(kind, message, Path(target) if target is not None else None)


__all__ = ["StorageError", "StorageErrorKind"]
