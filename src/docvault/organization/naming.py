"""Collision-free naming for documents stored in the vault."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Optional

from docvault.state.errors import InvalidNameError
from docvault.storage import FileStore

DEFAULT_DOCUMENT_NAME = "Untitled Document"
MAX_NAME_BYTES = 255

_UNSAFE_CHARS = re.compile(r"[/\\\x00]+")


def sanitize_base_name(value: Optional[str]) -> str:
    """Return a base name that is safe to store in the flat vault directory.

    Whitespace is trimmed, path separators become ``-`` and leading dots are
    dropped so a document can never become a hidden file. An empty result is
    replaced with :data:`DEFAULT_DOCUMENT_NAME`.
    """
    cleaned = _UNSAFE_CHARS.sub("-", (value or "").strip()).lstrip(".").strip()
    return cleaned or DEFAULT_DOCUMENT_NAME


def join_name(base: str, extension: str) -> str:
    """Combine ``base`` with ``extension`` (given with or without a leading dot)."""
    extension = extension.lstrip(".")
    return f"{base}.{extension}" if extension else base


def split_name(name: str) -> tuple[str, str]:
    """Split ``name`` into base and extension (without the dot).

    Dot-prefixed names such as ``.profile`` have no extension. Anything after
    the last dot counts as the extension, so ``"v1.2"`` splits into ``"v1"``
    and ``"2"`` and collides as ``"v1 (1).2"``.
    """
    path = Path(name)
    return path.stem, path.suffix.lstrip(".")


def unique_name(desired: str, is_taken: Callable[[str], bool]) -> str:
    """Return ``desired`` or the first ``"base (n).ext"`` variant that is free.

    Args:
        desired: Proposed file name including extension.
        is_taken: Predicate reporting whether a name is already in use.

    Returns:
        str: A name for which ``is_taken`` is false.
    """
    base, extension = split_name(desired)
    candidate = desired
    counter = 1
    while is_taken(candidate):
        candidate = join_name(f"{base} ({counter})", extension)
        counter += 1
    return candidate


class NamingResolver:
    """Pick collision-free names by querying the backing store."""

    def __init__(self, store: FileStore) -> None:
        self._store = store

    def resolve(
        self,
        directory: Path,
        desired_name: str,
        *,
        exclude: Optional[str] = None,
    ) -> str:
        """Return a name under ``directory`` that no existing entry occupies.

        Args:
            directory: Directory the name must be unique within.
            desired_name: Proposed file name including extension.
            exclude: Name to treat as free, typically the document's own file.

        Returns:
            str: Final file name.

        Raises:
            InvalidNameError: If the final name exceeds the filesystem limit.
        """

        def _taken(candidate: str) -> bool:
            if exclude is not None and candidate == exclude:
                return False
            return self._store.exists(directory / candidate)

        final = unique_name(desired_name, _taken)
        if len(final.encode("utf-8")) > MAX_NAME_BYTES:
            raise InvalidNameError(f"File name is longer than {MAX_NAME_BYTES} bytes: {final!r}")
        return final


__all__ = [
    "DEFAULT_DOCUMENT_NAME",
    "MAX_NAME_BYTES",
    "NamingResolver",
    "join_name",
    "sanitize_base_name",
    "split_name",
    "unique_name",
]
