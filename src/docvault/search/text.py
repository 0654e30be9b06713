"""Filename search over the active catalog."""

from __future__ import annotations

import re
from typing import Iterable

from docvault.state import Document

_WHITESPACE = re.compile(r"\s+")


def normalize_search_text(text: str) -> str:
    """Return ``text`` casefolded with whitespace runs collapsed and trimmed.

    Args:
        text: Query or display name.

    Returns:
        str: Normalized text used for substring comparison.
    """
    return _WHITESPACE.sub(" ", text).strip().casefold()


def matches(display_name: str, query: str) -> bool:
    """Return whether ``query`` occurs in ``display_name`` ignoring case.

    An empty query matches every name.
    """
    needle = normalize_search_text(query)
    return not needle or needle in normalize_search_text(display_name)


def filter_documents(documents: Iterable[Document], query: str) -> list[Document]:
    """Return the documents whose display name matches ``query``, order preserved."""
    return [document for document in documents if matches(document.display_name, query)]


__all__ = ["normalize_search_text", "matches", "filter_documents"]
