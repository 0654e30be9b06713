"""Search helpers for Docvault."""

from .text import filter_documents, matches, normalize_search_text

__all__ = ["filter_documents", "matches", "normalize_search_text"]
