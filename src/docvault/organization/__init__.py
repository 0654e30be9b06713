"""Naming helpers for documents stored in the vault."""

from .naming import (
    DEFAULT_DOCUMENT_NAME,
    MAX_NAME_BYTES,
    NamingResolver,
    join_name,
    sanitize_base_name,
    split_name,
    unique_name,
)

__all__ = [
    "DEFAULT_DOCUMENT_NAME",
    "MAX_NAME_BYTES",
    "NamingResolver",
    "join_name",
    "sanitize_base_name",
    "split_name",
    "unique_name",
]
