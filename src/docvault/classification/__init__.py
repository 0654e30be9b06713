"""Document classification helpers."""

from .engine import classify, type_hint_for

__all__ = ["classify", "type_hint_for"]
