"""Document lifecycle management."""

from .events import CatalogEvent, CatalogObserver
from .manager import DocumentManager
from .scheduler import DEFAULT_RELOCK_DELAY, RelockScheduler, thread_timer

__all__ = [
    "CatalogEvent",
    "CatalogObserver",
    "DocumentManager",
    "DEFAULT_RELOCK_DELAY",
    "RelockScheduler",
    "thread_timer",
]
