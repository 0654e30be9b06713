"""Import sources for the vault."""

from .sources import (
    ImportSource,
    photo_source,
    scan_source,
    stage_bytes,
    stage_file,
    staging_directory,
)

__all__ = [
    "ImportSource",
    "photo_source",
    "scan_source",
    "stage_bytes",
    "stage_file",
    "staging_directory",
]
