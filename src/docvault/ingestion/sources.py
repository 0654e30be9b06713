"""Import sources handed to the lifecycle manager.

A source is a transient file the vault consumes exactly once: the manager
copies it into the backing store and then deletes it. Files picked from
elsewhere are therefore staged first so the user's original is never
consumed, and in-memory images (photo library picks, camera scans) are
written to staging files before import.
"""

from __future__ import annotations

import shutil
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from docvault.storage import StorageError

STAGING_DIRNAME = "docvault-staging"


@dataclass(slots=True)
class ImportSource:
    """A readable transient file plus an optional display name suggestion.

    Attributes:
        path: Transient file to consume.
        suggested_name: Base name to store the document under.
    """

    path: Path
    suggested_name: Optional[str] = None


def staging_directory(staging_dir: Optional[Path] = None) -> Path:
    """Return (and create) the directory holding transient import files."""
    directory = Path(staging_dir).expanduser() if staging_dir else Path(tempfile.gettempdir())
    directory = directory / STAGING_DIRNAME
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def stage_file(
    path: Path,
    *,
    suggested_name: Optional[str] = None,
    staging_dir: Optional[Path] = None,
) -> ImportSource:
    """Copy a picked file into staging and return a source for it.

    Args:
        path: File chosen by the user; left untouched.
        suggested_name: Base name override; defaults to the picked file's stem.
        staging_dir: Parent of the staging directory.

    Returns:
        ImportSource: Source pointing at the staged copy.

    Raises:
        StorageError: If the file cannot be copied.
    """
    target = staging_directory(staging_dir) / f"import_{uuid.uuid4().hex}{path.suffix}"
    try:
        shutil.copyfile(path, target)
    except OSError as exc:
        target.unlink(missing_ok=True)
        raise StorageError.from_os_error(exc) from exc
    return ImportSource(path=target, suggested_name=suggested_name or path.stem)


def stage_bytes(
    data: bytes,
    *,
    prefix: str,
    extension: str,
    suggested_name: Optional[str] = None,
    staging_dir: Optional[Path] = None,
) -> ImportSource:
    """Write in-memory content to a staging file and return a source for it.

    Raises:
        StorageError: If the staging file cannot be written.
    """
    target = staging_directory(staging_dir) / f"{prefix}_{uuid.uuid4().hex}.{extension.lstrip('.')}"
    try:
        target.write_bytes(data)
    except OSError as exc:
        target.unlink(missing_ok=True)
        raise StorageError.from_os_error(exc, target) from exc
    return ImportSource(path=target, suggested_name=suggested_name)


def photo_source(data: bytes, *, staging_dir: Optional[Path] = None) -> ImportSource:
    """Return a source for JPEG bytes picked from a photo library."""
    return stage_bytes(
        data, prefix="photo", extension="jpg", suggested_name="Photo", staging_dir=staging_dir
    )


def scan_source(data: bytes, *, staging_dir: Optional[Path] = None) -> ImportSource:
    """Return a source for JPEG bytes captured by a camera scan."""
    return stage_bytes(
        data, prefix="scan", extension="jpg", suggested_name="Scan", staging_dir=staging_dir
    )


__all__ = [
    "ImportSource",
    "STAGING_DIRNAME",
    "photo_source",
    "scan_source",
    "stage_bytes",
    "stage_file",
    "staging_directory",
]
