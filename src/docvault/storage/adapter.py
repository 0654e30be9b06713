"""Filesystem gateway for the vault's backing store."""

from __future__ import annotations

import errno
import logging
import os
import shutil
import stat
import uuid
from datetime import datetime, timezone
from pathlib import Path

from .errors import StorageError, StorageErrorKind

LOGGER = logging.getLogger(__name__)

DEFAULT_PROTECTED_MODE = 0o000
DEFAULT_UNPROTECTED_MODE = 0o600
_PART_PREFIX = ".docvault-"


class FileStore:
    """Stateless wrapper around the filesystem primitives the vault needs.

    Every failure surfaces as a :class:`StorageError`. Copies and moves never
    overwrite an existing destination and never leave a partially written
    destination behind: data lands in a hidden ``.part`` file next to the
    destination and is renamed into place once complete.

    The protection attribute is expressed through permission bits. A file is
    protected when its mode equals ``protected_mode``.
    """

    def __init__(
        self,
        *,
        protected_mode: int = DEFAULT_PROTECTED_MODE,
        unprotected_mode: int = DEFAULT_UNPROTECTED_MODE,
    ) -> None:
        if stat.S_IMODE(protected_mode) == stat.S_IMODE(unprotected_mode):
            raise ValueError("protected_mode and unprotected_mode must differ.")
        self._protected_mode = stat.S_IMODE(protected_mode)
        self._unprotected_mode = stat.S_IMODE(unprotected_mode)

    def list(self, directory: Path) -> list[Path]:
        """Return the regular, non-hidden files directly inside ``directory``.

        Args:
            directory: Directory to list.

        Returns:
            list[Path]: Files sorted by name.

        Raises:
            StorageError: If the directory cannot be read.
        """
        try:
            entries = sorted(directory.iterdir())
        except OSError as exc:
            raise StorageError.from_os_error(exc, directory) from exc

        return [
            entry
            for entry in entries
            if not entry.name.startswith(".") and entry.is_file() and not entry.is_symlink()
        ]

    def ensure_directory(self, directory: Path) -> None:
        """Create ``directory`` and its parents when missing."""
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError.from_os_error(exc, directory) from exc

    def exists(self, path: Path) -> bool:
        """Return whether any directory entry occupies ``path``."""
        return os.path.lexists(path)

    def copy(self, source: Path, destination: Path) -> None:
        """Copy ``source`` to a new file at ``destination``.

        Raises:
            StorageError: ``already-exists`` when the destination is taken, or the
                kind matching the underlying failure.
        """
        self._ensure_free(destination)
        part = self._part_path(destination)
        try:
            shutil.copyfile(source, part)
            self._commit(part, destination)
        except OSError as exc:
            self._discard(part)
            raise StorageError.from_os_error(exc) from exc
        LOGGER.debug("Copied %s -> %s", source, destination)

    def move(self, source: Path, destination: Path) -> None:
        """Move ``source`` to ``destination`` without overwriting.

        Moves within one filesystem are a single rename; across filesystems the
        file is copied and the source removed afterwards.

        Raises:
            StorageError: ``already-exists`` when the destination is taken, or the
                kind matching the underlying failure.
        """
        self._ensure_free(destination)
        try:
            os.rename(source, destination)
        except OSError as exc:
            if exc.errno != errno.EXDEV:
                raise StorageError.from_os_error(exc) from exc
            self._move_across_devices(source, destination)
        LOGGER.debug("Moved %s -> %s", source, destination)

    def delete(self, path: Path) -> None:
        """Delete the file at ``path``.

        Raises:
            StorageError: ``not-found`` when nothing exists at ``path``.
        """
        try:
            path.unlink()
        except OSError as exc:
            raise StorageError.from_os_error(exc, path) from exc
        LOGGER.debug("Deleted %s", path)

    def set_protected(self, path: Path, protected: bool) -> None:
        """Apply or clear the protection attribute on ``path``."""
        mode = self._protected_mode if protected else self._unprotected_mode
        try:
            os.chmod(path, mode)
        except OSError as exc:
            raise StorageError.from_os_error(exc, path) from exc

    def is_protected(self, path: Path) -> bool:
        """Return whether ``path`` currently carries the protection attribute."""
        try:
            mode = path.stat().st_mode
        except OSError as exc:
            raise StorageError.from_os_error(exc, path) from exc
        return stat.S_IMODE(mode) == self._protected_mode

    def modified_at(self, path: Path) -> datetime:
        """Return the last modification time of ``path`` in UTC."""
        try:
            mtime = path.stat().st_mtime
        except OSError as exc:
            raise StorageError.from_os_error(exc, path) from exc
        return datetime.fromtimestamp(mtime, tz=timezone.utc)

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _ensure_free(self, destination: Path) -> None:
        if self.exists(destination):
            raise StorageError(
                StorageErrorKind.ALREADY_EXISTS,
                f"already-exists: destination is taken ({destination})",
                destination,
            )

    def _part_path(self, destination: Path) -> Path:
        return destination.parent / f"{_PART_PREFIX}{uuid.uuid4().hex}.part"

    def _commit(self, part: Path, destination: Path) -> None:
        if self.exists(destination):
            raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), str(destination))
        os.replace(part, destination)

    def _discard(self, part: Path) -> None:
        try:
            part.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            LOGGER.warning("Could not remove partial file %s: %s", part, exc)

    def _move_across_devices(self, source: Path, destination: Path) -> None:
        self.copy(source, destination)
        try:
            source.unlink()
        except OSError as exc:
            self._discard(destination)
            raise StorageError.from_os_error(exc, source) from exc


__all__ = ["FileStore", "DEFAULT_PROTECTED_MODE", "DEFAULT_UNPROTECTED_MODE"]
