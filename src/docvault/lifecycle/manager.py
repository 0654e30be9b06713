"""Document lifecycle management for the vault."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from docvault.classification import classify, type_hint_for
from docvault.config import VaultConfig
from docvault.ingestion import ImportSource
from docvault.organization.naming import NamingResolver, join_name, sanitize_base_name
from docvault.search import filter_documents
from docvault.state import (
    Catalog,
    Category,
    CollectionName,
    Document,
    DocumentNotFoundError,
    TypeHint,
)
from docvault.storage import FileStore, StorageError, StorageErrorKind

from .events import CatalogEvent, CatalogObserver, EventKind
from .scheduler import DEFAULT_RELOCK_DELAY, RelockScheduler, TimerFactory

LOGGER = logging.getLogger(__name__)


class DocumentManager:
    """Own the document catalog and keep it consistent with the backing store.

    Every public operation runs under one re-entrant lock, and so does the
    re-lock timer callback. Storage calls happen before the catalog is touched:
    a failing storage call leaves the catalog exactly as it was. Operations
    return copies of catalog entries; the live entries never leave the manager.
    """

    def __init__(
        self,
        root: Path,
        *,
        store: Optional[FileStore] = None,
        relock_delay: float = DEFAULT_RELOCK_DELAY,
        timer_factory: Optional[TimerFactory] = None,
        load: bool = True,
    ) -> None:
        """Initialize the manager for the vault directory ``root``.

        Args:
            root: Directory holding the vault's documents; created when missing.
            store: File store adapter; a default :class:`FileStore` when omitted.
            relock_delay: Seconds before a temporary unlock is reverted.
            timer_factory: Factory for re-lock timers (tests inject manual timers).
            load: Whether to populate the catalog from ``root`` immediately.
        """
        self._store = store or FileStore()
        self._root = root.expanduser().resolve()
        self._store.ensure_directory(self._root)
        self._resolver = NamingResolver(self._store)
        self._catalog = Catalog()
        self._lock = threading.RLock()
        self._observers: list[CatalogObserver] = []
        self._relocks = RelockScheduler(
            self._relock_due,
            delay=relock_delay,
            timer_factory=timer_factory,
        )
        if load:
            self.reload()

    @classmethod
    def from_config(cls, config: VaultConfig, **kwargs) -> "DocumentManager":
        """Build a manager from loaded configuration.

        Keyword arguments are forwarded to the constructor and take precedence.
        """
        kwargs.setdefault(
            "store",
            FileStore(
                protected_mode=config.storage.protected_mode,
                unprotected_mode=config.storage.unprotected_mode,
            ),
        )
        kwargs.setdefault("relock_delay", config.protection.relock_delay_seconds)
        return cls(config.storage.root_path, **kwargs)

    def __enter__(self) -> "DocumentManager":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Read access                                                        #
    # ------------------------------------------------------------------ #

    @property
    def root(self) -> Path:
        """Return the vault directory."""
        return self._root

    @property
    def documents(self) -> list[Document]:
        """Return copies of the active documents, newest first."""
        with self._lock:
            return [document.model_copy() for document in self._catalog.active]

    @property
    def trash(self) -> list[Document]:
        """Return copies of the trashed documents in trash order."""
        with self._lock:
            return [document.model_copy() for document in self._catalog.trashed]

    def get(self, document_id: str, collection: CollectionName = "active") -> Document:
        """Return a copy of the document with ``document_id`` in ``collection``.

        Raises:
            DocumentNotFoundError: If the id is not in that collection.
        """
        with self._lock:
            return self._catalog.find(document_id, collection).model_copy()

    def search(self, query: str) -> list[Document]:
        """Return active documents whose name contains ``query``, ignoring case."""
        return filter_documents(self.documents, query)

    def subscribe(self, observer: CatalogObserver) -> Callable[[], None]:
        """Register ``observer`` for catalog events.

        Returns:
            Callable[[], None]: Function that removes the observer again.
        """
        with self._lock:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unsubscribe

    # ------------------------------------------------------------------ #
    # Mutations                                                          #
    # ------------------------------------------------------------------ #

    def import_document(
        self,
        source: ImportSource,
        suggested_name: Optional[str] = None,
    ) -> Document:
        """Copy ``source`` into the vault and register it as a new document.

        The base name is ``suggested_name``, else the source's own suggestion,
        else the source file's stem. The source's extension is always kept.
        Once the document is registered the consumed source is deleted; failing
        to delete it is only logged.

        Args:
            source: Transient file to import.
            suggested_name: Optional base name overriding the source's suggestion.

        Returns:
            Document: The newly catalogued document.

        Raises:
            StorageError: If the copy fails; nothing is catalogued.
            InvalidNameError: If no storable name can be derived.
        """
        source_path = Path(source.path)
        extension = source_path.suffix.lstrip(".")
        suggestion = suggested_name if suggested_name is not None else source.suggested_name
        base = _strip_extension(suggestion, extension) or source_path.stem

        with self._lock:
            final_name = self._resolver.resolve(
                self._root, join_name(sanitize_base_name(base), extension)
            )
            destination = self._root / final_name
            self._store.copy(source_path, destination)
            try:
                self._store.set_protected(destination, False)
            except StorageError:
                self._discard(destination)
                raise

            document = Document(
                display_name=final_name,
                location=destination,
                type_hint=type_hint_for(final_name) or TypeHint.GENERIC,
                category=classify(final_name),
            )
            self._catalog.insert_active(document)
            LOGGER.info("Imported %s as %s", source_path.name, final_name)
            self._consume(source_path)
            return self._emit("added", "active", document)

    def rename_document(self, document_id: str, new_name: str) -> Document:
        """Rename an active document, keeping its original extension.

        An extension in ``new_name`` equal to the current one is dropped; any
        other suffix becomes part of the base name.

        Raises:
            DocumentNotFoundError: If the id is not active.
            StorageError: If the backing file cannot be moved; nothing changes.
        """
        with self._lock:
            document = self._catalog.find(document_id)
            extension = document.location.suffix.lstrip(".")
            base = sanitize_base_name(_strip_extension(new_name, extension))
            final_name = self._resolver.resolve(
                self._root,
                join_name(base, extension),
                exclude=document.location.name,
            )
            if final_name == document.location.name:
                return document.model_copy()

            destination = self._root / final_name
            self._store.move(document.location, destination)
            LOGGER.info("Renamed %s -> %s", document.display_name, final_name)
            document.display_name = final_name
            document.location = destination
            document.category = classify(final_name)
            return self._emit("updated", "active", document)

    def lock_document(self, document_id: str) -> Document:
        """Apply the protection attribute to an active document.

        Raises:
            DocumentNotFoundError: If the id is not active.
            StorageError: If the attribute cannot be set; the catalog is unchanged.
        """
        with self._lock:
            document = self._catalog.find(document_id)
            snapshot = self._set_protection(document, True)
            self._relocks.cancel(document_id)
            return snapshot

    def unlock_document(self, document_id: str) -> Document:
        """Clear the protection attribute on an active document.

        Raises:
            DocumentNotFoundError: If the id is not active.
            StorageError: If the attribute cannot be cleared; the catalog is unchanged.
        """
        with self._lock:
            document = self._catalog.find(document_id)
            snapshot = self._set_protection(document, False)
            self._relocks.cancel(document_id)
            return snapshot

    def temporary_unlock(
        self,
        document_id: str,
        on_ready: Callable[[Document], None],
    ) -> None:
        """Unlock a document and lock it again after the re-lock delay.

        ``on_ready`` receives the unlocked document before this method returns.
        The re-lock is scheduled whether or not the document was protected;
        calling again while a re-lock is pending restarts the delay.

        Raises:
            DocumentNotFoundError: If the id is not active.
            StorageError: If the document cannot be unlocked; ``on_ready`` is not called.
        """
        with self._lock:
            document = self._catalog.find(document_id)
            snapshot = self._set_protection(document, False)
            self._relocks.schedule(document_id)
            LOGGER.info(
                "Temporarily unlocked %s for %.1fs", document.display_name, self._relocks.delay
            )
        on_ready(snapshot)

    def move_to_trash(self, document_id: str) -> None:
        """Move an active document to the trash; its file stays where it is.

        Raises:
            DocumentNotFoundError: If the id is not active.
        """
        with self._lock:
            document = self._catalog.remove(document_id, "active")
            self._relocks.cancel(document_id)
            document.category = Category.TRASH
            self._catalog.append_trashed(document)
            LOGGER.info("Moved %s to trash", document.display_name)
            self._emit("removed", "active", document)
            self._emit("added", "trashed", document)

    def restore_from_trash(self, document_id: str) -> Document:
        """Return a trashed document to the active collection.

        Raises:
            DocumentNotFoundError: If the id is not in the trash.
        """
        with self._lock:
            document = self._catalog.remove(document_id, "trashed")
            document.category = classify(document.display_name)
            self._catalog.restore(document)
            LOGGER.info("Restored %s from trash", document.display_name)
            self._emit("removed", "trashed", document)
            return self._emit("added", "active", document)

    def permanently_delete(self, document_id: str) -> None:
        """Remove a trashed document and delete its backing file.

        A backing file that is already gone is not an error.

        Raises:
            DocumentNotFoundError: If the id is not in the trash.
            StorageError: For failures other than a missing file; the document is
                removed from the catalog regardless.
        """
        with self._lock:
            document = self._catalog.remove(document_id, "trashed")
            self._relocks.cancel(document_id)
            self._emit("removed", "trashed", document)
            try:
                self._store.delete(document.location)
            except StorageError as exc:
                if exc.kind is not StorageErrorKind.NOT_FOUND:
                    raise
                LOGGER.info("Backing file for %s was already gone", document.display_name)
            else:
                LOGGER.info("Permanently deleted %s", document.display_name)

    def reload(self) -> None:
        """Rebuild the active collection from the vault directory.

        Pending temporary unlocks are reverted first. Files still referenced by
        trashed documents stay in the trash; files without an extension are
        skipped with a warning. Every discovered document gets a new id.

        Raises:
            StorageError: If the vault directory cannot be listed.
        """
        with self._lock:
            self._flush_relocks()
            trashed = self._catalog.trashed_locations()
            documents: list[Document] = []
            for path in self._store.list(self._root):
                if path in trashed:
                    continue
                type_hint = type_hint_for(path.name)
                if type_hint is None:
                    LOGGER.warning("Skipping %s: no extension to derive a type from.", path.name)
                    continue
                try:
                    is_protected = self._store.is_protected(path)
                    added_at = self._store.modified_at(path)
                except StorageError as exc:
                    LOGGER.warning("Skipping %s: %s", path.name, exc)
                    continue
                documents.append(
                    Document(
                        display_name=path.name,
                        location=path,
                        type_hint=type_hint,
                        is_protected=is_protected,
                        added_at=added_at,
                        category=classify(path.name),
                    )
                )
            self._catalog.replace_active(documents)
            LOGGER.debug("Loaded %d documents from %s", len(documents), self._root)
            self._notify(CatalogEvent(kind="reloaded"))

    def wait_for_relock(self, document_id: str, timeout: Optional[float] = None) -> bool:
        """Block until the pending re-lock for ``document_id`` has run or been cancelled.

        Returns:
            bool: False when ``timeout`` elapsed first.
        """
        return self._relocks.wait(document_id, timeout)

    def close(self) -> None:
        """Revert every pending temporary unlock immediately."""
        with self._lock:
            self._flush_relocks()

    # ------------------------------------------------------------------ #
    # Internal helpers                                                   #
    # ------------------------------------------------------------------ #

    def _set_protection(self, document: Document, protected: bool) -> Document:
        self._store.set_protected(document.location, protected)
        document.is_protected = protected
        LOGGER.info("%s %s", "Locked" if protected else "Unlocked", document.display_name)
        return self._emit("updated", "active", document)

    def _relock_due(self, document_id: str, token: str) -> None:
        with self._lock:
            if not self._relocks.is_current(document_id, token):
                return
            try:
                document = self._catalog.find(document_id)
                if not document.is_protected:
                    self._set_protection(document, True)
            except DocumentNotFoundError:
                pass
            except StorageError as exc:
                LOGGER.warning("Automatic re-lock of %s failed: %s", document_id, exc)
            finally:
                self._relocks.complete(document_id, token)

    def _flush_relocks(self) -> None:
        for document_id in self._relocks.cancel_all():
            try:
                document = self._catalog.find(document_id)
            except DocumentNotFoundError:
                continue
            if document.is_protected:
                continue
            try:
                self._set_protection(document, True)
            except StorageError as exc:
                LOGGER.warning("Could not re-lock %s: %s", document.display_name, exc)

    def _consume(self, source: Path) -> None:
        try:
            self._store.delete(source)
        except StorageError as exc:
            LOGGER.warning("Imported source %s could not be removed: %s", source, exc)

    def _discard(self, path: Path) -> None:
        try:
            self._store.delete(path)
        except StorageError as exc:
            LOGGER.warning("Could not remove incomplete import %s: %s", path, exc)

    def _emit(self, kind: EventKind, collection: CollectionName, document: Document) -> Document:
        snapshot = document.model_copy()
        self._notify(CatalogEvent(kind=kind, collection=collection, document=snapshot))
        return snapshot

    def _notify(self, event: CatalogEvent) -> None:
        for observer in list(self._observers):
            try:
                observer(event)
            except Exception:
                LOGGER.exception("Catalog observer %r failed on %s event", observer, event.kind)


def _strip_extension(name: Optional[str], extension: str) -> str:
    """Return ``name`` trimmed, without a trailing ``.extension`` (case-insensitive)."""
    trimmed = (name or "").strip()
    suffix = f".{extension}".lower()
    if extension and trimmed.lower().endswith(suffix):
        trimmed = trimmed[: -len(suffix)].strip()
    return trimmed


__all__ = ["DocumentManager"]
