"""Tests for the document lifecycle manager."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from docvault.lifecycle import CatalogEvent, DocumentManager
from docvault.state import Category, DocumentNotFoundError, TypeHint
from docvault.storage import FileStore, StorageError, StorageErrorKind


class FlakyStore(FileStore):
    """File store whose individual operations can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.failing: set[str] = set()

    def _maybe_fail(self, operation: str, path: Path) -> None:
        if operation in self.failing:
            raise StorageError(StorageErrorKind.IO_ERROR, f"{operation} failed", path)

    def copy(self, source: Path, destination: Path) -> None:
        self._maybe_fail("copy", destination)
        super().copy(source, destination)

    def move(self, source: Path, destination: Path) -> None:
        self._maybe_fail("move", destination)
        super().move(source, destination)

    def set_protected(self, path: Path, protected: bool) -> None:
        self._maybe_fail("set_protected", path)
        super().set_protected(path, protected)

    def delete(self, path: Path) -> None:
        self._maybe_fail("delete", path)
        super().delete(path)


def _flaky_manager(vault_root: Path, timers) -> tuple[DocumentManager, FlakyStore]:
    store = FlakyStore()
    return DocumentManager(vault_root, store=store, timer_factory=timers), store


def test_import_copies_source_and_catalogues_it(manager, make_source, vault_root) -> None:
    source = make_source("scan.pdf", suggested_name="My Passport")

    document = manager.import_document(source)

    assert document.display_name == "My Passport.pdf"
    assert document.location == vault_root.resolve() / "My Passport.pdf"
    assert document.location.read_text(encoding="utf-8") == "content"
    assert document.type_hint is TypeHint.PDF
    assert document.category is Category.PASSPORTS
    assert document.is_protected is False
    assert not source.path.exists()
    assert [doc.id for doc in manager.documents] == [document.id]


def test_import_falls_back_to_source_stem(manager, make_source) -> None:
    document = manager.import_document(make_source("holiday.jpg"))

    assert document.display_name == "holiday.jpg"
    assert document.type_hint is TypeHint.IMAGE


def test_import_drops_matching_extension_from_suggestion(manager, make_source) -> None:
    document = manager.import_document(make_source("a.pdf"), "Report.PDF")

    assert document.display_name == "Report.pdf"


def test_import_resolves_name_collisions(manager, make_source) -> None:
    names = [
        manager.import_document(make_source(f"in{index}.txt"), "Notes").display_name
        for index in range(3)
    ]

    assert names == ["Notes.txt", "Notes (1).txt", "Notes (2).txt"]
    assert len({doc.id for doc in manager.documents}) == 3


def test_import_places_new_documents_first(manager, make_source) -> None:
    first = manager.import_document(make_source("one.txt"))
    second = manager.import_document(make_source("two.txt"))

    assert [doc.id for doc in manager.documents] == [second.id, first.id]


def test_failed_copy_leaves_catalog_and_source_untouched(vault_root, timers, make_source) -> None:
    manager, store = _flaky_manager(vault_root, timers)
    store.failing.add("copy")
    source = make_source("cv.pdf")

    with pytest.raises(StorageError):
        manager.import_document(source)

    assert manager.documents == []
    assert source.path.exists()
    assert list(vault_root.iterdir()) == []


def test_source_cleanup_failure_does_not_fail_import(vault_root, timers, make_source) -> None:
    manager, store = _flaky_manager(vault_root, timers)
    store.failing.add("delete")
    source = make_source("cv.pdf")

    document = manager.import_document(source)

    assert document.display_name == "cv.pdf"
    assert source.path.exists()


def test_rename_keeps_extension_and_reclassifies(manager, make_source, vault_root) -> None:
    original = manager.import_document(make_source("scan.pdf"))

    renamed = manager.rename_document(original.id, "Tax return 2023")

    assert renamed.id == original.id
    assert renamed.display_name == "Tax return 2023.pdf"
    assert renamed.category is Category.TAX
    assert renamed.type_hint is TypeHint.PDF
    assert (vault_root / "Tax return 2023.pdf").exists()
    assert not (vault_root / "scan.pdf").exists()


def test_rename_treats_foreign_suffix_as_part_of_the_name(manager, make_source) -> None:
    original = manager.import_document(make_source("scan.pdf"))

    renamed = manager.rename_document(original.id, "archive.txt")

    assert renamed.display_name == "archive.txt.pdf"


def test_rename_to_taken_name_gets_suffix(manager, make_source) -> None:
    manager.import_document(make_source("a.pdf"), "Letter")
    second = manager.import_document(make_source("b.pdf"), "Draft")

    renamed = manager.rename_document(second.id, "Letter")

    assert renamed.display_name == "Letter (1).pdf"


def test_rename_to_current_name_is_a_no_op(manager, make_source) -> None:
    document = manager.import_document(make_source("a.pdf"), "Letter")

    renamed = manager.rename_document(document.id, "Letter.pdf")

    assert renamed.display_name == "Letter.pdf"


def test_rename_failure_leaves_document_unchanged(vault_root, timers, make_source) -> None:
    manager, store = _flaky_manager(vault_root, timers)
    document = manager.import_document(make_source("a.pdf"))
    store.failing.add("move")

    with pytest.raises(StorageError):
        manager.rename_document(document.id, "b")

    assert manager.get(document.id).display_name == "a.pdf"


def test_rename_unknown_id_raises(manager) -> None:
    with pytest.raises(DocumentNotFoundError):
        manager.rename_document("missing", "x")


def test_lock_and_unlock_update_store_and_catalog(manager, make_source) -> None:
    store = FileStore()
    document = manager.import_document(make_source("a.pdf"))

    locked = manager.lock_document(document.id)
    assert locked.is_protected is True
    assert store.is_protected(document.location)

    unlocked = manager.unlock_document(document.id)
    assert unlocked.is_protected is False
    assert not store.is_protected(document.location)


def test_lock_failure_keeps_catalog_flag(vault_root, timers, make_source) -> None:
    manager, store = _flaky_manager(vault_root, timers)
    document = manager.import_document(make_source("a.pdf"))
    store.failing.add("set_protected")

    with pytest.raises(StorageError):
        manager.lock_document(document.id)

    assert manager.get(document.id).is_protected is False


def test_temporary_unlock_relocks_after_delay(manager, make_source, timers) -> None:
    document = manager.import_document(make_source("a.pdf"))
    manager.lock_document(document.id)
    seen = []

    manager.temporary_unlock(document.id, seen.append)

    assert len(seen) == 1 and seen[0].is_protected is False
    assert manager.get(document.id).is_protected is False
    assert timers.last.delay == 5.0
    assert timers.last.started

    timers.last.fire()

    assert manager.get(document.id).is_protected is True
    assert manager.wait_for_relock(document.id, timeout=0)


def test_repeated_temporary_unlock_restarts_delay(manager, make_source, timers) -> None:
    document = manager.import_document(make_source("a.pdf"))
    manager.lock_document(document.id)

    manager.temporary_unlock(document.id, lambda _: None)
    first = timers.last
    manager.temporary_unlock(document.id, lambda _: None)
    second = timers.last

    assert first is not second
    assert first.cancelled
    first.function()
    assert manager.get(document.id).is_protected is False

    second.fire()
    assert manager.get(document.id).is_protected is True


def test_explicit_unlock_cancels_pending_relock(manager, make_source, timers) -> None:
    document = manager.import_document(make_source("a.pdf"))
    manager.lock_document(document.id)
    manager.temporary_unlock(document.id, lambda _: None)
    pending = timers.last

    manager.unlock_document(document.id)
    pending.function()

    assert pending.cancelled
    assert manager.get(document.id).is_protected is False


def test_temporary_unlock_of_unprotected_document_still_relocks(
    manager, make_source, timers
) -> None:
    document = manager.import_document(make_source("a.pdf"))
    seen = []

    manager.temporary_unlock(document.id, seen.append)

    assert [doc.id for doc in seen] == [document.id]
    assert len(timers.timers) == 1

    timers.last.fire()

    assert manager.get(document.id).is_protected is True
    assert FileStore().is_protected(document.location)


def test_lock_during_temporary_unlock_makes_relock_a_no_op(
    manager, make_source, timers
) -> None:
    document = manager.import_document(make_source("a.pdf"))
    manager.temporary_unlock(document.id, lambda _: None)
    pending = timers.last

    manager.lock_document(document.id)
    manager.unlock_document(document.id)
    pending.function()

    assert pending.cancelled
    assert manager.get(document.id).is_protected is False


def test_relock_runs_on_timer_thread(vault_root, make_source) -> None:
    with DocumentManager(vault_root, relock_delay=0.1) as manager:
        document = manager.import_document(make_source("a.pdf"))
        manager.lock_document(document.id)
        manager.temporary_unlock(document.id, lambda _: None)

        assert manager.wait_for_relock(document.id, timeout=5)
        assert manager.get(document.id).is_protected is True
        assert FileStore().is_protected(document.location)


def test_temporary_unlock_failure_skips_callback(vault_root, timers, make_source) -> None:
    manager, store = _flaky_manager(vault_root, timers)
    document = manager.import_document(make_source("a.pdf"))
    manager.lock_document(document.id)
    store.failing.add("set_protected")
    seen = []

    with pytest.raises(StorageError):
        manager.temporary_unlock(document.id, seen.append)

    assert seen == []
    assert timers.timers == []


def test_close_relocks_pending_documents(manager, make_source, timers) -> None:
    document = manager.import_document(make_source("a.pdf"))
    manager.lock_document(document.id)
    manager.temporary_unlock(document.id, lambda _: None)

    manager.close()

    assert manager.get(document.id).is_protected is True
    assert timers.last.cancelled


def test_trash_and_restore_round_trip(manager, make_source) -> None:
    document = manager.import_document(make_source("resume.pdf"))

    manager.move_to_trash(document.id)

    assert manager.documents == []
    trashed = manager.get(document.id, "trashed")
    assert trashed.category is Category.TRASH
    assert trashed.location.exists()

    restored = manager.restore_from_trash(document.id)

    assert restored.category is Category.CV
    assert restored.location == document.location
    assert manager.trash == []
    assert [doc.id for doc in manager.documents] == [document.id]


def test_restore_keeps_newest_first_order(manager, make_source) -> None:
    older = manager.import_document(make_source("one.txt"))
    newer = manager.import_document(make_source("two.txt"))

    manager.move_to_trash(newer.id)
    manager.restore_from_trash(newer.id)

    assert [doc.id for doc in manager.documents] == [newer.id, older.id]


def test_trash_keeps_insertion_order(manager, make_source) -> None:
    first = manager.import_document(make_source("one.txt"))
    second = manager.import_document(make_source("two.txt"))

    manager.move_to_trash(first.id)
    manager.move_to_trash(second.id)

    assert [doc.id for doc in manager.trash] == [first.id, second.id]


def test_trashing_cancels_pending_relock(manager, make_source, timers) -> None:
    document = manager.import_document(make_source("a.pdf"))
    manager.lock_document(document.id)
    manager.temporary_unlock(document.id, lambda _: None)

    manager.move_to_trash(document.id)

    assert timers.last.cancelled


def test_trash_requires_active_document(manager, make_source) -> None:
    document = manager.import_document(make_source("a.pdf"))
    manager.move_to_trash(document.id)

    with pytest.raises(DocumentNotFoundError):
        manager.move_to_trash(document.id)
    with pytest.raises(DocumentNotFoundError):
        manager.restore_from_trash("missing")


def test_permanent_delete_removes_file(manager, make_source) -> None:
    document = manager.import_document(make_source("a.pdf"))
    manager.move_to_trash(document.id)

    manager.permanently_delete(document.id)

    assert manager.trash == []
    assert not document.location.exists()


def test_permanent_delete_tolerates_missing_file(manager, make_source) -> None:
    document = manager.import_document(make_source("a.pdf"))
    manager.move_to_trash(document.id)
    document.location.unlink()

    manager.permanently_delete(document.id)

    assert manager.trash == []


def test_permanent_delete_requires_trashed_document(manager, make_source) -> None:
    document = manager.import_document(make_source("a.pdf"))

    with pytest.raises(DocumentNotFoundError):
        manager.permanently_delete(document.id)
    assert document.location.exists()


def test_reload_discovers_existing_files(vault_root, timers) -> None:
    (vault_root / "old passport.pdf").write_text("x", encoding="utf-8")
    (vault_root / "new notes.txt").write_text("y", encoding="utf-8")
    (vault_root / ".hidden.txt").write_text("z", encoding="utf-8")
    (vault_root / "README").write_text("no extension", encoding="utf-8")
    (vault_root / "folder.pdf").mkdir()
    os.utime(vault_root / "old passport.pdf", (1_000_000, 1_000_000))
    os.utime(vault_root / "new notes.txt", (2_000_000, 2_000_000))
    os.chmod(vault_root / "old passport.pdf", 0o000)

    manager = DocumentManager(vault_root, timer_factory=timers)
    documents = manager.documents

    assert [doc.display_name for doc in documents] == ["new notes.txt", "old passport.pdf"]
    assert documents[1].is_protected is True
    assert documents[1].category is Category.PASSPORTS
    assert documents[0].type_hint is TypeHint.TEXT


def test_reload_is_idempotent(manager, make_source) -> None:
    manager.import_document(make_source("a.pdf"))
    manager.import_document(make_source("b.txt"))

    manager.reload()
    first = [(doc.display_name, doc.added_at) for doc in manager.documents]
    manager.reload()
    second = [(doc.display_name, doc.added_at) for doc in manager.documents]

    assert first == second
    assert len(first) == 2


def test_reload_skips_trashed_files(manager, make_source) -> None:
    kept = manager.import_document(make_source("keep.txt"))
    trashed = manager.import_document(make_source("bin.txt"))
    manager.move_to_trash(trashed.id)

    manager.reload()

    assert [doc.display_name for doc in manager.documents] == [kept.display_name]
    assert [doc.id for doc in manager.trash] == [trashed.id]


def test_search_filters_active_documents(manager, make_source) -> None:
    manager.import_document(make_source("a.pdf"), "Tax Return 2023")
    manager.import_document(make_source("b.pdf"), "Passport")
    trashed = manager.import_document(make_source("c.pdf"), "tax receipt")
    manager.move_to_trash(trashed.id)

    assert [doc.display_name for doc in manager.search("  TAX ")] == ["Tax Return 2023.pdf"]
    assert len(manager.search("")) == 2


def test_returned_documents_are_copies(manager, make_source) -> None:
    document = manager.import_document(make_source("a.pdf"))

    document.display_name = "tampered.pdf"
    manager.documents[0].is_protected = True

    fresh = manager.get(document.id)
    assert fresh.display_name == "a.pdf"
    assert fresh.is_protected is False


def test_observers_receive_events_until_unsubscribed(manager, make_source) -> None:
    events: list[CatalogEvent] = []
    unsubscribe = manager.subscribe(events.append)

    document = manager.import_document(make_source("a.pdf"))
    manager.move_to_trash(document.id)
    unsubscribe()
    manager.restore_from_trash(document.id)

    assert [(event.kind, event.collection) for event in events] == [
        ("added", "active"),
        ("removed", "active"),
        ("added", "trashed"),
    ]
    assert events[0].document is not None and events[0].document.id == document.id


def test_failing_observer_does_not_break_operations(manager, make_source) -> None:
    def _boom(event: CatalogEvent) -> None:
        raise RuntimeError("observer failure")

    manager.subscribe(_boom)

    document = manager.import_document(make_source("a.pdf"))

    assert manager.get(document.id).display_name == "a.pdf"


def test_from_config_applies_storage_settings(tmp_path: Path, timers) -> None:
    from docvault.config import VaultConfig

    config = VaultConfig.model_validate(
        {
            "storage": {"root": str(tmp_path / "configured")},
            "protection": {"relock_delay_seconds": 2.5},
        }
    )

    with DocumentManager.from_config(config, timer_factory=timers) as manager:
        assert manager.root == (tmp_path / "configured").resolve()
        assert manager.root.is_dir()
