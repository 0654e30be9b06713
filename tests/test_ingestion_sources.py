"""Tests for import source staging."""

from __future__ import annotations

from pathlib import Path

import pytest

from docvault.ingestion import photo_source, scan_source, stage_file, staging_directory
from docvault.ingestion.sources import STAGING_DIRNAME
from docvault.storage import StorageError, StorageErrorKind


def test_stage_file_copies_and_keeps_original(tmp_path: Path) -> None:
    original = tmp_path / "Tax Return.pdf"
    original.write_text("data", encoding="utf-8")

    source = stage_file(original, staging_dir=tmp_path / "staging")

    assert original.exists()
    assert source.path.parent == tmp_path / "staging" / STAGING_DIRNAME
    assert source.path.name.startswith("import_")
    assert source.path.suffix == ".pdf"
    assert source.path.read_text(encoding="utf-8") == "data"
    assert source.suggested_name == "Tax Return"


def test_stage_file_honours_suggested_name(tmp_path: Path) -> None:
    original = tmp_path / "scan001.pdf"
    original.write_text("data", encoding="utf-8")

    source = stage_file(original, suggested_name="Passport", staging_dir=tmp_path)

    assert source.suggested_name == "Passport"


def test_stage_missing_file_raises_storage_error(tmp_path: Path) -> None:
    with pytest.raises(StorageError) as excinfo:
        stage_file(tmp_path / "missing.pdf", staging_dir=tmp_path)

    assert excinfo.value.kind is StorageErrorKind.NOT_FOUND


def test_photo_and_scan_sources_write_jpegs(tmp_path: Path) -> None:
    photo = photo_source(b"\xff\xd8photo", staging_dir=tmp_path)
    scan = scan_source(b"\xff\xd8scan", staging_dir=tmp_path)

    assert photo.path.name.startswith("photo_") and photo.path.suffix == ".jpg"
    assert scan.path.name.startswith("scan_") and scan.path.suffix == ".jpg"
    assert photo.suggested_name == "Photo"
    assert scan.suggested_name == "Scan"
    assert photo.path.read_bytes() == b"\xff\xd8photo"


def test_staging_directory_is_created(tmp_path: Path) -> None:
    directory = staging_directory(tmp_path / "nested")

    assert directory.is_dir()
    assert directory.name == STAGING_DIRNAME


def test_imported_photo_is_consumed(manager, tmp_path: Path) -> None:
    source = photo_source(b"\xff\xd8", staging_dir=tmp_path)

    document = manager.import_document(source)

    assert document.display_name == "Photo.jpg"
    assert not source.path.exists()
