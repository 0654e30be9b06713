"""Shared fixtures for the Docvault test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from docvault.ingestion import ImportSource
from docvault.lifecycle import DocumentManager


class ManualTimer:
    """Timer stand-in that only fires when a test tells it to."""

    def __init__(self, delay: float, function: Callable[[], None]) -> None:
        self.delay = delay
        self.function = function
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled:
            self.function()


class TimerRecorder:
    """Timer factory that keeps every timer it hands out."""

    def __init__(self) -> None:
        self.timers: list[ManualTimer] = []

    def __call__(self, delay: float, function: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(delay, function)
        self.timers.append(timer)
        return timer

    @property
    def last(self) -> ManualTimer:
        return self.timers[-1]


@pytest.fixture
def timers() -> TimerRecorder:
    return TimerRecorder()


@pytest.fixture
def vault_root(tmp_path: Path) -> Path:
    root = tmp_path / "vault"
    root.mkdir()
    return root


@pytest.fixture
def inbox(tmp_path: Path) -> Path:
    directory = tmp_path / "inbox"
    directory.mkdir()
    return directory


@pytest.fixture
def manager(vault_root: Path, timers: TimerRecorder) -> DocumentManager:
    return DocumentManager(vault_root, relock_delay=5.0, timer_factory=timers)


@pytest.fixture
def make_source(inbox: Path) -> Callable[..., ImportSource]:
    """Return a helper that writes a transient file and wraps it in a source."""

    def _make(
        name: str, content: str = "content", suggested_name: str | None = None
    ) -> ImportSource:
        path = inbox / name
        path.write_text(content, encoding="utf-8")
        return ImportSource(path=path, suggested_name=suggested_name)

    return _make
