"""Caller-side collaborators: authorization gates and document viewers.

The lifecycle manager never authorizes anything itself. Callers ask a gate
before lock, unlock, rename, trash, purge, opening a locked document or
listing the trash, and hand documents to a viewer for presentation.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

import click

from docvault.state import TypeHint

LOGGER = logging.getLogger(__name__)


class AuthorizationGate(Protocol):
    """Grants or denies a privacy-sensitive action."""

    def authorize(self, reason: str) -> bool: ...


class Viewer(Protocol):
    """Presents a document to the user."""

    def present(self, path: Path, type_hint: TypeHint) -> None: ...


class AllowAllGate:
    """Gate that grants every request (``--yes`` or non-interactive use)."""

    def authorize(self, reason: str) -> bool:
        LOGGER.debug("Authorized without prompt: %s", reason)
        return True


class ConfirmationGate:
    """Gate that asks the user to confirm each request on the terminal."""

    def authorize(self, reason: str) -> bool:
        granted = click.confirm(f"{reason}?", default=False)
        if not granted:
            LOGGER.info("Authorization denied: %s", reason)
        return granted


class LaunchViewer:
    """Viewer that opens documents with the platform's default application."""

    def present(self, path: Path, type_hint: TypeHint) -> None:
        LOGGER.debug("Opening %s (%s)", path, type_hint.value)
        click.launch(str(path))


__all__ = ["AuthorizationGate", "Viewer", "AllowAllGate", "ConfirmationGate", "LaunchViewer"]
