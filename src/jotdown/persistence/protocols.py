"""Protocols for the storage collaborators an editor session calls."""

from __future__ import annotations

from typing import Optional, Protocol


class DocumentStore(Protocol):
    """Durable home of the serialized document."""

    def load(self) -> str:
        """Return the stored text; an absent document reads as ``""``."""
        ...

    def save(self, text: str) -> None:
        """Persist ``text``; raise ``PersistenceFailure`` on error."""
        ...


class DocumentExporter(Protocol):
    def export(self, text: str, filename: str) -> str:
        """Write a standalone copy of ``text`` and return where it went."""
        ...


class DocumentImporter(Protocol):
    def import_document(self) -> Optional[str]:
        """Return text to replace the document with, or ``None`` if nothing was chosen.

        Failures raise ``PersistenceFailure``.
        """
        ...


class ChangeFeed(Protocol):
    def poll(self) -> bool:
        """Return ``True`` once per external change to the stored document."""
        ...


__all__ = ["DocumentStore", "DocumentExporter", "DocumentImporter", "ChangeFeed"]
