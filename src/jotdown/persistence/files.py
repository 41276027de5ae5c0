"""Filesystem-backed store, exporter, importer, and change watcher."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional

from jotdown.document.errors import PersistenceFailure
from jotdown.runtime.telemetry import record_event, span

DEFAULT_SUFFIX = ".md"


def _atomic_write(path: Path, text: str, encoding: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w", encoding=encoding, dir=str(path.parent), delete=False, newline=""
    ) as handle:
        handle.write(text)
        tmp_name = handle.name
    try:
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class FileDocumentStore:
    """Stores the document as one UTF-8 text file.

    A missing file loads as an empty document. Writes go through a temporary
    sibling and an atomic rename, and the resulting modification time is
    remembered so a :class:`FileChangeWatcher` can skip our own saves.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        encoding: str = "utf-8",
        logger_name: Optional[str] = None,
    ) -> None:
        self.path = Path(path)
        self.encoding = encoding
        self._logger_name = logger_name
        self.last_written_mtime_ns: Optional[int] = None

    def load(self) -> str:
        with span(
            "persistence::load",
            logger_name=self._logger_name,
            component="persistence",
            metadata={"path": str(self.path)},
        ) as handle:
            try:
                text = self.path.read_text(encoding=self.encoding)
            except FileNotFoundError:
                handle.add_metadata("missing", True)
                return ""
            except (OSError, UnicodeDecodeError) as exc:
                raise PersistenceFailure(
                    f"Could not read {self.path}: {exc}",
                    operation="load",
                    target=str(self.path),
                ) from exc
            handle.add_metadata("chars", len(text))
            return text

    def save(self, text: str) -> None:
        with span(
            "persistence::save",
            logger_name=self._logger_name,
            component="persistence",
            metadata={"path": str(self.path), "chars": len(text)},
        ):
            try:
                _atomic_write(self.path, text, self.encoding)
                self.last_written_mtime_ns = self.path.stat().st_mtime_ns
            except OSError as exc:
                raise PersistenceFailure(
                    f"Could not write {self.path}: {exc}",
                    operation="save",
                    target=str(self.path),
                ) from exc


class FileExporter:
    """Writes standalone markdown copies into ``directory``."""

    def __init__(
        self,
        directory: str | os.PathLike[str] = ".",
        *,
        encoding: str = "utf-8",
        logger_name: Optional[str] = None,
    ) -> None:
        self.directory = Path(directory)
        self.encoding = encoding
        self._logger_name = logger_name

    def target_for(self, filename: str) -> Path:
        # Only the final path component is honoured.
        name = Path(filename.strip()).name or f"notes{DEFAULT_SUFFIX}"
        if not Path(name).suffix:
            name += DEFAULT_SUFFIX
        return self.directory / name

    def export(self, text: str, filename: str) -> str:
        target = self.target_for(filename)
        with span(
            "persistence::export",
            logger_name=self._logger_name,
            component="persistence",
            metadata={"path": str(target), "chars": len(text)},
        ):
            try:
                _atomic_write(target, text, self.encoding)
            except OSError as exc:
                raise PersistenceFailure(
                    f"Could not export to {target}: {exc}",
                    operation="export",
                    target=str(target),
                ) from exc
        return str(target)


class FileDocumentImporter:
    """Reads replacement text from a markdown file chosen up front."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        encoding: str = "utf-8",
        logger_name: Optional[str] = None,
    ) -> None:
        self.path = Path(path)
        self.encoding = encoding
        self._logger_name = logger_name

    def import_document(self) -> Optional[str]:
        with span(
            "persistence::import",
            logger_name=self._logger_name,
            component="persistence",
            metadata={"path": str(self.path)},
        ) as handle:
            try:
                text = self.path.read_text(encoding=self.encoding)
            except (OSError, UnicodeDecodeError) as exc:
                raise PersistenceFailure(
                    f"Could not import {self.path}: {exc}",
                    operation="import",
                    target=str(self.path),
                ) from exc
            handle.add_metadata("chars", len(text))
            return text


class FileChangeWatcher:
    """Polls a file's modification time and reports changes made by others."""

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        store: Optional[FileDocumentStore] = None,
        logger_name: Optional[str] = None,
    ) -> None:
        self.path = Path(path)
        self.store = store
        self._logger_name = logger_name
        self._seen = self._mtime()

    def _mtime(self) -> Optional[int]:
        try:
            return self.path.stat().st_mtime_ns
        except FileNotFoundError:
            return None

    def poll(self) -> bool:
        current = self._mtime()
        if current is None or current == self._seen:
            return False
        self._seen = current
        if self.store is not None and current == self.store.last_written_mtime_ns:
            return False
        record_event(
            "persistence.external_change",
            data={"path": str(self.path)},
            logger_name=self._logger_name,
        )
        return True


__all__ = ["FileDocumentStore", "FileExporter", "FileDocumentImporter", "FileChangeWatcher"]
