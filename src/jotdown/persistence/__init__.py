"""Storage collaborators: protocols plus file-backed implementations."""

from .autosave import Autosaver, PendingSave
from .files import FileChangeWatcher, FileDocumentImporter, FileDocumentStore, FileExporter
from .protocols import ChangeFeed, DocumentExporter, DocumentImporter, DocumentStore

__all__ = [
    "DocumentStore",
    "DocumentExporter",
    "DocumentImporter",
    "ChangeFeed",
    "FileDocumentStore",
    "FileExporter",
    "FileDocumentImporter",
    "FileChangeWatcher",
    "Autosaver",
    "PendingSave",
]
