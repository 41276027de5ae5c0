"""Batch editing: several line units exposed as one newline-joined blob."""

from __future__ import annotations

from typing import Iterable, Optional

from jotdown.document import LINE_SEPARATOR, Document, EditField


def open_batch(document: Document, unit_ids: Iterable[str]) -> str:
    """Join the contents of ``unit_ids`` in document order."""

    ordered = document.ordered(unit_ids)
    return LINE_SEPARATOR.join(document.get(unit_id).content for unit_id in ordered)


def _span_ids(document: Document, unit_ids: Iterable[str]) -> tuple[str, str]:
    start, end = document.span_of(unit_ids)
    return document.units[start].id, document.units[end].id


def commit_batch(document: Document, unit_ids: Iterable[str], edited_text: str) -> Document:
    """Replace the span covered by ``unit_ids`` with one unit per line of ``edited_text``.

    The span runs from the earliest to the latest id in current document
    order. Empty text still yields one empty unit. Text identical to what
    :func:`open_batch` produced returns ``document`` itself, ids untouched.
    """

    if edited_text == open_batch(document, unit_ids):
        return document
    first, last = _span_ids(document, unit_ids)
    return document.splice(first, last, edited_text.split(LINE_SEPARATOR))


def delete_batch(document: Document, unit_ids: Iterable[str]) -> Document:
    """Remove the span covered by ``unit_ids``; an emptied document keeps one blank unit."""

    first, last = _span_ids(document, unit_ids)
    return document.splice(first, last, ())


class BatchEditor:
    """Holds the edit buffer while a batch edit is open."""

    def __init__(self) -> None:
        self._ids: tuple[str, ...] = ()
        self.field: Optional[EditField] = None

    @property
    def is_open(self) -> bool:
        return self.field is not None

    @property
    def ids(self) -> tuple[str, ...]:
        return self._ids

    @property
    def text(self) -> str:
        return self.field.text if self.field else ""

    def open(self, document: Document, unit_ids: Iterable[str]) -> str:
        self._ids = document.ordered(unit_ids)
        combined = open_batch(document, self._ids)
        self.field = EditField.with_cursor(combined, "end")
        return combined

    def is_dirty(self, document: Document) -> bool:
        """Whether the buffer differs from the lines it was opened on."""

        return self.is_open and self.text != open_batch(document, self._ids)

    def edit(self, text: str, cursor: int | None = None) -> None:
        if self.field is None:
            raise RuntimeError("No batch edit is open")
        self.field.set_text(text, cursor)

    def commit(self, document: Document) -> Document:
        if self.field is None:
            raise RuntimeError("No batch edit is open")
        updated = commit_batch(document, self._ids, self.field.text)
        self.cancel()
        return updated

    def delete(self, document: Document) -> Document:
        if self.field is None:
            raise RuntimeError("No batch edit is open")
        updated = delete_batch(document, self._ids)
        self.cancel()
        return updated

    def cancel(self) -> None:
        self._ids = ()
        self.field = None


__all__ = ["BatchEditor", "open_batch", "commit_batch", "delete_batch"]
