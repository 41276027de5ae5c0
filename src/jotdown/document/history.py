"""Bounded undo/redo log of whole-document snapshots."""

from __future__ import annotations

from collections import deque
from typing import Deque, Optional

from .document import Document

DEFAULT_CAPACITY = 50


class HistoryStack:
    """Linear undo/redo history owned by a single editor session.

    Documents are immutable, so the stored references are the snapshots;
    nothing later mutates them. Both stacks drop their oldest entry once
    ``capacity`` is exceeded.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._undo: Deque[Document] = deque(maxlen=capacity)
        self._redo: Deque[Document] = deque(maxlen=capacity)

    def record(self, before: Document) -> None:
        """Remember the pre-mutation ``before`` and forget any redo branch."""

        self._undo.append(before)
        self._redo.clear()

    def can_undo(self) -> bool:
        return bool(self._undo)

    def can_redo(self) -> bool:
        return bool(self._redo)

    def undo(self, current: Document) -> Optional[Document]:
        if not self._undo:
            return None
        previous = self._undo.pop()
        self._redo.append(current)
        return previous

    def redo(self, current: Document) -> Optional[Document]:
        if not self._redo:
            return None
        following = self._redo.pop()
        self._undo.append(current)
        return following

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def undo_snapshots(self) -> tuple[Document, ...]:
        """Oldest-first view of the undo stack."""

        return tuple(self._undo)


__all__ = ["HistoryStack", "DEFAULT_CAPACITY"]
