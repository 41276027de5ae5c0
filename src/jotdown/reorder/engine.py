"""Drag-and-drop reordering of line units."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from jotdown.document import Document, Position
from jotdown.runtime.telemetry import record_event, span


@dataclass(frozen=True, slots=True)
class Extent:
    """On-screen hit region of a drop candidate."""

    top: float
    height: float
    left: float = 0.0
    width: float = 0.0

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def midpoint(self) -> float:
        return self.top + self.height / 2

    def contains(self, x: float, y: float) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom


def drop_position(pointer_y: float, extent: Extent) -> Position:
    """``before`` in the top half of ``extent``, ``after`` otherwise."""

    return "before" if pointer_y < extent.midpoint else "after"


@dataclass(frozen=True, slots=True)
class DragState:
    dragged_id: str
    over_id: Optional[str] = None
    over_position: Optional[Position] = None


@dataclass(frozen=True, slots=True)
class DropResult:
    status: str
    document: Optional[Document] = None
    moved_id: Optional[str] = None
    target_id: Optional[str] = None
    position: Optional[Position] = None

    @property
    def moved(self) -> bool:
        return self.document is not None


class ReorderEngine:
    """Tracks one drag gesture from press to drop or cancel.

    The engine never touches history; callers snapshot the document before
    applying ``DropResult.document``.
    """

    def __init__(self, *, logger_name: Optional[str] = None) -> None:
        self._logger_name = logger_name
        self.drag: Optional[DragState] = None

    @property
    def active(self) -> bool:
        return self.drag is not None

    def begin(self, document: Document, source_id: str) -> DragState:
        document.index_of(source_id)
        self.drag = DragState(dragged_id=source_id)
        record_event(
            "reorder.begin", data={"source": source_id}, logger_name=self._logger_name
        )
        return self.drag

    def hover(self, target_id: str, pointer_y: float, extent: Extent) -> bool:
        """Point at ``target_id``; return whether the drop indicator moved."""

        drag = self.drag
        if drag is None or target_id == drag.dragged_id:
            return False
        position = drop_position(pointer_y, extent)
        if drag.over_id == target_id and drag.over_position == position:
            return False
        self.drag = DragState(drag.dragged_id, target_id, position)
        return True

    def leave(self, target_id: str, pointer_x: float, pointer_y: float, extent: Extent) -> bool:
        """Clear the candidate when the pointer really left ``extent``.

        Moving onto a child of the candidate reports a leave while the
        pointer is still inside the region; that keeps the target.
        """

        drag = self.drag
        if drag is None or drag.over_id != target_id:
            return False
        if extent.contains(pointer_x, pointer_y):
            return False
        self.drag = DragState(drag.dragged_id)
        return True

    def drop(self, document: Document, target_id: Optional[str]) -> DropResult:
        drag = self.drag
        if drag is None:
            return DropResult(status="no_drag")
        self.drag = None
        if target_id is None:
            return DropResult(status="cancelled", moved_id=drag.dragged_id)
        if target_id == drag.dragged_id:
            return DropResult(status="same_target", moved_id=drag.dragged_id)

        position: Position = "before"
        if drag.over_id == target_id and drag.over_position is not None:
            position = drag.over_position
        with span(
            "reorder::drop",
            logger_name=self._logger_name,
            component="reorder",
            metadata={
                "moved": drag.dragged_id,
                "target": target_id,
                "position": position,
            },
        ) as handle:
            updated = document.reorder(drag.dragged_id, target_id, position)
            status = "moved" if updated is not document else "unchanged"
            handle.add_metadata("status", status)
        return DropResult(
            status=status,
            document=updated if updated is not document else None,
            moved_id=drag.dragged_id,
            target_id=target_id,
            position=position,
        )

    def cancel(self) -> bool:
        if self.drag is None:
            return False
        record_event(
            "reorder.cancel",
            data={"source": self.drag.dragged_id},
            logger_name=self._logger_name,
        )
        self.drag = None
        return True


__all__ = ["ReorderEngine", "DragState", "DropResult", "Extent", "drop_position"]
