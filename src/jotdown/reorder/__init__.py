"""Drag-and-drop reordering."""

from .engine import DragState, DropResult, Extent, ReorderEngine, drop_position

__all__ = ["ReorderEngine", "DragState", "DropResult", "Extent", "drop_position"]
