"""Selection states and the provisional drag-select."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True, slots=True)
class Idle:
    """Nothing selected, nothing being edited."""


@dataclass(frozen=True, slots=True)
class Editing:
    unit_id: str


@dataclass(frozen=True, slots=True)
class Selected:
    """Zero or more selected units; ``ids`` keeps insertion order."""

    ids: tuple[str, ...] = ()

    @property
    def anchor(self) -> Optional[str]:
        return self.ids[0] if self.ids else None

    def __contains__(self, unit_id: object) -> bool:
        return unit_id in self.ids

    def __len__(self) -> int:
        return len(self.ids)


@dataclass(frozen=True, slots=True)
class BatchEditing:
    ids: tuple[str, ...]
    combined_text: str


SelectionState = Union[Idle, Editing, Selected, BatchEditing]

IDLE = Idle()


@dataclass(frozen=True, slots=True)
class DragSelect:
    """Live press-and-move selection.

    With an ``anchor`` the set is the index range from the anchor to the last
    entered unit; without one, entered units accumulate.
    """

    anchor: Optional[str] = None
    ids: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class SelectionModel:
    state: SelectionState = IDLE
    drag_select: Optional[DragSelect] = None

    @property
    def editing_id(self) -> Optional[str]:
        return self.state.unit_id if isinstance(self.state, Editing) else None

    @property
    def selected_ids(self) -> tuple[str, ...]:
        if isinstance(self.state, (Selected, BatchEditing)):
            return self.state.ids
        return ()

    @property
    def is_batch(self) -> bool:
        return isinstance(self.state, BatchEditing)


__all__ = [
    "Idle",
    "Editing",
    "Selected",
    "BatchEditing",
    "SelectionState",
    "IDLE",
    "DragSelect",
    "SelectionModel",
]
