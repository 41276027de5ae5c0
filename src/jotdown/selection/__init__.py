"""Selection state machine: states, gestures, and the reducer."""

from .engine import SelectionEngine, SelectionOutcome
from .gestures import (
    BeginEdit,
    Click,
    ClickModifier,
    DragStarted,
    Escape,
    Gesture,
    HitTarget,
    PointerDown,
    PointerEnter,
    PointerUp,
    Promote,
    SelectAll,
)
from .state import (
    IDLE,
    BatchEditing,
    DragSelect,
    Editing,
    Idle,
    Selected,
    SelectionModel,
    SelectionState,
)

__all__ = [
    "SelectionEngine",
    "SelectionOutcome",
    "SelectionModel",
    "SelectionState",
    "Idle",
    "IDLE",
    "Editing",
    "Selected",
    "BatchEditing",
    "DragSelect",
    "Gesture",
    "HitTarget",
    "ClickModifier",
    "Click",
    "PointerDown",
    "PointerEnter",
    "PointerUp",
    "Escape",
    "SelectAll",
    "Promote",
    "BeginEdit",
    "DragStarted",
]
