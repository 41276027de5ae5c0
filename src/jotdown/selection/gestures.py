"""Normalized pointer and keyboard gestures consumed by the selection reducer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Union


class HitTarget(str, Enum):
    """What the pointer landed on."""

    EMPTY = "empty"
    UNIT = "unit"
    HANDLE = "handle"
    CONTROL = "control"
    EDIT_FIELD = "edit_field"

    @property
    def interactive(self) -> bool:
        # Buttons and the open edit field run their own listeners.
        return self in (HitTarget.CONTROL, HitTarget.EDIT_FIELD)


class ClickModifier(str, Enum):
    NONE = "none"
    TOGGLE = "toggle"
    RANGE = "range"

    @classmethod
    def from_keys(cls, modifiers: Iterable[str]) -> "ClickModifier":
        keys = {str(modifier).strip().lower() for modifier in modifiers}
        if keys & {"ctrl", "meta", "cmd"}:
            return cls.TOGGLE
        if "shift" in keys:
            return cls.RANGE
        return cls.NONE


@dataclass(frozen=True, slots=True)
class Click:
    unit_id: Optional[str]
    modifier: ClickModifier = ClickModifier.NONE
    target: HitTarget = HitTarget.UNIT


@dataclass(frozen=True, slots=True)
class PointerDown:
    target: HitTarget
    unit_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class PointerEnter:
    unit_id: str


@dataclass(frozen=True, slots=True)
class PointerUp:
    pass


@dataclass(frozen=True, slots=True)
class Escape:
    pass


@dataclass(frozen=True, slots=True)
class SelectAll:
    pass


@dataclass(frozen=True, slots=True)
class Promote:
    """Deferred step turning a multi-unit selection into a batch edit."""


@dataclass(frozen=True, slots=True)
class BeginEdit:
    unit_id: str


@dataclass(frozen=True, slots=True)
class DragStarted:
    unit_id: str


Gesture = Union[
    Click,
    PointerDown,
    PointerEnter,
    PointerUp,
    Escape,
    SelectAll,
    Promote,
    BeginEdit,
    DragStarted,
]

__all__ = [
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
    "Gesture",
]
