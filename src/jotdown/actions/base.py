"""Key input and action result records shared by actions and the dispatcher."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(slots=True)
class KeyInput:
    """Normalized key event handed to the dispatcher."""

    key: str
    modifiers: Tuple[str, ...] = ()
    text: Optional[str] = None


@dataclass(slots=True)
class ActionResult:
    """Result returned from an action or ``KeyDispatcher.handle_key``."""

    consumed: bool
    status: str = "ok"
    message: Optional[str] = None
    timeout_ms: Optional[int] = None


__all__ = ["KeyInput", "ActionResult"]
