"""Event bus the editor session publishes state changes on."""

from __future__ import annotations

from typing import Callable, Dict

DOCUMENT_CHANGED = "document.changed"
SELECTION_CHANGED = "selection.changed"
DRAG_CHANGED = "drag.changed"
BATCH_OPENED = "batch.opened"
BATCH_CLOSED = "batch.closed"
FOCUS_REQUEST = "focus.request"
FIELD_CHANGED = "field.changed"
PERSISTENCE_SAVED = "persistence.saved"
PERSISTENCE_FAILURE = "persistence.failure"
EXTERNAL_CHANGE = "document.external_change"

EVENTS = (
    DOCUMENT_CHANGED,
    SELECTION_CHANGED,
    DRAG_CHANGED,
    BATCH_OPENED,
    BATCH_CLOSED,
    FOCUS_REQUEST,
    FIELD_CHANGED,
    PERSISTENCE_SAVED,
    PERSISTENCE_FAILURE,
    EXTERNAL_CHANGE,
)

Callback = Callable[[object], None]


class EventBus:
    """Minimal synchronous publish/subscribe hub."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, list[Callback]] = {}

    def subscribe(self, event: str, callback: Callback) -> Callable[[], None]:
        """Register ``callback``; the returned function unsubscribes it."""

        self._subscribers.setdefault(event, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(event, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def emit(self, event: str, payload: object | None = None) -> None:
        for callback in list(self._subscribers.get(event, [])):
            callback(payload)


__all__ = [
    "EventBus",
    "EVENTS",
    "DOCUMENT_CHANGED",
    "SELECTION_CHANGED",
    "DRAG_CHANGED",
    "BATCH_OPENED",
    "BATCH_CLOSED",
    "FOCUS_REQUEST",
    "FIELD_CHANGED",
    "PERSISTENCE_SAVED",
    "PERSISTENCE_FAILURE",
    "EXTERNAL_CHANGE",
]
