"""Editor session, event bus, and key dispatch."""

from .bus import EVENTS, EventBus
from .editor import (
    EditorSession,
    FocusRequest,
    Mutation,
    PersistenceNotice,
    RenderedLine,
    Scope,
    document_from_text,
)
from .dispatcher import KeyDispatcher, key_to_token

__all__ = [
    "EVENTS",
    "EventBus",
    "EditorSession",
    "FocusRequest",
    "Mutation",
    "PersistenceNotice",
    "RenderedLine",
    "Scope",
    "document_from_text",
    "KeyDispatcher",
    "key_to_token",
]
