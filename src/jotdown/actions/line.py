"""Actions bound while a single line is open for editing."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import ActionResult

if TYPE_CHECKING:
    from jotdown.keymaps import ResolutionMatch
    from jotdown.session.editor import EditorSession


def split_line(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del match
    new_id = session.split_line()
    if new_id is None:
        return ActionResult(consumed=False, status="noop")
    return ActionResult(consumed=True, message="split_line")


def delete_empty_line(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del match
    if session.delete_empty_line():
        return ActionResult(consumed=True, message="delete_line")
    # The last remaining line swallows the key so nothing else acts on it.
    return ActionResult(consumed=True, status="noop", message="last_line")


def navigate_previous(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    cursor = match.action.metadata.get("cursor", "end")
    moved = session.navigate_previous(cursor)  # type: ignore[arg-type]
    return ActionResult(consumed=True, status="ok" if moved else "edge")


def navigate_next(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    cursor = match.action.metadata.get("cursor", "start")
    moved = session.navigate_next(cursor)  # type: ignore[arg-type]
    return ActionResult(consumed=True, status="ok" if moved else "edge")


def select_field_text(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del match
    session.select_field_text()
    return ActionResult(consumed=True, message="select_text")


def move_line(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    step = int(match.action.metadata.get("step", 1))
    if session.move_line(step):
        return ActionResult(consumed=True, message="move_line")
    return ActionResult(consumed=True, status="edge")


__all__ = [
    "split_line",
    "delete_empty_line",
    "navigate_previous",
    "navigate_next",
    "select_field_text",
    "move_line",
]
