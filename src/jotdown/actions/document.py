"""Document-level actions: history, selection, and whole-document file work."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import ActionResult

if TYPE_CHECKING:
    from jotdown.keymaps import ResolutionMatch
    from jotdown.session.editor import EditorSession


def undo(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del match
    if session.undo():
        return ActionResult(consumed=True, message="undo")
    return ActionResult(consumed=True, status="noop", message="nothing_to_undo")


def redo(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del match
    if session.redo():
        return ActionResult(consumed=True, message="redo")
    return ActionResult(consumed=True, status="noop", message="nothing_to_redo")


def select_all_units(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del match
    outcome = session.select_all()
    return ActionResult(consumed=True, status=outcome.status, message="select_all")


def escape(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del match
    session.escape()
    return ActionResult(consumed=True, message="escape")


def open_selection(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del match
    if session.open_selection():
        return ActionResult(consumed=True, message="open_selection")
    return ActionResult(consumed=False, status="noop")


def export_document(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del match
    target = session.export()
    if target is None:
        return ActionResult(consumed=True, status="error", message="export_failed")
    return ActionResult(consumed=True, message=target)


def save_document(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del match
    if session.hard_save():
        return ActionResult(consumed=True, message="saved")
    return ActionResult(consumed=True, status="error", message="save_failed")


def new_document(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    """Start over; with unsaved work the key has to be pressed twice."""

    action_id = match.action.id
    if session.has_unsaved_changes and session.awaiting_confirmation != action_id:
        session.awaiting_confirmation = action_id
        return ActionResult(
            consumed=True,
            status="confirm",
            message="Unsaved changes will be lost; press again to start a new document",
        )
    session.awaiting_confirmation = None
    session.new_document()
    return ActionResult(consumed=True, message="new_document")


def import_document(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del match
    if session.importer is None:
        return ActionResult(consumed=True, status="noop", message="no_import_source")
    if session.import_document() is None:
        return ActionResult(consumed=True, status="error", message="nothing_imported")
    return ActionResult(consumed=True, message="import")


def noop_action(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del session, match
    return ActionResult(consumed=True, status="noop")


__all__ = [
    "undo",
    "redo",
    "select_all_units",
    "escape",
    "open_selection",
    "export_document",
    "save_document",
    "new_document",
    "import_document",
    "noop_action",
]
