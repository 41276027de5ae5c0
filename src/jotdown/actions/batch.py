"""Actions bound while the batch editor is open."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import ActionResult

if TYPE_CHECKING:
    from jotdown.keymaps import ResolutionMatch
    from jotdown.session.editor import EditorSession


def commit_batch(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del match
    session.commit_batch()
    return ActionResult(consumed=True, message="batch_commit")


def delete_batch(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del match
    session.delete_batch()
    return ActionResult(consumed=True, message="batch_delete")


def cancel_batch(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del match
    session.cancel_batch()
    return ActionResult(consumed=True, message="batch_cancel")


__all__ = ["commit_batch", "delete_batch", "cancel_batch"]
