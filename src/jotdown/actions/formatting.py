"""Markdown formatting helpers applied to an open edit field.

Each helper edits the field in place and leaves the cursor (or selection)
where the next keystroke is most likely to go: after a wrapped selection,
between an empty pair of markers, or over a placeholder word.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from jotdown.document import EditField

from .base import ActionResult

if TYPE_CHECKING:
    from jotdown.keymaps import ResolutionMatch
    from jotdown.session.editor import EditorSession

LINK_TEXT = "text"
LINK_URL = "url"
BLOCK_PLACEHOLDER = "text"
HORIZONTAL_RULE = "---"


def wrap_with(field: EditField, opening: str, closing: str) -> None:
    """Surround the selection with ``opening``/``closing``.

    Without a selection the pair is inserted and the cursor lands between.
    """

    selected = field.selected_text
    if selected:
        field.replace_selection(f"{opening}{selected}{closing}")
    else:
        field.replace_selection(opening + closing, select_from=len(opening))


def wrap_inline(field: EditField, marker: str) -> None:
    wrap_with(field, marker, marker)


def wrap_block(
    field: EditField, prefix: str, suffix: str, *, placeholder: str = BLOCK_PLACEHOLDER
) -> None:
    """Like :func:`wrap_with`, but an empty selection gets ``placeholder`` inside."""

    selected = field.selected_text
    if selected:
        field.replace_selection(f"{prefix}{selected}{suffix}")
        return
    field.replace_selection(
        f"{prefix}{placeholder}{suffix}", select_from=len(prefix) + len(placeholder)
    )


def insert_link(field: EditField) -> None:
    """``[selection](url)`` with ``url`` selected, or ``[text](url)`` with ``text`` selected."""

    selected = field.selected_text
    if selected:
        url_start = len(selected) + 3
        field.replace_selection(
            f"[{selected}]({LINK_URL})",
            select_from=url_start,
            select_to=url_start + len(LINK_URL),
        )
    else:
        field.replace_selection(
            f"[{LINK_TEXT}]({LINK_URL})", select_from=1, select_to=1 + len(LINK_TEXT)
        )


def prefix_line(field: EditField, prefix: str) -> None:
    """Insert ``prefix`` in front of the selection (or at the cursor)."""

    field.replace_selection(prefix + field.selected_text)


def heading_prefix(level: int) -> str:
    if not 1 <= level <= 6:
        raise ValueError("heading level must be between 1 and 6")
    return "#" * level + " "


def insert_rule(field: EditField) -> None:
    # The rule goes in at the selection start; selected text is kept.
    field.select(field.selection_start)
    field.replace_selection(HORIZONTAL_RULE)


def insert_indent(field: EditField, indent: str = "    ") -> None:
    field.replace_selection(indent)


def _format(session: EditorSession, apply: Callable[[EditField], None]) -> ActionResult:
    field = session.active_field
    if field is None:
        return ActionResult(consumed=False, status="no_field")
    apply(field)
    session.field_changed()
    return ActionResult(consumed=True, message="formatted")


def wrap_action(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    metadata = match.action.metadata
    opening = str(metadata["open"])
    closing = str(metadata.get("close", opening))
    return _format(session, lambda field: wrap_with(field, opening, closing))


def block_action(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    metadata = match.action.metadata
    prefix, suffix = str(metadata["prefix"]), str(metadata["suffix"])
    return _format(session, lambda field: wrap_block(field, prefix, suffix))


def prefix_action(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    prefix = str(match.action.metadata["prefix"])
    return _format(session, lambda field: prefix_line(field, prefix))


def heading_action(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    prefix = heading_prefix(int(match.action.metadata["level"]))  # type: ignore[call-overload]
    return _format(session, lambda field: prefix_line(field, prefix))


def link_action(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del match
    return _format(session, insert_link)


def rule_action(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del match
    return _format(session, insert_rule)


def indent_action(session: EditorSession, match: ResolutionMatch) -> ActionResult:
    del match
    indent = session.config.indent
    return _format(session, lambda field: insert_indent(field, indent))


__all__ = [
    "wrap_with",
    "wrap_inline",
    "wrap_block",
    "insert_link",
    "prefix_line",
    "heading_prefix",
    "insert_rule",
    "insert_indent",
    "wrap_action",
    "block_action",
    "prefix_action",
    "heading_action",
    "link_action",
    "rule_action",
    "indent_action",
]
