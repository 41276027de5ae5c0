"""Editing verbs that keymap bindings dispatch to."""

from .base import ActionResult, KeyInput
from .batch import cancel_batch, commit_batch, delete_batch
from .document import (
    escape,
    export_document,
    import_document,
    new_document,
    noop_action,
    open_selection,
    redo,
    save_document,
    select_all_units,
    undo,
)
from .formatting import (
    heading_prefix,
    insert_indent,
    insert_link,
    insert_rule,
    prefix_line,
    wrap_block,
    wrap_inline,
    wrap_with,
)
from .line import (
    delete_empty_line,
    move_line,
    navigate_next,
    navigate_previous,
    select_field_text,
    split_line,
)

__all__ = [
    "ActionResult",
    "KeyInput",
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
    "split_line",
    "delete_empty_line",
    "navigate_previous",
    "navigate_next",
    "select_field_text",
    "move_line",
    "commit_batch",
    "delete_batch",
    "cancel_batch",
    "wrap_with",
    "wrap_inline",
    "wrap_block",
    "insert_link",
    "prefix_line",
    "heading_prefix",
    "insert_rule",
    "insert_indent",
]
