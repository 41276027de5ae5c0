"""Built-in keymaps for the document, editing, and batch scopes."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, Mapping, Sequence

from jotdown.actions import batch as batch_actions
from jotdown.actions import document as document_actions
from jotdown.actions import formatting
from jotdown.actions import line as line_actions

from .models import ActionRef, Binding, KeySequence
from .registry import KeymapRegistry

SCOPES = ("document", "editing", "batch")
FALLBACK_SCOPE = "document"

_INLINE_FORMATS: tuple[tuple[str, str, str, str], ...] = (
    # action suffix, opening, closing, description
    ("bold", "**", "**", "Bold"),
    ("italic", "*", "*", "Italic"),
    ("underline", "<u>", "</u>", "Underline"),
    ("code", "`", "`", "Inline code"),
    ("highlight", "==", "==", "Highlight"),
    ("strikethrough", "~~", "~~", "Strikethrough"),
)

_PREFIX_FORMATS: tuple[tuple[str, str, str], ...] = (
    ("list_item", "- ", "List item"),
    ("blockquote", "> ", "Blockquote"),
)


def _build_actions() -> tuple[ActionRef, ...]:
    actions = [
        ActionRef(id="document.undo", handler=document_actions.undo, description="Undo"),
        ActionRef(id="document.redo", handler=document_actions.redo, description="Redo"),
        ActionRef(
            id="document.select_all",
            handler=document_actions.select_all_units,
            description="Select every line",
        ),
        ActionRef(
            id="document.export",
            handler=document_actions.export_document,
            description="Save a markdown copy",
        ),
        ActionRef(
            id="document.save",
            handler=document_actions.save_document,
            description="Save the document now",
        ),
        ActionRef(
            id="document.new",
            handler=document_actions.new_document,
            description="Start a new document",
        ),
        ActionRef(
            id="document.import",
            handler=document_actions.import_document,
            description="Replace the document with an imported file",
        ),
        ActionRef(
            id="document.escape",
            handler=document_actions.escape,
            description="Cancel the current edit, drag, or selection",
        ),
        ActionRef(
            id="document.open_selection",
            handler=document_actions.open_selection,
            description="Edit the selected lines",
        ),
        ActionRef(
            id="document.noop",
            handler=document_actions.noop_action,
            description="Swallow the key",
        ),
        ActionRef(
            id="line.split",
            handler=line_actions.split_line,
            description="Save the line and start a new one below",
        ),
        ActionRef(
            id="line.delete_empty",
            handler=line_actions.delete_empty_line,
            description="Delete an empty line",
        ),
        ActionRef(
            id="line.previous",
            handler=line_actions.navigate_previous,
            description="Edit the previous line",
            metadata={"cursor": "end"},
        ),
        ActionRef(
            id="line.next",
            handler=line_actions.navigate_next,
            description="Edit the next line",
            metadata={"cursor": "start"},
        ),
        ActionRef(
            id="line.move_up",
            handler=line_actions.move_line,
            description="Move the line up",
            metadata={"step": -1},
        ),
        ActionRef(
            id="line.move_down",
            handler=line_actions.move_line,
            description="Move the line down",
            metadata={"step": 1},
        ),
        ActionRef(
            id="line.indent",
            handler=formatting.indent_action,
            description="Insert an indent",
        ),
        ActionRef(
            id="line.select_text",
            handler=line_actions.select_field_text,
            description="Select the line's text",
        ),
        ActionRef(
            id="batch.commit",
            handler=batch_actions.commit_batch,
            description="Save the batch edit",
        ),
        ActionRef(
            id="batch.delete",
            handler=batch_actions.delete_batch,
            description="Delete the batch's lines",
        ),
        ActionRef(
            id="batch.cancel",
            handler=batch_actions.cancel_batch,
            description="Discard the batch edit",
        ),
        ActionRef(
            id="format.center",
            handler=formatting.block_action,
            description="Centre block",
            metadata={"prefix": '<div align="center">', "suffix": "</div>"},
        ),
        ActionRef(id="format.link", handler=formatting.link_action, description="Link"),
        ActionRef(
            id="format.rule", handler=formatting.rule_action, description="Horizontal rule"
        ),
    ]
    for suffix, opening, closing, description in _INLINE_FORMATS:
        actions.append(
            ActionRef(
                id=f"format.{suffix}",
                handler=formatting.wrap_action,
                description=description,
                metadata={"open": opening, "close": closing},
            )
        )
    for suffix, prefix, description in _PREFIX_FORMATS:
        actions.append(
            ActionRef(
                id=f"format.{suffix}",
                handler=formatting.prefix_action,
                description=description,
                metadata={"prefix": prefix},
            )
        )
    for level in range(1, 7):
        actions.append(
            ActionRef(
                id=f"format.heading_{level}",
                handler=formatting.heading_action,
                description=f"Heading {level}",
                metadata={"level": level},
            )
        )
    return tuple(actions)


def _bind(
    scope: str,
    name: str,
    key: str,
    action_id: str,
    description: str,
    *,
    when: Sequence[str] = (),
) -> Binding:
    return Binding(
        id=f"{scope}.{name}",
        scope=scope,
        sequence=KeySequence.from_strings(*key.split()),
        action_id=action_id,
        description=description,
        when=tuple(when),  # type: ignore[arg-type]
        source="defaults",
    )


def _formatting_bindings(scope: str, *, inline_only: bool) -> list[Binding]:
    keys = [
        ("bold", "ctrl+b", "format.bold"),
        ("italic", "ctrl+i", "format.italic"),
        ("underline", "ctrl+u", "format.underline"),
        ("code", "ctrl+e", "format.code"),
        ("code_backtick", "ctrl+`", "format.code"),
        ("highlight", "ctrl+h", "format.highlight"),
        ("strikethrough", "ctrl+d", "format.strikethrough"),
        ("center", "ctrl+m", "format.center"),
    ]
    if not inline_only:
        keys += [
            ("link", "ctrl+k", "format.link"),
            ("list_item", "ctrl+l", "format.list_item"),
            ("blockquote", "ctrl+q", "format.blockquote"),
            ("rule", "ctrl+r", "format.rule"),
        ]
        keys += [
            (f"heading_{level}", f"ctrl+{level}", f"format.heading_{level}")
            for level in range(1, 7)
        ]
    return [
        _bind(scope, f"format_{name}", key, action_id, f"Format: {name.replace('_', ' ')}")
        for name, key, action_id in keys
    ]


def _build_bindings() -> tuple[Binding, ...]:
    document = [
        _bind("document", "undo", "ctrl+z", "document.undo", "Undo"),
        _bind("document", "redo", "ctrl+shift+z", "document.redo", "Redo"),
        _bind("document", "redo_alt", "ctrl+y", "document.redo", "Redo"),
        _bind("document", "select_all", "ctrl+a", "document.select_all", "Select all"),
        _bind("document", "export", "ctrl+s", "document.export", "Save as markdown"),
        _bind("document", "save", "ctrl+x ctrl+s", "document.save", "Save now"),
        _bind("document", "new", "ctrl+n", "document.new", "New document"),
        _bind("document", "import", "ctrl+x ctrl+f", "document.import", "Import a file"),
        _bind(
            "document",
            "move_up",
            "alt+UP",
            "line.move_up",
            "Move selected line up",
            when=("has_selection",),
        ),
        _bind(
            "document",
            "move_down",
            "alt+DOWN",
            "line.move_down",
            "Move selected line down",
            when=("has_selection",),
        ),
        _bind("document", "escape", "ESC", "document.escape", "Clear selection"),
        _bind(
            "document",
            "open_selection",
            "ENTER",
            "document.open_selection",
            "Edit selection",
            when=("has_selection",),
        ),
    ]
    editing = [
        _bind("editing", "split", "ENTER", "line.split", "New line below"),
        _bind("editing", "escape", "ESC", "document.escape", "Discard and stop editing"),
        _bind(
            "editing",
            "delete_empty_backspace",
            "BACKSPACE",
            "line.delete_empty",
            "Delete empty line",
            when=("field_empty",),
        ),
        _bind(
            "editing",
            "delete_empty_delete",
            "DELETE",
            "line.delete_empty",
            "Delete empty line",
            when=("field_empty",),
        ),
        _bind("editing", "up", "UP", "line.previous", "Previous line"),
        _bind("editing", "down", "DOWN", "line.next", "Next line"),
        _bind("editing", "move_up", "alt+UP", "line.move_up", "Move line up"),
        _bind("editing", "move_down", "alt+DOWN", "line.move_down", "Move line down"),
        _bind(
            "editing",
            "left_edge",
            "LEFT",
            "line.previous",
            "Previous line from column 0",
            when=("cursor_at_start",),
        ),
        _bind(
            "editing",
            "right_edge",
            "RIGHT",
            "line.next",
            "Next line from the end",
            when=("cursor_at_end",),
        ),
        _bind("editing", "indent", "TAB", "line.indent", "Indent"),
        _bind(
            "editing",
            "select_text",
            "ctrl+a",
            "line.select_text",
            "Select line text",
            when=("!all_text_selected",),
        ),
        _bind(
            "editing",
            "select_all_units",
            "ctrl+a",
            "document.select_all",
            "Select every line",
            when=("all_text_selected",),
        ),
    ]
    editing += _formatting_bindings("editing", inline_only=False)
    batch = [
        _bind("batch", "cancel", "ESC", "batch.cancel", "Discard batch edit"),
        _bind("batch", "commit", "ctrl+ENTER", "batch.commit", "Save batch edit"),
        _bind("batch", "delete_backspace", "ctrl+BACKSPACE", "batch.delete", "Delete lines"),
        _bind("batch", "delete_delete", "ctrl+DELETE", "batch.delete", "Delete lines"),
    ]
    batch += _formatting_bindings("batch", inline_only=True)
    return tuple(document + editing + batch)


DEFAULT_ACTIONS: tuple[ActionRef, ...] = _build_actions()
DEFAULT_BINDINGS: tuple[Binding, ...] = _build_bindings()


def load_default_keymaps(
    registry: KeymapRegistry,
    *,
    replace: bool = False,
    extra_bindings: Iterable[Binding] | None = None,
    default_sequence_timeout_ms: int | None = None,
    include_actions: Sequence[str] | None = None,
    exclude_actions: Sequence[str] | None = None,
    include_bindings: Sequence[str] | None = None,
    exclude_bindings: Sequence[str] | None = None,
    per_scope_overrides: Mapping[str, Iterable[Binding]] | None = None,
) -> None:
    """Register built-in actions and bindings for every scope."""

    allowed_actions = _build_filters(include_actions, exclude_actions)
    allowed_bindings = _build_filters(include_bindings, exclude_bindings)

    for action in DEFAULT_ACTIONS:
        if _selected(action.id, allowed_actions):
            registry.register_action(action, replace=replace)

    for binding in DEFAULT_BINDINGS:
        if not _selected(binding.id, allowed_bindings):
            continue
        if not registry.has_action(binding.action_id):
            continue
        registry.register_binding(
            _binding_with_timeout(binding, default_sequence_timeout_ms),
            replace=replace,
        )

    for binding in extra_bindings or ():
        registry.register_binding(binding, replace=replace)

    for scope, bindings in (per_scope_overrides or {}).items():
        for binding in bindings:
            if binding.scope != scope:
                raise ValueError(
                    f"Override binding '{binding.id}' must target scope '{scope}'"
                )
            registry.register_binding(binding, replace=True)


def _binding_with_timeout(binding: Binding, timeout_ms: int | None) -> Binding:
    if timeout_ms is None:
        return binding
    sequence = KeySequence(binding.sequence.strokes, timeout_ms=timeout_ms)
    return replace(binding, sequence=sequence)


def _build_filters(
    include: Sequence[str] | None, exclude: Sequence[str] | None
) -> tuple[set[str] | None, set[str]]:
    include_set = set(include) if include else None
    exclude_set = set(exclude or ())
    return include_set, exclude_set


def _selected(item_id: str, filters: tuple[set[str] | None, set[str]]) -> bool:
    include, exclude = filters
    if include is not None and item_id not in include:
        return False
    return item_id not in exclude


__all__ = [
    "load_default_keymaps",
    "DEFAULT_ACTIONS",
    "DEFAULT_BINDINGS",
    "SCOPES",
    "FALLBACK_SCOPE",
]
