"""Executable Textual app that hosts the line editor."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.containers import VerticalScroll
from textual.widgets import Footer, Header, Static

from jotdown.document import EditField
from jotdown.persistence import (
    FileChangeWatcher,
    FileDocumentImporter,
    FileDocumentStore,
    FileExporter,
)
from jotdown.runtime import telemetry
from jotdown.runtime.config import EditorConfig
from jotdown.session import EditorSession, FocusRequest, PersistenceNotice, RenderedLine
from jotdown.session.bus import PERSISTENCE_FAILURE, PERSISTENCE_SAVED

from .controller import TextualEditorAdapter, TextualUIHooks
from .markup import markup_to_text

POLL_INTERVAL_S = 0.25
RELOAD_KEY = "ctrl+o"
HANDLE = "⠿ "


def create_session(config: EditorConfig) -> EditorSession:
    """Open the configured document with file-backed persistence."""

    path = Path(config.document_path)
    store = FileDocumentStore(path, logger_name="jotdown.persistence")
    return EditorSession.open(
        store,
        config=config,
        exporter=FileExporter(path.parent),
        importer=FileDocumentImporter(config.import_path, logger_name="jotdown.persistence"),
        change_feed=FileChangeWatcher(path, store=store),
        logger_name="jotdown.session",
    )


def field_text(field: EditField) -> Text:
    """Raw field contents with the cursor or selection drawn in reverse video."""

    text = Text(field.text)
    start, end = field.selection_start, field.selection_end
    if start == end:
        if end == len(field.text):
            text.append(" ", style="reverse")
        else:
            text.stylize("reverse", end, end + 1)
    else:
        text.stylize("reverse", start, end)
    return text


def row_text(line: RenderedLine, field: Optional[EditField]) -> Text:
    if line.editing and field is not None:
        body = field_text(field)
    else:
        body = markup_to_text(line.markup)
        if line.selected or line.drag_selected:
            body.stylize("on grey23")
    handle_style = "bold reverse" if line.dragging else "dim"
    if line.drop_position == "before":
        handle_style += " overline"
    elif line.drop_position == "after":
        handle_style += " underline"
    text = Text()
    text.append(HANDLE, style=handle_style)
    text.append_text(body)
    text.justify = body.justify
    return text


class LineRow(Static):
    """One line unit.

    Clicks hand the id and modifiers to the app. A press on the leading
    handle starts a reorder drag once the pointer moves to another row; a
    press anywhere else sweeps a selection.
    """

    def __init__(self, unit_id: str, content: Text) -> None:
        super().__init__(content, classes="line-row")
        self.unit_id = unit_id

    def on_click(self, event: events.Click) -> None:
        app = self.app
        if isinstance(app, JotdownApp):
            app.click_unit(self.unit_id, _click_modifiers(event))
        event.stop()

    def on_mouse_down(self, event: events.MouseDown) -> None:
        app = self.app
        if isinstance(app, JotdownApp):
            app.press_unit(self.unit_id, on_handle=event.x < len(HANDLE))

    def on_mouse_move(self, event: events.MouseMove) -> None:
        app = self.app
        if isinstance(app, JotdownApp):
            app.hover_unit(self.unit_id)

    def on_mouse_up(self, event: events.MouseUp) -> None:
        app = self.app
        if isinstance(app, JotdownApp):
            app.release_unit(self.unit_id)
        event.stop()


@dataclass
class UIState:
    status_text: str = ""
    batch_open: bool = False


class JotdownApp(App[None]):
    """Minimal Textual UI embedding the editor session."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#lines {
		height: 1fr;
		border: round $accent;
		padding: 0 1;
	}

	.line-row {
		height: auto;
	}

	#batch-view {
		height: auto;
		max-height: 12;
		border: round $warning;
		padding: 0 1;
		display: none;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}
	"""

    BINDINGS = [
        ("ctrl+c", "quit", "Quit"),
    ]

    def __init__(self, config: EditorConfig) -> None:
        super().__init__()
        self.config = config
        self._state = UIState()
        self.session: EditorSession | None = None
        self.adapter: TextualEditorAdapter | None = None
        self._lines_widget: VerticalScroll | None = None
        self._batch_widget: Static | None = None
        self._status_widget: Static | None = None
        self._swallow_click = False

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        self._lines_widget = VerticalScroll(id="lines")
        yield self._lines_widget
        self._batch_widget = Static("", id="batch-view")
        yield self._batch_widget
        self._status_widget = Static("", id="status-line")
        yield self._status_widget
        yield Footer()

    async def on_mount(self) -> None:
        self.session = create_session(self.config)
        hooks = TextualUIHooks(
            update_lines=self._update_lines,
            update_status=self._update_status,
            show_field=self._show_field,
            focus=self._focus,
            handle_event=self._handle_event,
        )
        self.adapter = TextualEditorAdapter(self.session, hooks)
        self.set_interval(0.1, self._process_timeouts)
        self.set_interval(POLL_INTERVAL_S, self._poll)

    def on_unmount(self) -> None:
        if self.session is not None and self.session.has_unsaved_changes:
            self.session.hard_save()

    def _process_timeouts(self) -> None:
        if self.adapter:
            self.adapter.process_timeouts()

    def _poll(self) -> None:
        if self.adapter:
            self.adapter.poll()

    def click_unit(self, unit_id: str, modifiers: Tuple[str, ...]) -> None:
        if self._swallow_click:
            self._swallow_click = False
            return
        if self.adapter:
            self.adapter.click(unit_id, modifiers=modifiers)

    def press_unit(self, unit_id: str, *, on_handle: bool) -> None:
        self._swallow_click = False
        if self.adapter:
            self.adapter.press(unit_id, on_handle=on_handle)

    def hover_unit(self, unit_id: str) -> None:
        if self.adapter:
            self.adapter.hover(unit_id)

    def release_unit(self, unit_id: Optional[str]) -> None:
        if self.adapter:
            self._swallow_click = self.adapter.release(unit_id)

    def on_mouse_up(self, event: events.MouseUp) -> None:
        # Released outside every row: a drag is cancelled, a sweep still lands.
        self.release_unit(None)

    async def on_key(self, event: events.Key) -> None:
        if not self.adapter:
            return
        if event.key == RELOAD_KEY:
            self.adapter.reload()
            event.stop()
            return
        normalized = self._normalize_key(event)
        if normalized is None:
            return
        key, text, modifiers = normalized
        result = self.adapter.handle_textual_key(key, text=text, modifiers=modifiers)
        if result.consumed:
            event.stop()

    def _update_lines(self, lines: List[RenderedLine]) -> None:
        container = self._lines_widget
        if container is None or self.session is None:
            return
        field = self.session.field
        container.remove_children()
        container.mount(*(LineRow(line.id, row_text(line, field)) for line in lines))

    def _show_field(self, field: Optional[EditField]) -> None:
        widget = self._batch_widget
        if widget is None or self.session is None:
            return
        batch_open = self.session.scope == "batch" and field is not None
        self._state.batch_open = batch_open
        widget.display = batch_open
        if batch_open and field is not None:
            widget.update(field_text(field))

    def _update_status(self, status: str) -> None:
        self._state.status_text = status
        if self._status_widget:
            self._status_widget.update(status)

    def _focus(self, request: FocusRequest) -> None:
        if self._lines_widget is None or request.unit_id is None:
            return
        for row in self._lines_widget.query(LineRow):
            if row.unit_id == request.unit_id:
                row.scroll_visible()
                break

    def _handle_event(self, name: str, payload: Any | None) -> None:
        if not isinstance(payload, PersistenceNotice):
            return
        if name == PERSISTENCE_FAILURE:
            self._update_status(f"{payload.operation} failed: {payload.error}")
        elif name == PERSISTENCE_SAVED and payload.operation == "export":
            self._update_status(f"Saved a copy to {payload.target}")

    @staticmethod
    def _normalize_key(
        event: events.Key,
    ) -> Optional[Tuple[str, Optional[str], Tuple[str, ...]]]:
        if event.key == "ctrl+c":
            return None
        parts = event.key.split("+")
        key = parts[-1]
        modifiers = tuple(parts[:-1])
        character = event.character
        if character and len(character) == 1 and character.isprintable() and not modifiers:
            return (character, character, ())
        if key == "escape":
            return ("ESC", None, modifiers)
        if key in {"enter", "return"}:
            return ("ENTER", None, modifiers)
        return (key, None, modifiers)


def _click_modifiers(event: events.Click) -> Tuple[str, ...]:
    modifiers = []
    if getattr(event, "ctrl", False) or getattr(event, "meta", False):
        modifiers.append("ctrl")
    if getattr(event, "shift", False):
        modifiers.append("shift")
    return tuple(modifiers)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Edit a markdown file line by line.")
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Markdown file to edit (default: $JOTDOWN_DOCUMENT_PATH or notes.md)",
    )
    parser.add_argument(
        "--history",
        type=int,
        default=None,
        help="Number of undo snapshots to keep",
    )
    parser.add_argument(
        "--autosave-debounce-ms",
        type=int,
        default=None,
        help="Coalesce saves made within this window (0 saves on every edit)",
    )
    parser.add_argument(
        "--import-from",
        default=None,
        help="File read by ctrl+x ctrl+f to replace the document (default: import.md)",
    )
    parser.add_argument(
        "--log-preset",
        choices=("development", "production", "quiet"),
        default=os.environ.get("JOTDOWN_LOG_PRESET", "quiet"),
        help="telelog preset; 'quiet' keeps log lines off the terminal",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> EditorConfig:
    overrides: dict[str, object] = {}
    if args.path:
        overrides["document_path"] = args.path
    if args.history is not None:
        overrides["history_capacity"] = args.history
    if args.autosave_debounce_ms is not None:
        overrides["autosave_debounce_ms"] = args.autosave_debounce_ms
    if args.import_from:
        overrides["import_path"] = args.import_from
    return EditorConfig.from_env(**overrides)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)
    telemetry.configure(preset=args.log_preset)
    app = JotdownApp(build_config(args))
    app.run()


if __name__ == "__main__":  # pragma: no cover - manual run
    main()
