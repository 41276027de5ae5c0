"""Minimal Textual adapter that wires EditorSession events into UI callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from jotdown.actions import ActionResult, KeyInput
from jotdown.document import EditField
from jotdown.keymaps import KeyStroke
from jotdown.reorder import Extent
from jotdown.runtime import telemetry
from jotdown.selection import HitTarget
from jotdown.session import EVENTS, EditorSession, FocusRequest, KeyDispatcher, RenderedLine
from jotdown.session.bus import FOCUS_REQUEST

LOGGER_NAME = "jotdown.adapters.textual"

# A terminal row is one cell tall, so the drop side follows the drag direction.
ROW_EXTENT = Extent(top=0, height=1, width=1)


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class PointerPress:
    """A held mouse button; ``started`` once the pointer has left the pressed row."""

    unit_id: str
    on_handle: bool
    started: bool = False
    over_id: Optional[str] = None


@dataclass(slots=True)
class TextualUIHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_lines: Callable[[List[RenderedLine]], None]
    update_status: Callable[[str], None] = _noop
    show_field: Callable[[Optional[EditField]], None] = _noop
    focus: Callable[[FocusRequest], None] = _noop
    handle_event: Callable[[str, object | None], None] = _noop
    log: Callable[[str], None] = _noop


class TextualEditorAdapter:
    """Bridges EditorSession + KeyDispatcher to a Textual-friendly surface.

    Keys go to the dispatcher first. Anything it leaves unconsumed while a
    field is open is treated as plain typing into that field. After every
    call the session's deferred work is flushed and the rows are redrawn.
    """

    def __init__(
        self,
        session: EditorSession,
        hooks: TextualUIHooks,
        *,
        dispatcher: KeyDispatcher | None = None,
    ) -> None:
        self.session = session
        self.hooks = hooks
        self.dispatcher = dispatcher or KeyDispatcher(session)
        self._press: Optional[PointerPress] = None
        self._unsubscribe = [
            session.bus.subscribe(
                event, lambda payload, name=event: self._handle_event(name, payload)
            )
            for event in EVENTS
        ]
        self._refresh()

    def close(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe.clear()

    # -- input -----------------------------------------------------------------

    def handle_textual_key(
        self,
        key: str,
        *,
        text: Optional[str] = None,
        modifiers: Iterable[str] = (),
    ) -> ActionResult:
        """Translate a Textual key event into a KeyInput and dispatch it."""

        key_input = KeyInput(key=key, text=text, modifiers=tuple(modifiers))
        self._log_state("key ->", key=key, text=text, mods=key_input.modifiers)
        result = self.dispatcher.handle_key(key_input)
        if not result.consumed and self._type_into_field(key_input):
            result = ActionResult(consumed=True, status="typed")
        self._after_result(result)
        self._log_state(
            "result <-",
            consumed=result.consumed,
            status=result.status,
            message=result.message,
            timeout_ms=result.timeout_ms,
        )
        return result

    def click(
        self,
        unit_id: Optional[str],
        *,
        modifiers: Iterable[str] = (),
        target: HitTarget = HitTarget.UNIT,
    ) -> None:
        self.session.click(unit_id, modifiers=modifiers, target=target)
        self._refresh()

    def pointer_down(self, target: HitTarget, unit_id: Optional[str] = None) -> None:
        self.session.pointer_down(target, unit_id)
        self._refresh()

    def pointer_enter(self, unit_id: str) -> None:
        self.session.pointer_enter(unit_id)
        self._refresh()

    def pointer_up(self) -> None:
        self.session.pointer_up()
        self._refresh()

    # -- held-button gestures ----------------------------------------------------

    def press(self, unit_id: str, *, on_handle: bool = False) -> None:
        """Mouse button down on a row.

        Nothing reaches the session until the pointer moves onto another
        row, so a press that is released in place stays an ordinary click.
        From the handle the gesture becomes a reorder drag; from the row body
        it sweeps a selection.
        """

        self._press = PointerPress(unit_id, on_handle)

    def hover(self, unit_id: str) -> bool:
        """Pointer over ``unit_id`` with the button held; ``True`` if anything changed."""

        press = self._press
        if press is None or unit_id == press.over_id:
            return False
        if not press.started:
            if unit_id == press.unit_id:
                return False
            if not self._start_gesture(press):
                return False
        press.over_id = unit_id
        if press.on_handle:
            self.session.drag_over(unit_id, self._drop_side(press.unit_id, unit_id), ROW_EXTENT)
        else:
            self.session.pointer_enter(unit_id)
        self._refresh()
        return True

    def release(self, unit_id: Optional[str]) -> bool:
        """Button released over ``unit_id`` (``None`` outside the rows).

        Returns ``True`` when a drag or sweep ended here, in which case the
        host should swallow the click event that may follow.
        """

        press, self._press = self._press, None
        if press is None or not press.started:
            return False
        if press.on_handle:
            result = self.session.drop(unit_id)
            self.hooks.update_status(result.status)
        else:
            self.session.pointer_up()
        self._refresh()
        return True

    def _start_gesture(self, press: PointerPress) -> bool:
        if press.on_handle:
            if not self.session.begin_drag(press.unit_id):
                self._press = None
                self._refresh()
                return False
        else:
            self.session.pointer_down(HitTarget.UNIT, press.unit_id)
            if self.session.selection.drag_select is None:
                self._press = None
                self._refresh()
                return False
        press.started = True
        return True

    def _drop_side(self, dragged_id: str, target_id: str) -> float:
        document = self.session.document
        below = document.index_of(target_id) > document.index_of(dragged_id)
        return ROW_EXTENT.bottom if below else ROW_EXTENT.top

    def process_timeouts(self) -> Dict[str, ActionResult]:
        """Forward expired key-sequence timers and surface results to the UI."""

        results = self.dispatcher.process_timeouts()
        for scope, outcome in results.items():
            self.hooks.update_status(f"{scope}:{outcome.status}")
            self._log_state("timeout ->", scope=scope, status=outcome.status)
        if results:
            self._refresh()
        return results

    def poll(self) -> None:
        """Run due autosaves and check for edits made outside this session."""

        self.session.poll()
        if self.session.external_change_pending:
            self.hooks.update_status("File changed on disk; press ctrl+o to reload")
        self._refresh()

    def reload(self) -> bool:
        reloaded = self.session.reload()
        self._refresh()
        return reloaded

    # -- plain typing --------------------------------------------------------------

    def _type_into_field(self, key: KeyInput) -> bool:
        field = self.session.active_field
        stroke = KeyStroke(key.key, key.modifiers)
        if field is None or {"ctrl", "alt"} & set(stroke.modifiers):
            return False
        name = stroke.key
        if key.text and len(key.text) == 1 and key.text.isprintable():
            field.replace_selection(key.text)
        elif name == "SPACE":
            field.replace_selection(" ")
        elif name == "ENTER" and self.session.scope == "batch":
            field.replace_selection("\n")
        elif name == "BACKSPACE":
            if field.selection_start == field.selection_end:
                field.select(field.cursor - 1, field.cursor)
            field.replace_selection("")
        elif name == "DELETE":
            if field.selection_start == field.selection_end:
                field.select(field.cursor, field.cursor + 1)
            field.replace_selection("")
        elif name == "LEFT":
            field.select(field.selection_start if field.selected_text else field.cursor - 1)
        elif name == "RIGHT":
            field.select(field.selection_end if field.selected_text else field.cursor + 1)
        elif name == "HOME":
            field.select(0)
        elif name == "END":
            field.select(len(field.text))
        else:
            return False
        self.session.field_changed()
        return True

    # -- output ----------------------------------------------------------------------

    def _after_result(self, result: ActionResult) -> None:
        status = result.message or result.status
        if status and status not in ("ok", "typed"):
            self.hooks.update_status(status)
        self._refresh()

    def _refresh(self) -> None:
        self.session.flush_deferred()
        self.hooks.update_lines(self.session.render())
        self.hooks.show_field(self.session.active_field)

    def _handle_event(self, name: str, payload: object | None) -> None:
        self._log_state("event ->", event=name, payload=payload)
        if name == FOCUS_REQUEST and isinstance(payload, FocusRequest):
            self.hooks.focus(payload)
        self.hooks.handle_event(name, payload)

    def _log_state(self, prefix: str, **fields: object) -> None:
        snapshot = self._state_metadata()
        snapshot.update({k: v for k, v in fields.items() if v is not None})
        parts = [prefix] + [f"{key}={value!r}" for key, value in snapshot.items()]
        self.hooks.log(" ".join(parts))
        telemetry.record_event(
            "adapter.state", level="debug", data=snapshot, logger_name=LOGGER_NAME
        )

    def _state_metadata(self) -> Dict[str, object]:
        session = self.session
        return {
            "scope": session.scope,
            "editing": session.editing_id,
            "selected": len(session.selected_ids),
            "units": len(session.document),
            "pending": self.dispatcher.pending_tokens,
            "unsaved": session.has_unsaved_changes,
        }


__all__ = ["TextualEditorAdapter", "TextualUIHooks"]
