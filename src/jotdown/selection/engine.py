"""Pure reducer resolving gestures into selection transitions."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional

from jotdown.batch import open_batch
from jotdown.document import Document
from jotdown.runtime.telemetry import span

from .gestures import (
    BeginEdit,
    Click,
    ClickModifier,
    DragStarted,
    Escape,
    Gesture,
    HitTarget,
    PointerDown,
    PointerEnter,
    PointerUp,
    Promote,
    SelectAll,
)
from .state import (
    IDLE,
    BatchEditing,
    DragSelect,
    Editing,
    Selected,
    SelectionModel,
)


@dataclass(frozen=True, slots=True)
class SelectionOutcome:
    """Result of reducing one gesture."""

    model: SelectionModel
    changed: bool
    status: str = "ok"
    promote: bool = False


# Each handler takes the concrete gesture type it is registered under.
Handler = Callable[..., SelectionOutcome]


def _outcome(
    before: SelectionModel,
    after: SelectionModel,
    status: str,
    *,
    promote: bool = False,
) -> SelectionOutcome:
    return SelectionOutcome(
        model=after, changed=after != before, status=status, promote=promote
    )


def _unchanged(model: SelectionModel, status: str) -> SelectionOutcome:
    return SelectionOutcome(model=model, changed=False, status=status)


def _select(model: SelectionModel, ids: tuple[str, ...], status: str) -> SelectionOutcome:
    after = SelectionModel(state=Selected(ids), drag_select=None)
    return _outcome(model, after, status, promote=len(ids) > 1)


def _range(document: Document, anchor: str, unit_id: str) -> tuple[str, ...]:
    """Closed index range between ``anchor`` and ``unit_id``, anchor first."""

    start, end = sorted((document.index_of(anchor), document.index_of(unit_id)))
    others = tuple(
        unit.id for unit in document.units[start : end + 1] if unit.id != anchor
    )
    return (anchor,) + others


def _on_click(model: SelectionModel, gesture: Click, document: Document) -> SelectionOutcome:
    if gesture.target.interactive or gesture.unit_id is None:
        return _unchanged(model, "ignored")
    unit_id = gesture.unit_id
    document.index_of(unit_id)

    if gesture.modifier is ClickModifier.TOGGLE:
        current = list(model.selected_ids)
        if unit_id in current:
            current.remove(unit_id)
        else:
            current.append(unit_id)
        return _select(model, tuple(current), "toggle")

    if gesture.modifier is ClickModifier.RANGE:
        anchor = model.selected_ids[0] if model.selected_ids else None
        if anchor is None or anchor not in document:
            return _unchanged(model, "no_anchor")
        return _select(model, _range(document, anchor, unit_id), "range")

    if model.drag_select is not None:
        return _unchanged(model, "drag_select_active")
    return _outcome(model, SelectionModel(state=Editing(unit_id)), "edit")


def _on_pointer_down(
    model: SelectionModel, gesture: PointerDown, document: Document
) -> SelectionOutcome:
    if gesture.target is HitTarget.EMPTY:
        # A lone line being typed into stays open while the pointer sweeps.
        lone_edit = model.editing_id is not None and len(document) == 1
        state = model.state if lone_edit else IDLE
        return _outcome(
            model, SelectionModel(state=state, drag_select=DragSelect()), "drag_select"
        )
    if gesture.target is HitTarget.UNIT and gesture.unit_id is not None:
        document.index_of(gesture.unit_id)
        anchored = DragSelect(anchor=gesture.unit_id, ids=(gesture.unit_id,))
        return _outcome(model, replace(model, drag_select=anchored), "drag_select")
    return _unchanged(model, "ignored")


def _on_pointer_enter(
    model: SelectionModel, gesture: PointerEnter, document: Document
) -> SelectionOutcome:
    live = model.drag_select
    if live is None:
        return _unchanged(model, "ignored")
    if live.anchor is not None:
        ids = _range(document, live.anchor, gesture.unit_id)
    else:
        document.index_of(gesture.unit_id)
        ids = live.ids if gesture.unit_id in live.ids else live.ids + (gesture.unit_id,)
    return _outcome(model, replace(model, drag_select=replace(live, ids=ids)), "drag_select")


def _on_pointer_up(model: SelectionModel, gesture: PointerUp, document: Document) -> SelectionOutcome:
    del gesture
    live = model.drag_select
    if live is None:
        return _unchanged(model, "ignored")
    if not live.ids:
        return _outcome(model, replace(model, drag_select=None), "drag_select_empty")
    ids = tuple(unit_id for unit_id in live.ids if unit_id in document)
    return _select(model, ids, "drag_select_commit")


def _on_escape(model: SelectionModel, gesture: Escape, document: Document) -> SelectionOutcome:
    del gesture, document
    return _outcome(model, SelectionModel(), "escape")


def _on_select_all(model: SelectionModel, gesture: SelectAll, document: Document) -> SelectionOutcome:
    del gesture
    return _select(model, document.ids, "select_all")


def _on_promote(model: SelectionModel, gesture: Promote, document: Document) -> SelectionOutcome:
    del gesture
    state = model.state
    if not isinstance(state, Selected) or len(state) < 2:
        return _unchanged(model, "stale_promotion")
    ids = document.ordered(state.ids)
    combined = open_batch(document, ids)
    after = SelectionModel(state=BatchEditing(ids=ids, combined_text=combined))
    return _outcome(model, after, "batch")


def _on_begin_edit(model: SelectionModel, gesture: BeginEdit, document: Document) -> SelectionOutcome:
    document.index_of(gesture.unit_id)
    return _outcome(model, SelectionModel(state=Editing(gesture.unit_id)), "edit")


def _on_drag_started(
    model: SelectionModel, gesture: DragStarted, document: Document
) -> SelectionOutcome:
    del document
    state = model.state
    if isinstance(state, Selected) and gesture.unit_id in state:
        return _outcome(model, SelectionModel(state=state), "drag_keeps_selection")
    return _outcome(model, SelectionModel(), "drag_clears_selection")


_HANDLERS: Dict[type, Handler] = {
    Click: _on_click,
    PointerDown: _on_pointer_down,
    PointerEnter: _on_pointer_enter,
    PointerUp: _on_pointer_up,
    Escape: _on_escape,
    SelectAll: _on_select_all,
    Promote: _on_promote,
    BeginEdit: _on_begin_edit,
    DragStarted: _on_drag_started,
}


class SelectionEngine:
    """Resolves gestures against the current selection model and document."""

    def __init__(self, *, logger_name: Optional[str] = None) -> None:
        self._logger_name = logger_name

    def reduce(
        self, model: SelectionModel, gesture: Gesture, document: Document
    ) -> SelectionOutcome:
        handler = _HANDLERS.get(type(gesture))
        if handler is None:
            raise TypeError(f"Unsupported gesture {gesture!r}")
        with span(
            "selection::reduce",
            logger_name=self._logger_name,
            component="selection",
            metadata={
                "gesture": type(gesture).__name__,
                "state": type(model.state).__name__,
            },
        ) as handle:
            outcome = handler(model, gesture, document)
            handle.add_metadata("status", outcome.status)
            return outcome


__all__ = ["SelectionEngine", "SelectionOutcome"]
