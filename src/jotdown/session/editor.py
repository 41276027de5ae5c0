"""Editor session: the single owner of document, history, and interaction state.

Hosts translate their input events into the synchronous methods below and
re-render from :meth:`EditorSession.render` after each call. Anything that
must happen after the host has drawn the new state (promoting a selection
to a batch edit, moving focus into a freshly opened field) is queued with
:meth:`EditorSession.schedule` and run by :meth:`EditorSession.flush_deferred`.
"""

from __future__ import annotations

from collections import deque
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Callable, ContextManager, Deque, Iterable, Literal, Optional

from jotdown.batch import BatchEditor
from jotdown.document import Document, EditField, HistoryStack, PersistenceFailure, Position
from jotdown.persistence import (
    Autosaver,
    ChangeFeed,
    DocumentExporter,
    DocumentImporter,
    DocumentStore,
)
from jotdown.render import LineRenderer
from jotdown.reorder import DropResult, Extent, ReorderEngine
from jotdown.runtime import telemetry
from jotdown.runtime.config import EditorConfig
from jotdown.selection import (
    BatchEditing,
    BeginEdit,
    Click,
    ClickModifier,
    DragStarted,
    Editing,
    Escape,
    Gesture,
    HitTarget,
    PointerDown,
    PointerEnter,
    PointerUp,
    Promote,
    SelectAll,
    Selected,
    SelectionEngine,
    SelectionModel,
    SelectionOutcome,
)

from .bus import (
    BATCH_CLOSED,
    BATCH_OPENED,
    DOCUMENT_CHANGED,
    DRAG_CHANGED,
    EXTERNAL_CHANGE,
    FIELD_CHANGED,
    FOCUS_REQUEST,
    PERSISTENCE_FAILURE,
    PERSISTENCE_SAVED,
    SELECTION_CHANGED,
    EventBus,
)

Scope = Literal["document", "editing", "batch"]
CursorPlacement = Literal["start", "end"]


@dataclass(frozen=True, slots=True)
class RenderedLine:
    """Display row for one line unit."""

    id: str
    content: str
    markup: str
    editing: bool = False
    selected: bool = False
    drag_selected: bool = False
    dragging: bool = False
    drop_position: Optional[Position] = None


@dataclass(frozen=True, slots=True)
class FocusRequest:
    """Ask the host to focus an edit field; ``unit_id`` is ``None`` for the batch editor."""

    unit_id: Optional[str]
    cursor: CursorPlacement = "end"


@dataclass(frozen=True, slots=True)
class PersistenceNotice:
    operation: str
    target: Optional[str] = None
    error: Optional[str] = None


def document_from_text(text: str) -> Document:
    """Blank or whitespace-only text loads as a single empty line."""

    if not text.strip():
        return Document()
    return Document.deserialize(text)


class Mutation(AbstractContextManager["Mutation"]):
    """One user-visible document change.

    The block runs inside a telemetry span. On a clean exit, if the working
    document differs from the one the block started with, the starting
    document is pushed onto history, the new one is installed, and the
    session persists it.
    """

    def __init__(self, session: "EditorSession", label: str, *, record: bool = True) -> None:
        self.session = session
        self.label = label
        self.record = record
        self.before = session.document
        self._working: Optional[Document] = None
        self._span_cm: Optional[ContextManager[telemetry.SpanHandle]] = None
        self.handle: Optional[telemetry.SpanHandle] = None

    @property
    def document(self) -> Document:
        return self._working if self._working is not None else self.before

    @property
    def changed(self) -> bool:
        return self._working is not None and self._working is not self.before

    def apply(self, document: Document) -> Document:
        self._working = document
        return document

    def __enter__(self) -> "Mutation":
        self._span_cm = telemetry.span(
            name=f"session::{self.label}",
            logger_name=self.session.logger_name,
            component="session",
            metadata={"units": len(self.before), "version": self.before.version},
        )
        self.handle = self._span_cm.__enter__()
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc_type is None and self.changed:
                if self.record:
                    self.session.history.record(self.before)
                self.session._install(self.document)
                if self.handle is not None:
                    self.handle.add_metadata("units_after", len(self.document))
        finally:
            if self._span_cm is not None:
                self._span_cm.__exit__(exc_type, exc, tb)
        return False


class EditorSession:
    """Owns one document and every piece of state needed to edit it."""

    def __init__(
        self,
        document: Optional[Document] = None,
        *,
        config: Optional[EditorConfig] = None,
        store: Optional[DocumentStore] = None,
        exporter: Optional[DocumentExporter] = None,
        importer: Optional[DocumentImporter] = None,
        change_feed: Optional[ChangeFeed] = None,
        autosaver: Optional[Autosaver] = None,
        bus: Optional[EventBus] = None,
        renderer: Optional[LineRenderer] = None,
        logger_name: Optional[str] = None,
    ) -> None:
        self.config = config or EditorConfig()
        self.logger_name = logger_name
        self.bus = bus or EventBus()
        self.document = document if document is not None else Document()
        self.history = HistoryStack(self.config.history_capacity)
        self.selection = SelectionModel()
        self.selection_engine = SelectionEngine(logger_name=logger_name)
        self.reorder = ReorderEngine(logger_name=logger_name)
        self.batch = BatchEditor()
        self.field: Optional[EditField] = None
        self.renderer = renderer or LineRenderer(
            placeholder=self.config.placeholder,
            highlight_delimiter=self.config.highlight_delimiter,
        )
        self.store = store
        self.exporter = exporter
        self.importer = importer
        self.change_feed = change_feed
        if autosaver is None and store is not None:
            autosaver = Autosaver(
                store,
                debounce_ms=self.config.autosave_debounce_ms,
                logger_name=logger_name,
            )
        self.autosaver = autosaver
        self.external_change_pending = False
        # Action id waiting for a repeat press before discarding unsaved work.
        self.awaiting_confirmation: Optional[str] = None
        self._deferred: Deque[Callable[[], None]] = deque()
        self._persisted: Optional[Document] = self.document
        self._queued: Optional[Document] = None

    @classmethod
    def open(
        cls,
        store: DocumentStore,
        **kwargs: object,
    ) -> "EditorSession":
        """Load the stored document; ``PersistenceFailure`` propagates to the caller."""

        text = store.load()
        session = cls(document_from_text(text), store=store, **kwargs)  # type: ignore[arg-type]
        telemetry.record_event(
            "session.open",
            data={"units": len(session.document)},
            logger_name=session.logger_name,
        )
        return session

    # -- derived state -------------------------------------------------------

    @property
    def scope(self) -> Scope:
        if self.batch.is_open:
            return "batch"
        if self.field is not None:
            return "editing"
        return "document"

    @property
    def editing_id(self) -> Optional[str]:
        return self.selection.editing_id

    @property
    def selected_ids(self) -> tuple[str, ...]:
        return self.selection.selected_ids

    @property
    def active_field(self) -> Optional[EditField]:
        return self.batch.field if self.batch.is_open else self.field

    @property
    def has_unsaved_changes(self) -> bool:
        if self.document is not self._persisted:
            return True
        if self.batch.is_open:
            return self.batch.is_dirty(self.document)
        if self.field is not None and self.editing_id in self.document:
            return self.field.text != self.document.get(self.editing_id).content
        return False

    def render(self) -> list[RenderedLine]:
        sole = len(self.document) == 1
        editing = self.selection.editing_id
        selected = set(self.selection.selected_ids)
        live = self.selection.drag_select
        swept = set(live.ids) if live is not None else set()
        drag = self.reorder.drag
        rows: list[RenderedLine] = []
        for unit in self.document:
            drop_position = None
            if drag is not None and drag.over_id == unit.id:
                drop_position = drag.over_position
            rows.append(
                RenderedLine(
                    id=unit.id,
                    content=unit.content,
                    markup=self.renderer.render(unit.content, sole_unit=sole),
                    editing=unit.id == editing,
                    selected=unit.id in selected,
                    drag_selected=unit.id in swept,
                    dragging=drag is not None and drag.dragged_id == unit.id,
                    drop_position=drop_position,
                )
            )
        return rows

    # -- deferred work -------------------------------------------------------

    def schedule(self, callback: Callable[[], None]) -> None:
        self._deferred.append(callback)

    @property
    def has_deferred(self) -> bool:
        return bool(self._deferred)

    def flush_deferred(self) -> int:
        """Run queued callbacks, including any they queue; return how many ran."""

        ran = 0
        while self._deferred:
            callback = self._deferred.popleft()
            callback()
            ran += 1
        return ran

    # -- pointer and selection gestures ---------------------------------------

    def click(
        self,
        unit_id: Optional[str],
        *,
        modifiers: Iterable[str] = (),
        target: HitTarget = HitTarget.UNIT,
    ) -> SelectionOutcome:
        modifier = ClickModifier.from_keys(modifiers)
        return self._reduce(Click(unit_id, modifier, target))

    def pointer_down(
        self, target: HitTarget, unit_id: Optional[str] = None
    ) -> SelectionOutcome:
        return self._reduce(PointerDown(target, unit_id))

    def pointer_enter(self, unit_id: str) -> SelectionOutcome:
        return self._reduce(PointerEnter(unit_id))

    def pointer_up(self) -> SelectionOutcome:
        return self._reduce(PointerUp())

    def select_all(self) -> SelectionOutcome:
        return self._reduce(SelectAll())

    def escape(self) -> SelectionOutcome:
        """Universal cancel: drops drags, batch text and uncommitted line text."""

        self.cancel_drag()
        if self.batch.is_open:
            self._close_batch()
        return self._reduce(Escape())

    def open_selection(self) -> bool:
        """Enter on a selection: one unit opens its field, several open a batch."""

        state = self.selection.state
        if not isinstance(state, Selected) or not state.ids:
            return False
        if len(state) == 1:
            self._reduce(BeginEdit(state.ids[0]))
        else:
            self._reduce(Promote())
        return True

    def edit_unit(self, unit_id: str, cursor: CursorPlacement = "end") -> SelectionOutcome:
        return self._reduce(BeginEdit(unit_id), cursor=cursor)

    def _reduce(self, gesture: Gesture, *, cursor: CursorPlacement = "end") -> SelectionOutcome:
        if self.batch.is_open and self._leaves_batch(gesture):
            if self._reselects(gesture) and not self.batch.is_dirty(self.document):
                self._reopen_selection()
            else:
                self.commit_batch()
                target = getattr(gesture, "unit_id", None)
                if target is not None and target not in self.document:
                    # The line was replaced by the commit.
                    return SelectionOutcome(self.selection, changed=False, status="stale_target")
        outcome = self.selection_engine.reduce(self.selection, gesture, self.document)
        if not outcome.changed:
            return outcome
        model = outcome.model
        if (
            self.field is not None
            and model.editing_id != self.selection.editing_id
            and not isinstance(gesture, Escape)
        ):
            self._commit_field()
        self._apply_model(model, cursor=cursor)
        if outcome.promote:
            self.schedule(self._promote)
        return outcome

    @staticmethod
    def _leaves_batch(gesture: Gesture) -> bool:
        if isinstance(gesture, (Escape, Promote, PointerEnter, PointerUp)):
            return False
        target = getattr(gesture, "target", None)
        return not (isinstance(target, HitTarget) and target.interactive)

    @staticmethod
    def _reselects(gesture: Gesture) -> bool:
        return isinstance(gesture, Click) and gesture.modifier is not ClickModifier.NONE

    def _reopen_selection(self) -> None:
        """Close an unedited batch and go back to selecting its lines."""

        ids = self.batch.ids
        self._close_batch()
        self.selection = SelectionModel(state=Selected(ids))
        self.bus.emit(SELECTION_CHANGED, self.selection)

    def _promote(self) -> None:
        self._reduce(Promote())

    def _apply_model(self, model: SelectionModel, *, cursor: CursorPlacement = "end") -> None:
        previous = self.selection
        self.selection = model

        editing = model.editing_id
        if editing != previous.editing_id:
            if editing is None:
                self.field = None
            else:
                content = self.document.get(editing).content
                self.field = EditField.with_cursor(content, cursor)
                self._request_focus(editing, cursor)

        state = model.state
        if isinstance(state, BatchEditing) and not self.batch.is_open:
            self.batch.open(self.document, state.ids)
            self.bus.emit(BATCH_OPENED, state)
            self._request_focus(None, "end")
        elif not isinstance(state, BatchEditing) and self.batch.is_open:
            self.batch.cancel()
            self.bus.emit(BATCH_CLOSED, None)

        if model != previous:
            self.bus.emit(SELECTION_CHANGED, model)

    def _request_focus(self, unit_id: Optional[str], cursor: CursorPlacement) -> None:
        request = FocusRequest(unit_id=unit_id, cursor=cursor)
        self.schedule(lambda: self.bus.emit(FOCUS_REQUEST, request))

    def _reset_interaction(self) -> None:
        self.reorder.cancel()
        if self.batch.is_open:
            self._close_batch()
        self._apply_model(SelectionModel())

    # -- line editing ----------------------------------------------------------

    def edit_text(self, text: str, cursor: Optional[int] = None) -> None:
        if self.field is None:
            raise RuntimeError("No line is being edited")
        self.field.set_text(text, cursor)

    def set_field_selection(self, start: int, end: Optional[int] = None) -> None:
        field = self.active_field
        if field is None:
            raise RuntimeError("No edit field is open")
        field.select(start, end)

    def field_changed(self) -> None:
        """Tell listeners the active field was rewritten by an action."""

        self.bus.emit(FIELD_CHANGED, self.active_field)

    def select_field_text(self) -> bool:
        field = self.active_field
        if field is None:
            return False
        field.select_all()
        self.field_changed()
        return True

    def _commit_field(self) -> bool:
        unit_id = self.editing_id
        if self.field is None or unit_id is None or unit_id not in self.document:
            return False
        with Mutation(self, "commit_edit") as tx:
            tx.apply(tx.document.update(unit_id, self.field.text))
        return tx.changed

    def commit_edit(self) -> bool:
        """Write the open field back and leave editing (blur or click outside)."""

        if self.field is None:
            return False
        changed = self._commit_field()
        self._apply_model(SelectionModel())
        return changed

    def split_line(self) -> Optional[str]:
        """Commit the open line, add an empty line below it, and edit that."""

        unit_id = self.editing_id
        if self.field is None or unit_id is None:
            return None
        with Mutation(self, "split_line") as tx:
            updated = tx.document.update(unit_id, self.field.text)
            updated, new_id = updated.insert_after(unit_id)
            tx.apply(updated)
        self._apply_model(SelectionModel(state=Editing(new_id)), cursor="start")
        return new_id

    def delete_empty_line(self) -> bool:
        """Remove the open line if it is empty and move to the previous one."""

        unit_id = self.editing_id
        if self.field is None or unit_id is None or self.field.text:
            return False
        if len(self.document) <= 1:
            return False
        previous = self.document.previous_id(unit_id)
        with Mutation(self, "delete_line") as tx:
            tx.apply(tx.document.remove(unit_id))
        if previous is None:
            self._apply_model(SelectionModel())
        else:
            self._apply_model(SelectionModel(state=Editing(previous)), cursor="end")
        return True

    def navigate_previous(self, cursor: CursorPlacement = "end") -> bool:
        return self._navigate(-1, cursor)

    def navigate_next(self, cursor: CursorPlacement = "start") -> bool:
        return self._navigate(1, cursor)

    def _navigate(self, step: int, cursor: CursorPlacement) -> bool:
        unit_id = self.editing_id
        if self.field is None or unit_id is None:
            return False
        if step < 0:
            target = self.document.previous_id(unit_id)
        else:
            target = self.document.next_id(unit_id)
        self._commit_field()
        if target is None:
            # No neighbour: stay on this line with the field re-synced.
            self.field = EditField.with_cursor(self.document.get(unit_id).content, cursor)
            self.field_changed()
            return False
        self._apply_model(SelectionModel(state=Editing(target)), cursor=cursor)
        return True

    def move_line(self, step: int) -> bool:
        """Swap the open line, or the one selected line, with its neighbour.

        Text typed into the open field is written back in the same undo step.
        """

        unit_id = self.editing_id
        if unit_id is None and self.scope == "document" and len(self.selected_ids) == 1:
            unit_id = self.selected_ids[0]
        if unit_id is None:
            return False
        if step < 0:
            neighbour = self.document.previous_id(unit_id)
        else:
            neighbour = self.document.next_id(unit_id)
        if neighbour is None:
            return False
        with Mutation(self, "move_line") as tx:
            updated = tx.document
            if self.field is not None:
                updated = updated.update(unit_id, self.field.text)
            tx.apply(updated.reorder(unit_id, neighbour, "before" if step < 0 else "after"))
        return True

    # -- batch editing -----------------------------------------------------------

    def batch_edit_text(self, text: str, cursor: Optional[int] = None) -> None:
        self.batch.edit(text, cursor)

    def commit_batch(self) -> bool:
        if not self.batch.is_open:
            return False
        with Mutation(self, "batch_commit") as tx:
            if tx.handle is not None:
                tx.handle.add_metadata("ids", len(self.batch.ids))
            tx.apply(self.batch.commit(tx.document))
        self.bus.emit(BATCH_CLOSED, None)
        self._apply_model(SelectionModel())
        return True

    def delete_batch(self) -> bool:
        if not self.batch.is_open:
            return False
        with Mutation(self, "batch_delete") as tx:
            tx.apply(self.batch.delete(tx.document))
        self.bus.emit(BATCH_CLOSED, None)
        self._apply_model(SelectionModel())
        return True

    def cancel_batch(self) -> bool:
        if not self.batch.is_open:
            return False
        self._close_batch()
        self._apply_model(SelectionModel())
        return True

    def _close_batch(self) -> None:
        self.batch.cancel()
        self.bus.emit(BATCH_CLOSED, None)

    # -- drag and drop -------------------------------------------------------------

    def begin_drag(self, unit_id: str) -> bool:
        """Start dragging ``unit_id``; ``False`` if a batch commit replaced it."""

        if self.batch.is_open:
            if unit_id in self.batch.ids and not self.batch.is_dirty(self.document):
                self._reopen_selection()
            else:
                self.commit_batch()
        if unit_id not in self.document:
            return False
        self._reduce(DragStarted(unit_id))
        self.reorder.begin(self.document, unit_id)
        self.bus.emit(DRAG_CHANGED, self.reorder.drag)
        return True

    def drag_over(self, target_id: str, pointer_y: float, extent: Extent) -> bool:
        moved = self.reorder.hover(target_id, pointer_y, extent)
        if moved:
            self.bus.emit(DRAG_CHANGED, self.reorder.drag)
        return moved

    def drag_leave(
        self, target_id: str, pointer_x: float, pointer_y: float, extent: Extent
    ) -> bool:
        cleared = self.reorder.leave(target_id, pointer_x, pointer_y, extent)
        if cleared:
            self.bus.emit(DRAG_CHANGED, self.reorder.drag)
        return cleared

    def drop(self, target_id: Optional[str]) -> DropResult:
        result = self.reorder.drop(self.document, target_id)
        if result.document is not None:
            with Mutation(self, "reorder") as tx:
                tx.apply(result.document)
        if result.status != "no_drag":
            self.bus.emit(DRAG_CHANGED, None)
        return result

    def cancel_drag(self) -> bool:
        cancelled = self.reorder.cancel()
        if cancelled:
            self.bus.emit(DRAG_CHANGED, None)
        return cancelled

    # -- history -----------------------------------------------------------------

    def undo(self) -> bool:
        previous = self.history.undo(self.document)
        if previous is None:
            return False
        self._reset_interaction()
        with Mutation(self, "undo", record=False) as tx:
            tx.apply(previous)
        return True

    def redo(self) -> bool:
        following = self.history.redo(self.document)
        if following is None:
            return False
        self._reset_interaction()
        with Mutation(self, "redo", record=False) as tx:
            tx.apply(following)
        return True

    # -- whole-document operations --------------------------------------------------

    def import_text(self, text: str) -> Document:
        """Replace everything with ``text`` (one undo step) and return to idle."""

        self._reset_interaction()
        with Mutation(self, "import") as tx:
            tx.apply(tx.document.replace_all(text.split("\n")))
        return self.document

    def import_document(self) -> Optional[Document]:
        """Replace everything with text from the importer.

        Returns ``None`` when there is no importer, nothing was chosen, or
        the read failed (failures are reported on the bus).
        """

        if self.importer is None:
            return None
        try:
            text = self.importer.import_document()
        except PersistenceFailure as exc:
            self._report_failure(exc)
            return None
        if text is None:
            return None
        return self.import_text(text)

    def new_document(self) -> Document:
        self._reset_interaction()
        with Mutation(self, "new_document") as tx:
            tx.apply(tx.document.replace_all(()))
        return self.document

    def reload(self) -> bool:
        """Replace the document with the stored copy, dropping history.

        Used after an external change; the newest stored text always wins.
        """

        if self.store is None:
            return False
        try:
            text = self.store.load()
        except PersistenceFailure as exc:
            self._report_failure(exc)
            return False
        self._reset_interaction()
        if self.autosaver is not None:
            self.autosaver.discard()
        self.history.clear()
        self.document = document_from_text(text)
        self._persisted = self.document
        self._queued = None
        self.external_change_pending = False
        self.bus.emit(DOCUMENT_CHANGED, self.document)
        telemetry.record_event(
            "session.reload",
            data={"units": len(self.document)},
            logger_name=self.logger_name,
        )
        return True

    def export(self, filename: Optional[str] = None) -> Optional[str]:
        """Write a standalone copy through the exporter; return its location."""

        if self.exporter is None:
            return None
        name = filename or self.config.export_filename
        try:
            target = self.exporter.export(self.document.serialize(), name)
        except PersistenceFailure as exc:
            self._report_failure(exc)
            return None
        self._persisted = self.document
        self.bus.emit(PERSISTENCE_SAVED, PersistenceNotice("export", target))
        return target

    def hard_save(self) -> bool:
        """Commit whatever is open, return to idle, and write through immediately."""

        if self.batch.is_open:
            self.commit_batch()
        if self.field is not None:
            self.commit_edit()
        self._apply_model(SelectionModel())
        if self.autosaver is None:
            return False
        self._queued = self.document
        try:
            self.autosaver.notify(self.document.serialize())
            self.autosaver.flush()
        except PersistenceFailure as exc:
            self._report_failure(exc)
            return False
        self._mark_saved()
        return True

    # -- persistence plumbing -------------------------------------------------------

    def poll(self) -> None:
        """Drive debounced autosave and look for external changes."""

        if self.autosaver is not None and self.autosaver.pending:
            try:
                written = self.autosaver.process()
            except PersistenceFailure as exc:
                self._report_failure(exc)
            else:
                if written:
                    self._mark_saved()
        if self.change_feed is not None and self.change_feed.poll():
            self.external_change_pending = True
            self.bus.emit(EXTERNAL_CHANGE, None)

    def _install(self, document: Document) -> None:
        self.document = document
        self.bus.emit(DOCUMENT_CHANGED, document)
        self._persist()

    def _persist(self) -> None:
        if self.autosaver is None:
            return
        self._queued = self.document
        try:
            written = self.autosaver.notify(self.document.serialize())
        except PersistenceFailure as exc:
            self._report_failure(exc)
            return
        if written:
            self._mark_saved()

    def _mark_saved(self) -> None:
        if self._queued is None:
            return
        self._persisted = self._queued
        self._queued = None
        target = getattr(self.store, "path", None)
        self.bus.emit(
            PERSISTENCE_SAVED,
            PersistenceNotice("save", str(target) if target is not None else None),
        )

    def _report_failure(self, exc: PersistenceFailure) -> None:
        telemetry.record_event(
            "persistence.failure",
            level="error",
            data={"operation": exc.operation, "target": exc.target, "error": str(exc)},
            logger_name=self.logger_name,
        )
        self.bus.emit(
            PERSISTENCE_FAILURE,
            PersistenceNotice(exc.operation, exc.target, str(exc)),
        )


__all__ = [
    "EditorSession",
    "Mutation",
    "RenderedLine",
    "FocusRequest",
    "PersistenceNotice",
    "Scope",
    "document_from_text",
]
