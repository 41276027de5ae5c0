from __future__ import annotations

from typing import Optional

from jotdown.document import Document, PersistenceFailure
from jotdown.persistence import Autosaver
from jotdown.reorder import Extent
from jotdown.runtime.config import EditorConfig
from jotdown.selection import BatchEditing, Editing, HitTarget, Idle, Selected
from jotdown.session import EditorSession, FocusRequest, PersistenceNotice
from jotdown.session.bus import (
    DOCUMENT_CHANGED,
    DRAG_CHANGED,
    EXTERNAL_CHANGE,
    FOCUS_REQUEST,
    PERSISTENCE_FAILURE,
    PERSISTENCE_SAVED,
)

ROW = Extent(top=0, height=10, width=80)


class MemoryStore:
    def __init__(self, text: str = "", *, fail: bool = False) -> None:
        self.text = text
        self.fail = fail
        self.saves: list[str] = []
        self.path = "memory.md"

    def load(self) -> str:
        if self.fail:
            raise PersistenceFailure("offline", operation="load", target=self.path)
        return self.text

    def save(self, text: str) -> None:
        if self.fail:
            raise PersistenceFailure("offline", operation="save", target=self.path)
        self.text = text
        self.saves.append(text)


class MemoryExporter:
    def __init__(self) -> None:
        self.exports: list[tuple[str, str]] = []

    def export(self, text: str, filename: str) -> str:
        self.exports.append((filename, text))
        return f"exports/{filename}"


class FlagFeed:
    def __init__(self) -> None:
        self.changed = False

    def poll(self) -> bool:
        changed, self.changed = self.changed, False
        return changed


def make_session(
    *contents: str,
    store: Optional[MemoryStore] = None,
    config: Optional[EditorConfig] = None,
    **kwargs: object,
) -> EditorSession:
    document = Document.from_contents(contents or ("a", "b", "c"))
    return EditorSession(document, store=store, config=config, **kwargs)  # type: ignore[arg-type]


def record(session: EditorSession, *events: str) -> list[tuple[str, object]]:
    seen: list[tuple[str, object]] = []
    for event in events:
        session.bus.subscribe(event, lambda payload, name=event: seen.append((name, payload)))
    return seen


# -- opening ----------------------------------------------------------------------


def test_open_blank_store_gives_one_empty_line() -> None:
    session = EditorSession.open(MemoryStore("  \n "))

    assert session.document.contents == ("",)
    assert not session.has_unsaved_changes


def test_open_splits_stored_text() -> None:
    session = EditorSession.open(MemoryStore("# t\nbody"))

    assert session.document.contents == ("# t", "body")


# -- line editing -------------------------------------------------------------------


def test_click_opens_field_and_commit_writes_back() -> None:
    store = MemoryStore()
    session = make_session(store=store)
    a = session.document.ids[0]

    session.click(a)
    session.edit_text("alpha")
    assert session.has_unsaved_changes
    session.commit_edit()

    assert session.document.contents == ("alpha", "b", "c")
    assert session.history.undo_depth == 1
    assert store.saves == ["alpha\nb\nc"]
    assert session.selection.state == Idle()
    assert not session.has_unsaved_changes


def test_commit_without_changes_records_nothing() -> None:
    store = MemoryStore()
    session = make_session(store=store)

    session.click(session.document.ids[0])
    session.commit_edit()

    assert session.history.undo_depth == 0
    assert store.saves == []


def test_clicking_another_line_commits_the_open_one() -> None:
    session = make_session()
    a, b, _ = session.document.ids

    session.click(a)
    session.edit_text("A")
    session.click(b)

    assert session.document.contents[0] == "A"
    assert session.editing_id == b
    assert session.field is not None and session.field.text == "b"


def test_escape_discards_uncommitted_text() -> None:
    store = MemoryStore()
    session = make_session(store=store)

    session.click(session.document.ids[1])
    session.edit_text("changed")
    session.escape()

    assert session.document.contents == ("a", "b", "c")
    assert session.history.undo_depth == 0
    assert store.saves == []
    assert session.field is None


def test_split_line_adds_empty_line_below() -> None:
    session = make_session()
    a = session.document.ids[0]
    seen = record(session, FOCUS_REQUEST)

    session.click(a)
    session.edit_text("first")
    new_id = session.split_line()
    session.flush_deferred()

    assert session.document.contents == ("first", "", "b", "c")
    assert session.editing_id == new_id
    assert session.history.undo_depth == 1
    assert seen[-1] == (FOCUS_REQUEST, FocusRequest(new_id, "start"))


def test_delete_empty_line_moves_to_previous_end() -> None:
    session = make_session("keep", "")
    keep, empty = session.document.ids

    session.click(empty)
    assert session.delete_empty_line()

    assert session.document.contents == ("keep",)
    assert session.editing_id == keep
    assert session.field is not None and session.field.cursor == len("keep")


def test_delete_first_empty_line_returns_to_idle() -> None:
    session = make_session("", "b")

    session.click(session.document.ids[0])
    session.delete_empty_line()

    assert session.document.contents == ("b",)
    assert session.selection.state == Idle()


def test_last_line_is_never_deleted() -> None:
    session = make_session("")

    session.click(session.document.ids[0])

    assert not session.delete_empty_line()
    assert session.document.contents == ("",)
    assert session.history.undo_depth == 0


def test_delete_refused_while_line_has_text() -> None:
    session = make_session("a", "b")

    session.click(session.document.ids[1])

    assert not session.delete_empty_line()


def test_navigation_commits_and_moves() -> None:
    session = make_session()
    a, b, _ = session.document.ids

    session.click(a)
    session.edit_text("A")
    assert session.navigate_next()

    assert session.document.contents[0] == "A"
    assert session.editing_id == b
    assert session.field is not None and session.field.cursor == 0

    assert session.navigate_previous()
    assert session.editing_id == a
    assert session.field is not None and session.field.cursor == 1


def test_navigation_at_edges_stays_put() -> None:
    session = make_session()
    first = session.document.ids[0]

    session.click(first)

    assert not session.navigate_previous()
    assert session.editing_id == first


# -- selection and batch ------------------------------------------------------------


def test_select_all_promotes_after_flush() -> None:
    session = make_session()

    session.select_all()
    assert isinstance(session.selection.state, Selected)
    assert session.has_deferred

    session.flush_deferred()

    assert isinstance(session.selection.state, BatchEditing)
    assert session.scope == "batch"
    assert session.batch.text == "a\nb\nc"


def test_batch_commit_replaces_span() -> None:
    session = make_session("top", "x", "y", "z", "bottom")
    _, x, y, z, _ = session.document.ids

    session.click(x, modifiers=("ctrl",))
    session.click(y, modifiers=("ctrl",))
    session.click(z, modifiers=("meta",))
    session.flush_deferred()
    session.batch_edit_text("p\nq")
    session.commit_batch()

    assert session.document.contents == ("top", "p", "q", "bottom")
    assert session.history.undo_depth == 1
    assert session.selection.state == Idle()
    assert session.scope == "document"


def test_batch_delete_of_everything_leaves_one_line() -> None:
    session = make_session()

    session.select_all()
    session.flush_deferred()
    session.delete_batch()

    assert session.document.contents == ("",)


def test_escape_cancels_batch_without_changes() -> None:
    session = make_session()
    session.select_all()
    session.flush_deferred()
    session.batch_edit_text("gone")

    session.escape()

    assert session.document.contents == ("a", "b", "c")
    assert not session.batch.is_open
    assert session.history.undo_depth == 0


def test_pointer_press_outside_batch_commits_it() -> None:
    session = make_session()
    session.select_all()
    session.flush_deferred()
    session.batch_edit_text("one line")

    session.pointer_down(HitTarget.EMPTY)

    assert session.document.contents == ("one line",)
    assert not session.batch.is_open


def test_open_selection_single_and_many() -> None:
    session = make_session()
    a, b, _ = session.document.ids

    session.click(b, modifiers=("ctrl",))
    assert session.open_selection()
    assert session.selection.state == Editing(b)

    session.escape()
    session.click(a, modifiers=("ctrl",))
    session.click(b, modifiers=("ctrl",))
    assert session.open_selection()
    assert session.scope == "batch"


def test_open_selection_without_selection() -> None:
    assert not make_session().open_selection()


def open_batch_on(session: EditorSession, *unit_ids: str) -> None:
    for unit_id in unit_ids:
        session.click(unit_id, modifiers=("ctrl",))
    session.flush_deferred()
    assert session.scope == "batch"


def test_unchanged_batch_commit_keeps_ids_and_history() -> None:
    store = MemoryStore()
    session = make_session(store=store)
    before = session.document
    open_batch_on(session, *before.ids[:2])

    assert session.commit_batch()

    assert session.document is before
    assert session.history.undo_depth == 0
    assert store.saves == []


def test_plain_click_on_member_of_untouched_batch_edits_it() -> None:
    session = make_session()
    a, b, _ = session.document.ids
    open_batch_on(session, a, b)

    outcome = session.click(b)

    assert outcome.status == "edit"
    assert session.scope == "editing"
    assert session.editing_id == b
    assert session.field is not None and session.field.text == "b"
    assert session.history.undo_depth == 0


def test_third_toggle_grows_the_batch() -> None:
    session = make_session()
    a, b, c = session.document.ids
    open_batch_on(session, a, b)

    session.click(c, modifiers=("ctrl",))
    assert session.selection.state == Selected((a, b, c))
    session.flush_deferred()

    assert session.selection.state == BatchEditing((a, b, c), "a\nb\nc")
    assert session.batch.text == "a\nb\nc"
    assert session.document.ids == (a, b, c)
    assert session.history.undo_depth == 0


def test_toggle_off_inside_batch_shrinks_it_and_keeps_the_gap() -> None:
    session = make_session()
    a, b, c = session.document.ids
    open_batch_on(session, a, b, c)

    session.click(b, modifiers=("ctrl",))
    session.flush_deferred()

    assert session.batch.ids == (a, c)
    assert session.batch.text == "a\nc"
    session.commit_batch()
    assert session.document.contents == ("a", "b", "c")


def test_toggle_down_to_one_line_leaves_batch() -> None:
    session = make_session()
    a, b, _ = session.document.ids
    open_batch_on(session, a, b)

    session.click(b, modifiers=("ctrl",))
    session.flush_deferred()

    assert session.scope == "document"
    assert session.selection.state == Selected((a,))


def test_range_click_inside_batch_extends_from_first_line() -> None:
    session = make_session("a", "b", "c", "d")
    a, b, c, d = session.document.ids
    open_batch_on(session, a, b)

    session.click(d, modifiers=("shift",))
    session.flush_deferred()

    assert session.batch.ids == (a, b, c, d)


def test_click_on_member_of_edited_batch_commits_and_drops_gesture() -> None:
    session = make_session()
    a, b, _ = session.document.ids
    open_batch_on(session, a, b)
    session.batch_edit_text("x\ny")

    outcome = session.click(a)

    assert outcome.status == "stale_target"
    assert not outcome.changed
    assert session.document.contents == ("x", "y", "c")
    assert session.selection.state == Idle()
    assert session.history.undo_depth == 1


def test_toggle_on_member_of_edited_batch_commits_first() -> None:
    session = make_session()
    a, b, _ = session.document.ids
    open_batch_on(session, a, b)
    session.batch_edit_text("ab")

    outcome = session.click(b, modifiers=("ctrl",))

    assert outcome.status == "stale_target"
    assert session.document.contents == ("ab", "c")
    assert session.scope == "document"


def test_click_outside_edited_batch_still_lands() -> None:
    session = make_session()
    a, b, c = session.document.ids
    open_batch_on(session, a, b)
    session.batch_edit_text("ab")

    session.click(c)

    assert session.document.contents == ("ab", "c")
    assert session.editing_id == c


def test_dragging_member_of_untouched_batch_keeps_selection() -> None:
    session = make_session()
    a, b, c = session.document.ids
    open_batch_on(session, a, b)

    assert session.begin_drag(b)

    assert not session.batch.is_open
    assert session.selection.state == Selected((a, b))
    assert session.reorder.active
    session.drag_over(c, 8, ROW)
    assert session.drop(c).status == "moved"
    assert session.document.contents == ("a", "c", "b")


def test_dragging_member_of_edited_batch_is_dropped() -> None:
    session = make_session()
    a, b, _ = session.document.ids
    open_batch_on(session, a, b)
    session.batch_edit_text("x")

    assert not session.begin_drag(a)

    assert session.document.contents == ("x", "c")
    assert not session.reorder.active


# -- drag and drop ------------------------------------------------------------------


def test_drag_and_drop_reorders_with_one_snapshot() -> None:
    store = MemoryStore()
    session = make_session(store=store)
    a, _, c = session.document.ids
    seen = record(session, DRAG_CHANGED)

    session.begin_drag(a)
    session.drag_over(c, 8, ROW)
    result = session.drop(c)

    assert result.status == "moved"
    assert session.document.contents == ("b", "c", "a")
    assert session.history.undo_depth == 1
    assert store.saves[-1] == "b\nc\na"
    assert seen[-1] == (DRAG_CHANGED, None)


def test_drag_keeps_selection_when_dragging_a_member() -> None:
    session = make_session()
    a, b, _ = session.document.ids
    session.click(a, modifiers=("ctrl",))
    session.click(b, modifiers=("ctrl",))

    session.begin_drag(b)

    assert session.selection.state == Selected((a, b))


def test_escape_cancels_drag() -> None:
    session = make_session()
    session.begin_drag(session.document.ids[0])

    session.escape()

    assert not session.reorder.active
    assert session.drop(session.document.ids[2]).status == "no_drag"


# -- history ------------------------------------------------------------------------


def test_undo_and_redo_are_inverse() -> None:
    session = make_session()
    original = session.document
    a, _, c = original.ids
    session.begin_drag(a)
    session.drag_over(c, 8, ROW)
    session.drop(c)
    moved = session.document

    assert session.undo()
    assert session.document is original
    assert session.redo()
    assert session.document is moved
    assert not session.redo()


def test_undo_discards_open_edit() -> None:
    session = make_session()
    session.click(session.document.ids[0])
    session.edit_text("x")
    session.commit_edit()
    session.click(session.document.ids[1])
    session.edit_text("unsaved")

    session.undo()

    assert session.document.contents == ("a", "b", "c")
    assert session.field is None


def test_history_bound_follows_config() -> None:
    session = make_session("0", config=EditorConfig(history_capacity=3))
    unit_id = session.document.ids[0]
    for step in range(1, 6):
        session.click(unit_id)
        session.edit_text(str(step))
        session.commit_edit()

    assert session.history.undo_depth == 3
    assert [d.contents for d in session.history.undo_snapshots()] == [("2",), ("3",), ("4",)]


# -- whole-document operations --------------------------------------------------------


def test_import_replaces_everything_in_one_step() -> None:
    session = make_session()
    before = session.document
    session.click(before.ids[0])

    session.import_text("l1\nl2\nl3")

    assert session.document.contents == ("l1", "l2", "l3")
    assert set(session.document.ids).isdisjoint(before.ids)
    assert session.history.undo_snapshots() == (before,)
    assert session.selection.state == Idle()


def test_new_document_is_undoable() -> None:
    session = make_session()

    session.new_document()
    assert session.document.contents == ("",)

    session.undo()
    assert session.document.contents == ("a", "b", "c")


def test_export_writes_copy_and_notifies() -> None:
    exporter = MemoryExporter()
    session = make_session(exporter=exporter)
    seen = record(session, PERSISTENCE_SAVED)

    target = session.export()

    assert target == "exports/notes.md"
    assert exporter.exports == [("notes.md", "a\nb\nc")]
    assert seen == [(PERSISTENCE_SAVED, PersistenceNotice("export", "exports/notes.md"))]


def test_hard_save_commits_open_field() -> None:
    store = MemoryStore()
    session = make_session(store=store)
    session.click(session.document.ids[2])
    session.edit_text("C")

    assert session.hard_save()

    assert store.text == "a\nb\nC"
    assert session.field is None
    assert not session.has_unsaved_changes


# -- persistence ----------------------------------------------------------------------


def test_failed_save_is_reported_and_edit_kept() -> None:
    store = MemoryStore(fail=True)
    session = make_session(store=store)
    seen = record(session, PERSISTENCE_FAILURE)

    session.click(session.document.ids[0])
    session.edit_text("kept")
    session.commit_edit()

    assert session.document.contents[0] == "kept"
    assert session.has_unsaved_changes
    assert len(seen) == 1
    notice = seen[0][1]
    assert isinstance(notice, PersistenceNotice)
    assert notice.operation == "save"
    assert notice.target == "memory.md"


def test_escape_never_persists() -> None:
    store = MemoryStore()
    session = make_session(store=store)
    session.select_all()
    session.flush_deferred()

    session.escape()

    assert store.saves == []


def test_external_change_then_reload() -> None:
    store = MemoryStore("a\nb")
    feed = FlagFeed()
    session = EditorSession.open(store, change_feed=feed)
    seen = record(session, EXTERNAL_CHANGE, DOCUMENT_CHANGED)
    session.click(session.document.ids[0])
    session.edit_text("mine")
    session.commit_edit()

    store.text = "theirs"
    feed.changed = True
    session.poll()
    assert session.external_change_pending

    assert session.reload()

    assert session.document.contents == ("theirs",)
    assert not session.external_change_pending
    assert session.history.undo_depth == 0
    assert (EXTERNAL_CHANGE, None) in seen


def test_failed_reload_keeps_document() -> None:
    store = MemoryStore("a")
    session = EditorSession.open(store)
    store.fail = True

    assert not session.reload()
    assert session.document.contents == ("a",)


def test_debounced_autosave_flushes_on_poll() -> None:
    now = [0.0]
    store = MemoryStore()
    autosaver = Autosaver(store, debounce_ms=100, clock=lambda: now[0])
    session = make_session(store=store, autosaver=autosaver)

    session.click(session.document.ids[0])
    session.edit_text("x")
    session.commit_edit()
    assert store.saves == []

    now[0] = 0.5
    session.poll()

    assert store.saves == ["x\nb\nc"]
    assert not session.has_unsaved_changes


# -- rendering and focus ----------------------------------------------------------------


def test_render_marks_editing_and_selected_rows() -> None:
    session = make_session("**a**", "b", "c")
    a, b, c = session.document.ids
    session.click(b, modifiers=("ctrl",))
    session.click(c, modifiers=("ctrl",))

    rows = session.render()

    assert [row.id for row in rows] == [a, b, c]
    assert rows[0].markup == "<strong>a</strong>"
    assert [row.selected for row in rows] == [False, True, True]


def test_render_sole_blank_line_shows_placeholder() -> None:
    session = make_session("", config=EditorConfig(placeholder="<p/>"))

    assert session.render()[0].markup == "<p/>"


def test_focus_request_waits_for_flush() -> None:
    session = make_session()
    seen = record(session, FOCUS_REQUEST)

    session.click(session.document.ids[1])
    assert seen == []

    session.flush_deferred()
    assert seen == [(FOCUS_REQUEST, FocusRequest(session.document.ids[1], "end"))]


# -- importing and moving lines ---------------------------------------------------------


class FixedImporter:
    def __init__(self, text: Optional[str] = None, *, fail: bool = False) -> None:
        self.text = text
        self.fail = fail

    def import_document(self) -> Optional[str]:
        if self.fail:
            raise PersistenceFailure("unreadable", operation="import", target="in.md")
        return self.text


def test_import_document_reads_from_importer() -> None:
    store = MemoryStore()
    session = make_session(store=store, importer=FixedImporter("x\ny"))

    document = session.import_document()

    assert document is session.document
    assert session.document.contents == ("x", "y")
    assert store.saves[-1] == "x\ny"


def test_import_document_with_nothing_chosen_keeps_document() -> None:
    session = make_session(importer=FixedImporter(None))

    assert session.import_document() is None
    assert session.document.contents == ("a", "b", "c")
    assert session.history.undo_depth == 0


def test_failed_import_is_reported() -> None:
    session = make_session(importer=FixedImporter(fail=True))
    seen = record(session, PERSISTENCE_FAILURE)

    assert session.import_document() is None

    assert session.document.contents == ("a", "b", "c")
    assert seen == [(PERSISTENCE_FAILURE, PersistenceNotice("import", "in.md", "unreadable"))]


def test_move_line_keeps_ids_and_is_one_undo_step() -> None:
    session = make_session()
    a, b, c = session.document.ids
    session.click(c)

    assert session.move_line(-1)
    assert session.move_line(-1)
    assert not session.move_line(-1)

    assert session.document.ids == (c, a, b)
    assert session.editing_id == c
    assert session.history.undo_depth == 2
    session.undo()
    assert session.document.ids == (a, c, b)


def test_move_line_needs_a_single_target() -> None:
    session = make_session()
    a, b, _ = session.document.ids

    assert not session.move_line(1)
    session.click(a, modifiers=("ctrl",))
    session.click(b, modifiers=("ctrl",))
    assert not session.move_line(1)
