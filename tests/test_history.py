import pytest

from jotdown.document import Document, HistoryStack


def make_history(capacity: int = 50) -> HistoryStack:
    return HistoryStack(capacity)


def test_undo_and_redo_walk_snapshots() -> None:
    history = make_history()
    first = Document.from_contents(["a"])
    second = first.update(first.ids[0], "b")
    history.record(first)

    restored = history.undo(second)

    assert restored is first
    assert history.can_redo()
    assert history.redo(first) is second
    assert history.can_undo()


def test_undo_on_empty_stack_returns_none() -> None:
    history = make_history()

    assert history.undo(Document()) is None
    assert history.redo(Document()) is None


def test_recording_clears_redo_branch() -> None:
    history = make_history()
    doc = Document.from_contents(["a"])
    history.record(doc)
    history.undo(doc.update(doc.ids[0], "b"))

    history.record(doc)

    assert not history.can_redo()


def test_history_keeps_most_recent_snapshots() -> None:
    history = make_history()
    document = Document.from_contents(["0"])
    unit_id = document.ids[0]
    snapshots = []
    for step in range(1, 61):
        snapshots.append(document)
        history.record(document)
        document = document.update(unit_id, str(step))

    assert history.undo_depth == 50
    assert history.undo_snapshots() == tuple(snapshots[-50:])


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        HistoryStack(0)


def test_clear_drops_both_stacks() -> None:
    history = make_history()
    doc = Document()
    history.record(doc)
    history.undo(doc)

    history.clear()

    assert (history.undo_depth, history.redo_depth) == (0, 0)
