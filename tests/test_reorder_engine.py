import pytest

from jotdown.document import Document, NotFound
from jotdown.reorder import DragState, Extent, ReorderEngine, drop_position

ROW = Extent(top=10, height=20, left=0, width=100)


def make_document(*contents: str) -> Document:
    return Document.from_contents(contents or ("a", "b", "c"))


def test_drop_position_splits_at_midpoint() -> None:
    assert drop_position(19.9, ROW) == "before"
    assert drop_position(20, ROW) == "after"


def test_drag_first_after_last() -> None:
    document = make_document()
    a, b, c = document.ids
    engine = ReorderEngine()

    engine.begin(document, a)
    assert engine.hover(c, 25, ROW)
    result = engine.drop(document, c)

    assert result.status == "moved"
    assert result.document is not None
    assert result.document.contents == ("b", "c", "a")
    assert result.position == "after"
    assert not engine.active


def test_reorder_keeps_ids_and_contents() -> None:
    document = make_document("a", "b", "c", "d")
    engine = ReorderEngine()
    engine.begin(document, document.ids[3])
    engine.hover(document.ids[1], 11, ROW)

    result = engine.drop(document, document.ids[1])

    assert result.document is not None
    assert {(u.id, u.content) for u in result.document} == {
        (u.id, u.content) for u in document
    }
    assert result.document.contents == ("a", "d", "b", "c")


def test_drop_without_hover_defaults_to_before() -> None:
    document = make_document()
    a, b, c = document.ids
    engine = ReorderEngine()
    engine.begin(document, c)

    result = engine.drop(document, a)

    assert result.position == "before"
    assert result.document is not None
    assert result.document.contents == ("c", "a", "b")


def test_hover_over_source_is_ignored() -> None:
    document = make_document()
    engine = ReorderEngine()
    engine.begin(document, document.ids[0])

    assert not engine.hover(document.ids[0], 12, ROW)
    assert engine.drag == DragState(document.ids[0])


def test_repeated_hover_reports_no_change() -> None:
    document = make_document()
    engine = ReorderEngine()
    engine.begin(document, document.ids[0])

    assert engine.hover(document.ids[1], 12, ROW)
    assert not engine.hover(document.ids[1], 13, ROW)
    assert engine.hover(document.ids[1], 28, ROW)


def test_leave_inside_extent_keeps_target() -> None:
    document = make_document()
    engine = ReorderEngine()
    engine.begin(document, document.ids[0])
    engine.hover(document.ids[1], 12, ROW)

    assert not engine.leave(document.ids[1], 50, 15, ROW)
    assert engine.leave(document.ids[1], 50, 45, ROW)
    assert engine.drag == DragState(document.ids[0])


def test_drop_outside_any_unit_cancels() -> None:
    document = make_document()
    engine = ReorderEngine()
    engine.begin(document, document.ids[0])

    result = engine.drop(document, None)

    assert result.status == "cancelled"
    assert not result.moved


def test_drop_on_self_and_without_drag() -> None:
    document = make_document()
    engine = ReorderEngine()

    assert engine.drop(document, document.ids[0]).status == "no_drag"

    engine.begin(document, document.ids[0])
    assert engine.drop(document, document.ids[0]).status == "same_target"


def test_drop_into_current_place_is_unchanged() -> None:
    document = make_document()
    a, b, _ = document.ids
    engine = ReorderEngine()
    engine.begin(document, a)
    engine.hover(b, 12, ROW)

    result = engine.drop(document, b)

    assert result.status == "unchanged"
    assert result.document is None


def test_cancel_clears_drag() -> None:
    document = make_document()
    engine = ReorderEngine()
    engine.begin(document, document.ids[0])

    assert engine.cancel()
    assert not engine.cancel()


def test_begin_with_stale_id_raises() -> None:
    with pytest.raises(NotFound):
        ReorderEngine().begin(make_document(), "gone")
