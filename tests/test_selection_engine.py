import pytest

from jotdown.document import Document, NotFound
from jotdown.selection import (
    BatchEditing,
    BeginEdit,
    Click,
    ClickModifier,
    DragSelect,
    DragStarted,
    Editing,
    Escape,
    HitTarget,
    PointerDown,
    PointerEnter,
    PointerUp,
    Promote,
    SelectAll,
    Selected,
    SelectionEngine,
    SelectionModel,
)


def make_document(count: int = 4) -> Document:
    return Document.from_contents([f"line {index}" for index in range(count)])


def selected(*ids: str) -> SelectionModel:
    return SelectionModel(state=Selected(tuple(ids)))


@pytest.fixture
def engine() -> SelectionEngine:
    return SelectionEngine()


def test_plain_click_edits_unit(engine: SelectionEngine) -> None:
    document = make_document()

    outcome = engine.reduce(SelectionModel(), Click(document.ids[1]), document)

    assert outcome.changed
    assert outcome.model.state == Editing(document.ids[1])
    assert not outcome.promote


def test_click_on_controls_is_ignored(engine: SelectionEngine) -> None:
    document = make_document()
    model = selected(document.ids[0])

    outcome = engine.reduce(
        model, Click(document.ids[1], target=HitTarget.CONTROL), document
    )

    assert not outcome.changed
    assert outcome.model is model


def test_toggle_click_adds_and_removes(engine: SelectionEngine) -> None:
    document = make_document()
    a, b = document.ids[:2]

    first = engine.reduce(SelectionModel(), Click(a, ClickModifier.TOGGLE), document)
    second = engine.reduce(first.model, Click(b, ClickModifier.TOGGLE), document)
    third = engine.reduce(second.model, Click(a, ClickModifier.TOGGLE), document)

    assert first.model.selected_ids == (a,)
    assert second.model.selected_ids == (a, b)
    assert second.promote
    assert third.model.selected_ids == (b,)


def test_range_click_keeps_anchor_first(engine: SelectionEngine) -> None:
    document = make_document()
    a, b, c, d = document.ids

    outcome = engine.reduce(selected(c), Click(a, ClickModifier.RANGE), document)

    assert outcome.model.selected_ids == (c, a, b)
    assert outcome.promote


def test_range_click_without_anchor_is_ignored(engine: SelectionEngine) -> None:
    document = make_document()

    outcome = engine.reduce(
        SelectionModel(), Click(document.ids[2], ClickModifier.RANGE), document
    )

    assert not outcome.changed
    assert outcome.status == "no_anchor"


def test_modifier_keys_map_to_click_modifiers() -> None:
    assert ClickModifier.from_keys(["Meta"]) is ClickModifier.TOGGLE
    assert ClickModifier.from_keys(["shift"]) is ClickModifier.RANGE
    assert ClickModifier.from_keys([]) is ClickModifier.NONE


def test_drag_select_from_unit_builds_range(engine: SelectionEngine) -> None:
    document = make_document()
    a, b, c, _ = document.ids

    down = engine.reduce(SelectionModel(), PointerDown(HitTarget.UNIT, b), document)
    over = engine.reduce(down.model, PointerEnter(c), document)
    back = engine.reduce(over.model, PointerEnter(a), document)
    up = engine.reduce(back.model, PointerUp(), document)

    assert over.model.drag_select == DragSelect(anchor=b, ids=(b, c))
    assert back.model.drag_select == DragSelect(anchor=b, ids=(b, a))
    assert up.model.state == Selected((b, a))
    assert up.model.drag_select is None
    assert up.promote


def test_drag_select_from_empty_space_accumulates(engine: SelectionEngine) -> None:
    document = make_document()
    a, b, c, _ = document.ids

    model = engine.reduce(SelectionModel(), PointerDown(HitTarget.EMPTY), document).model
    model = engine.reduce(model, PointerEnter(c), document).model
    model = engine.reduce(model, PointerEnter(a), document).model
    model = engine.reduce(model, PointerEnter(c), document).model

    assert model.drag_select == DragSelect(anchor=None, ids=(c, a))


def test_plain_click_during_drag_select_is_ignored(engine: SelectionEngine) -> None:
    document = make_document()
    model = engine.reduce(SelectionModel(), PointerDown(HitTarget.EMPTY), document).model

    outcome = engine.reduce(model, Click(document.ids[0]), document)

    assert outcome.status == "drag_select_active"
    assert not outcome.changed


def test_lone_edit_survives_pointer_down_on_empty(engine: SelectionEngine) -> None:
    document = make_document(1)
    editing = SelectionModel(state=Editing(document.ids[0]))

    outcome = engine.reduce(editing, PointerDown(HitTarget.EMPTY), document)

    assert outcome.model.state == editing.state
    assert outcome.model.drag_select == DragSelect()


def test_empty_drag_select_clears_without_selecting(engine: SelectionEngine) -> None:
    document = make_document()
    model = engine.reduce(SelectionModel(), PointerDown(HitTarget.EMPTY), document).model

    outcome = engine.reduce(model, PointerUp(), document)

    assert outcome.status == "drag_select_empty"
    assert outcome.model.drag_select is None


def test_select_all_and_promote(engine: SelectionEngine) -> None:
    document = make_document(3)

    all_selected = engine.reduce(SelectionModel(), SelectAll(), document)
    promoted = engine.reduce(all_selected.model, Promote(), document)

    assert all_selected.model.selected_ids == document.ids
    assert all_selected.promote
    assert promoted.model.state == BatchEditing(
        ids=document.ids, combined_text="line 0\nline 1\nline 2"
    )


def test_stale_promotion_is_ignored(engine: SelectionEngine) -> None:
    document = make_document()

    outcome = engine.reduce(selected(document.ids[0]), Promote(), document)

    assert not outcome.changed
    assert outcome.status == "stale_promotion"


def test_escape_always_returns_to_idle(engine: SelectionEngine) -> None:
    document = make_document()

    outcome = engine.reduce(selected(*document.ids[:2]), Escape(), document)

    assert outcome.model == SelectionModel()


def test_drag_start_keeps_selection_only_when_dragging_a_member(
    engine: SelectionEngine,
) -> None:
    document = make_document()
    a, b, c, _ = document.ids
    model = selected(a, b)

    kept = engine.reduce(model, DragStarted(a), document)
    cleared = engine.reduce(model, DragStarted(c), document)

    assert kept.model.state == Selected((a, b))
    assert cleared.model == SelectionModel()


def test_begin_edit_on_stale_id_raises(engine: SelectionEngine) -> None:
    with pytest.raises(NotFound):
        engine.reduce(SelectionModel(), BeginEdit("gone"), make_document())


def test_unregistered_gesture_type_is_rejected(engine: SelectionEngine) -> None:
    class Wiggle:
        pass

    with pytest.raises(TypeError):
        engine.reduce(SelectionModel(), Wiggle(), make_document())  # type: ignore[arg-type]


def test_each_gesture_reaches_its_own_handler(engine: SelectionEngine) -> None:
    document = make_document()
    a = document.ids[0]

    statuses = [
        engine.reduce(SelectionModel(), gesture, document).status
        for gesture in (
            Click(a),
            PointerDown(HitTarget.UNIT, a),
            PointerEnter(a),
            PointerUp(),
            Escape(),
            SelectAll(),
            Promote(),
            BeginEdit(a),
            DragStarted(a),
        )
    ]

    assert statuses == [
        "edit",
        "drag_select",
        "ignored",
        "ignored",
        "escape",
        "select_all",
        "stale_promotion",
        "edit",
        "drag_clears_selection",
    ]
