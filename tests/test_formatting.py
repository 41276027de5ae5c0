import pytest

from jotdown.actions import (
    heading_prefix,
    insert_indent,
    insert_link,
    insert_rule,
    prefix_line,
    wrap_block,
    wrap_inline,
    wrap_with,
)
from jotdown.document import EditField


def make_field(text: str, start: int, end: int | None = None) -> EditField:
    return EditField(text=text, selection_start=start, selection_end=start if end is None else end)


def test_wrap_selection_in_bold() -> None:
    field = make_field("make this bold", 5, 9)

    wrap_inline(field, "**")

    assert field.text == "make **this** bold"
    assert field.cursor == len("make **this**")


def test_wrap_without_selection_puts_cursor_between_markers() -> None:
    field = make_field("ab", 1)

    wrap_inline(field, "~~")

    assert field.text == "a~~~~b"
    assert (field.selection_start, field.selection_end) == (3, 3)


def test_underline_uses_closing_tag() -> None:
    field = make_field("word", 0, 4)

    wrap_with(field, "<u>", "</u>")

    assert field.text == "<u>word</u>"


def test_centre_block_selects_after_placeholder() -> None:
    field = make_field("", 0)

    wrap_block(field, '<div align="center">', "</div>")

    assert field.text == '<div align="center">text</div>'
    assert field.cursor == len('<div align="center">text')


def test_link_around_selection_selects_url() -> None:
    field = make_field("see docs here", 4, 8)

    insert_link(field)

    assert field.text == "see [docs](url) here"
    assert field.selected_text == "url"


def test_link_without_selection_selects_text() -> None:
    field = make_field("", 0)

    insert_link(field)

    assert field.text == "[text](url)"
    assert field.selected_text == "text"


def test_prefixes_and_headings() -> None:
    field = make_field("title", 0)

    prefix_line(field, heading_prefix(2))

    assert field.text == "## title"
    with pytest.raises(ValueError):
        heading_prefix(7)


def test_prefix_keeps_selected_text() -> None:
    field = make_field("quote me", 0, 8)

    prefix_line(field, "> ")

    assert field.text == "> quote me"


def test_rule_goes_in_at_selection_start() -> None:
    field = make_field("abc", 1, 3)

    insert_rule(field)

    assert field.text == "a---bc"


def test_indent_replaces_selection() -> None:
    field = make_field("xy", 2)

    insert_indent(field)

    assert field.text == "xy    "
