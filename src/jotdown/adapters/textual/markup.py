"""Convert rendered line markup into styled ``rich`` text for the terminal."""

from __future__ import annotations

from html.parser import HTMLParser
from typing import Dict, List, Optional, Tuple

from rich.style import Style
from rich.text import Text

TAG_STYLES: Dict[str, Style] = {
    "strong": Style(bold=True),
    "em": Style(italic=True),
    "u": Style(underline=True),
    "code": Style(color="cyan", bgcolor="grey15"),
    "mark": Style(color="black", bgcolor="yellow"),
    "del": Style(strike=True),
    "blockquote": Style(italic=True, dim=True),
    "h1": Style(bold=True, underline=True),
    "h2": Style(bold=True),
    "h3": Style(bold=True),
    "h4": Style(bold=True, italic=True),
    "h5": Style(italic=True),
    "h6": Style(italic=True, dim=True),
}

PLACEHOLDER_STYLE = Style(italic=True, dim=True)
RULE_WIDTH = 40


class _MarkupParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.text = Text()
        self.justify: Optional[str] = None
        self._stack: List[Tuple[str, Style]] = []

    def _style(self) -> Style:
        return Style.combine(style for _, style in self._stack) if self._stack else Style()

    def handle_starttag(self, tag: str, attrs: list[tuple[str, Optional[str]]]) -> None:
        values = dict(attrs)
        if tag == "hr":
            self.text.append("─" * RULE_WIDTH, style=Style(dim=True))
            return
        if tag == "li":
            self.text.append("• ", style=self._style())
        elif tag == "blockquote":
            self.text.append("▏ ", style=Style(dim=True))
        elif tag == "div" and values.get("align") == "center":
            self.justify = "center"
        if tag == "a":
            style = Style(color="blue", underline=True, link=values.get("href") or None)
        elif tag == "span" and "placeholder" in (values.get("class") or ""):
            style = PLACEHOLDER_STYLE
        else:
            style = TAG_STYLES.get(tag, Style())
        self._stack.append((tag, style))

    def handle_endtag(self, tag: str) -> None:
        # Close the innermost matching tag; stray closers are ignored.
        for index in range(len(self._stack) - 1, -1, -1):
            if self._stack[index][0] == tag:
                del self._stack[index:]
                return

    def handle_data(self, data: str) -> None:
        self.text.append(data, style=self._style())


def markup_to_text(markup: str) -> Text:
    """Styled text for one rendered line; unknown tags keep their content unstyled."""

    parser = _MarkupParser()
    parser.feed(markup)
    parser.close()
    text = parser.text
    if parser.justify:
        text.justify = parser.justify  # type: ignore[assignment]
    return text


__all__ = ["markup_to_text", "TAG_STYLES"]
