"""Per-line markdown-subset renderer.

Each line is rendered on its own by running a fixed, ordered list of plain
text substitution passes. There is no grammar: later passes see the output
of earlier ones, so the order below is part of the behaviour.

The output is *not* escaped. Users may type HTML-ish tags (``<u>``, centred
``<div>`` blocks) on purpose, so hosts must only display content the user
authored themselves, or put a sanitizer between this module and the screen.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence

from jotdown.document import Document
from jotdown.runtime.config import DEFAULT_PLACEHOLDER

PassFn = Callable[[str], str]


@dataclass(frozen=True, slots=True)
class RenderPass:
    """Named substitution applied to a single line."""

    name: str
    apply: PassFn

    def __call__(self, line: str) -> str:
        return self.apply(line)


def highlight_toggle(
    line: str,
    *,
    delimiter: str = "==",
    open_tag: str = "<mark>",
    close_tag: str = "</mark>",
) -> str:
    """Replace odd occurrences of ``delimiter`` with ``open_tag``, even ones with ``close_tag``.

    The count starts over on every call; an odd trailing opener is left open.
    """

    parts = line.split(delimiter)
    if len(parts) == 1:
        return line
    pieces = [parts[0]]
    for count, part in enumerate(parts[1:], start=1):
        pieces.append(open_tag if count % 2 == 1 else close_tag)
        pieces.append(part)
    return "".join(pieces)


def _sub(pattern: str, replacement: str | Callable[[re.Match[str]], str]) -> PassFn:
    compiled = re.compile(pattern)

    def apply(line: str) -> str:
        return compiled.sub(replacement, line)

    return apply


def _heading(match: re.Match[str]) -> str:
    level = len(match.group(1))
    return f"<h{level}>{match.group(2)}</h{level}>"


BOLD = RenderPass("bold", _sub(r"\*\*(.+?)\*\*", r"<strong>\1</strong>"))
ITALIC = RenderPass(
    "italic", _sub(r"(?<!\*)\*(?![\s*])([^*]+?)\*(?!\*)", r"<em>\1</em>")
)
CODE = RenderPass("code", _sub(r"`([^`]+?)`", r"<code>\1</code>"))
STRIKETHROUGH = RenderPass("strikethrough", _sub(r"~~(.+?)~~", r"<del>\1</del>"))
LINK = RenderPass(
    "link",
    _sub(r"\[([^\]]+)\]\(([^)]+)\)", r'<a href="\2" target="_blank">\1</a>'),
)
HEADING = RenderPass("heading", _sub(r"^(#{1,6})\s+(.*)$", _heading))
LIST_ITEM = RenderPass("list_item", _sub(r"^(?:[-*+]|\d+\.)\s+(.*)$", r"<li>\1</li>"))
BLOCKQUOTE = RenderPass("blockquote", _sub(r"^>\s+(.*)$", r"<blockquote>\1</blockquote>"))
HORIZONTAL_RULE = RenderPass("horizontal_rule", _sub(r"^---$", "<hr>"))


def default_passes(delimiter: str = "==") -> tuple[RenderPass, ...]:
    """Highlight first, then inline emphasis, then single-line block patterns."""

    return (
        RenderPass(
            "highlight", lambda line: highlight_toggle(line, delimiter=delimiter)
        ),
        BOLD,
        ITALIC,
        CODE,
        STRIKETHROUGH,
        LINK,
        HEADING,
        LIST_ITEM,
        BLOCKQUOTE,
        HORIZONTAL_RULE,
    )


class LineRenderer:
    """Runs the pass list over one line at a time."""

    def __init__(
        self,
        *,
        passes: Sequence[RenderPass] | None = None,
        placeholder: str = DEFAULT_PLACEHOLDER,
        highlight_delimiter: str = "==",
    ) -> None:
        self.passes: tuple[RenderPass, ...] = tuple(
            passes if passes is not None else default_passes(highlight_delimiter)
        )
        self.placeholder = placeholder

    def render(self, line: str, *, sole_unit: bool = False) -> str:
        # Blank lines only show the placeholder when nothing else is on the page.
        if not line.strip():
            return self.placeholder if sole_unit else ""
        rendered = line
        for render_pass in self.passes:
            rendered = render_pass(rendered)
        return rendered

    def render_many(self, lines: Iterable[str]) -> List[str]:
        contents = list(lines)
        sole = len(contents) == 1
        return [self.render(line, sole_unit=sole) for line in contents]

    def render_document(self, document: Document) -> List[str]:
        return self.render_many(document.contents)


_DEFAULT_RENDERER = LineRenderer()


def render_line(line: str, *, sole_unit: bool = False) -> str:
    """Render ``line`` with the default pass list."""

    return _DEFAULT_RENDERER.render(line, sole_unit=sole_unit)


__all__ = [
    "RenderPass",
    "LineRenderer",
    "highlight_toggle",
    "default_passes",
    "render_line",
    "BOLD",
    "ITALIC",
    "CODE",
    "STRIKETHROUGH",
    "LINK",
    "HEADING",
    "LIST_ITEM",
    "BLOCKQUOTE",
    "HORIZONTAL_RULE",
]
