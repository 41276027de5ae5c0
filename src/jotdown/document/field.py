"""Text, cursor, and selection state of an open raw-edit field."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class EditField:
    """Mutable field contents with a ``[selection_start, selection_end)`` range.

    A collapsed range (``start == end``) is a plain cursor.
    """

    text: str = ""
    selection_start: int = 0
    selection_end: int = 0

    def __post_init__(self) -> None:
        self.select(self.selection_start, self.selection_end)

    @classmethod
    def with_cursor(cls, text: str, placement: str = "end") -> "EditField":
        offset = 0 if placement == "start" else len(text)
        return cls(text=text, selection_start=offset, selection_end=offset)

    @property
    def cursor(self) -> int:
        return self.selection_end

    @property
    def selected_text(self) -> str:
        return self.text[self.selection_start : self.selection_end]

    @property
    def at_start(self) -> bool:
        return self.selection_start == self.selection_end == 0

    @property
    def at_end(self) -> bool:
        return self.selection_start == self.selection_end == len(self.text)

    @property
    def all_selected(self) -> bool:
        return bool(self.text) and (self.selection_start, self.selection_end) == (
            0,
            len(self.text),
        )

    def _clamp(self, offset: int) -> int:
        return max(0, min(offset, len(self.text)))

    def select(self, start: int, end: int | None = None) -> None:
        start = self._clamp(start)
        end = self._clamp(start if end is None else end)
        if start > end:
            start, end = end, start
        self.selection_start, self.selection_end = start, end

    def select_all(self) -> None:
        self.select(0, len(self.text))

    def set_text(self, text: str, cursor: int | None = None) -> None:
        self.text = text
        offset = len(text) if cursor is None else cursor
        self.select(offset)

    def replace_selection(
        self,
        replacement: str,
        *,
        select_from: int | None = None,
        select_to: int | None = None,
    ) -> None:
        """Swap the selected range for ``replacement``.

        ``select_from``/``select_to`` are offsets relative to the start of
        the inserted text; by default the cursor lands after it.
        """

        start = self.selection_start
        self.text = self.text[:start] + replacement + self.text[self.selection_end :]
        if select_from is None:
            self.select(start + len(replacement))
        else:
            end = select_from if select_to is None else select_to
            self.select(start + select_from, start + end)


__all__ = ["EditField"]
