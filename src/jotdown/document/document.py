"""Copy-on-write document model built from line units."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Literal, Optional, Sequence

from .errors import LastUnitGuard, NotFound
from .units import LineUnit

Position = Literal["before", "after"]

LINE_SEPARATOR = "\n"
POSITIONS: tuple[Position, ...] = ("before", "after")


def _fresh_units(contents: Iterable[str]) -> list[LineUnit]:
    return [LineUnit.create(content) for content in contents]


@dataclass(frozen=True, slots=True)
class Document:
    """Ordered, immutable sequence of line units.

    Every mutating method returns a new ``Document`` with a bumped
    ``version`` and leaves the receiver untouched, so a reference held by the
    history stack is already a faithful snapshot. A document always holds at
    least one unit; constructing one from nothing yields a single empty unit.
    """

    units: tuple[LineUnit, ...] = field(default_factory=lambda: (LineUnit.create(),))
    version: int = 0

    def __post_init__(self) -> None:
        units = tuple(self.units)
        if not units:
            units = (LineUnit.create(),)
        seen: set[str] = set()
        for unit in units:
            if unit.id in seen:
                raise ValueError(f"Duplicate line unit id '{unit.id}'")
            seen.add(unit.id)
        object.__setattr__(self, "units", units)

    @classmethod
    def from_contents(cls, contents: Iterable[str]) -> "Document":
        return cls(units=tuple(_fresh_units(contents)))

    @classmethod
    def deserialize(cls, text: str) -> "Document":
        """Split ``text`` on newlines into units with freshly generated ids."""

        return cls.from_contents(text.split(LINE_SEPARATOR))

    def serialize(self) -> str:
        return LINE_SEPARATOR.join(unit.content for unit in self.units)

    # -- read helpers ------------------------------------------------------

    @property
    def ids(self) -> tuple[str, ...]:
        return tuple(unit.id for unit in self.units)

    @property
    def contents(self) -> tuple[str, ...]:
        return tuple(unit.content for unit in self.units)

    def __len__(self) -> int:
        return len(self.units)

    def __iter__(self) -> Iterator[LineUnit]:
        return iter(self.units)

    def __contains__(self, unit_id: object) -> bool:
        return any(unit.id == unit_id for unit in self.units)

    def index_of(self, unit_id: str) -> int:
        for index, unit in enumerate(self.units):
            if unit.id == unit_id:
                return index
        raise NotFound(unit_id)

    def get(self, unit_id: str) -> LineUnit:
        return self.units[self.index_of(unit_id)]

    def previous_id(self, unit_id: str) -> Optional[str]:
        index = self.index_of(unit_id)
        return self.units[index - 1].id if index > 0 else None

    def next_id(self, unit_id: str) -> Optional[str]:
        index = self.index_of(unit_id)
        if index + 1 < len(self.units):
            return self.units[index + 1].id
        return None

    def span_of(self, unit_ids: Iterable[str]) -> tuple[int, int]:
        """Return the inclusive ``(start, end)`` indices covering ``unit_ids``."""

        indices = [self.index_of(unit_id) for unit_id in unit_ids]
        if not indices:
            raise ValueError("span_of requires at least one id")
        return min(indices), max(indices)

    def ordered(self, unit_ids: Iterable[str]) -> tuple[str, ...]:
        """Return ``unit_ids`` sorted by their current position."""

        wanted = set(unit_ids)
        missing = wanted.difference(self.ids)
        if missing:
            raise NotFound(sorted(missing)[0])
        return tuple(unit.id for unit in self.units if unit.id in wanted)

    # -- mutations ---------------------------------------------------------

    def _derive(self, units: Sequence[LineUnit]) -> "Document":
        return Document(units=tuple(units), version=self.version + 1)

    def insert_after(self, after_id: str, content: str = "") -> tuple["Document", str]:
        """Insert a new unit right after ``after_id`` and return it with its id."""

        index = self.index_of(after_id)
        unit = LineUnit.create(content)
        units = list(self.units)
        units.insert(index + 1, unit)
        return self._derive(units), unit.id

    def update(self, unit_id: str, content: str) -> "Document":
        index = self.index_of(unit_id)
        current = self.units[index]
        if current.content == content:
            return self
        units = list(self.units)
        units[index] = current.with_content(content)
        return self._derive(units)

    def remove(self, unit_id: str) -> "Document":
        index = self.index_of(unit_id)
        if len(self.units) == 1:
            raise LastUnitGuard(unit_id)
        units = list(self.units)
        del units[index]
        return self._derive(units)

    def reorder(
        self, moved_id: str, target_id: str, position: Position = "before"
    ) -> "Document":
        """Move ``moved_id`` so it sits immediately before/after ``target_id``.

        The target index is looked up after ``moved_id`` has been taken out,
        which absorbs the shift caused by the removal when the moved unit
        originally preceded the target.
        """

        if position not in POSITIONS:
            raise ValueError(f"Unknown drop position '{position}'")
        moved_index = self.index_of(moved_id)
        self.index_of(target_id)
        if moved_id == target_id:
            return self

        units = list(self.units)
        moved = units.pop(moved_index)
        target_index = next(i for i, unit in enumerate(units) if unit.id == target_id)
        insert_at = target_index + 1 if position == "after" else target_index
        units.insert(insert_at, moved)
        if tuple(units) == self.units:
            return self
        return self._derive(units)

    def splice(
        self, from_id: str, to_id: str, new_contents: Sequence[str]
    ) -> "Document":
        """Replace the contiguous run between two ids with fresh units.

        The run is taken in current document order, whichever of the two ids
        comes first. Replacing every unit with nothing leaves a single empty
        unit behind.
        """

        start, end = sorted((self.index_of(from_id), self.index_of(to_id)))
        units = list(self.units)
        units[start : end + 1] = _fresh_units(new_contents)
        if not units:
            units = [LineUnit.create()]
        return self._derive(units)

    def replace_all(self, contents: Iterable[str]) -> "Document":
        units = _fresh_units(contents) or [LineUnit.create()]
        return self._derive(units)


__all__ = ["Document", "Position", "POSITIONS", "LINE_SEPARATOR"]
