"""Line units: the independently editable rows of a document."""

from __future__ import annotations

import itertools
import uuid
from dataclasses import dataclass

_SESSION_TAG = uuid.uuid4().hex[:8]
_COUNTER = itertools.count(1)


def new_unit_id() -> str:
    """Return an id that is never handed out twice within a process."""

    return f"unit-{_SESSION_TAG}-{next(_COUNTER)}"


@dataclass(frozen=True, slots=True)
class LineUnit:
    id: str
    content: str = ""

    def with_content(self, content: str) -> "LineUnit":
        return LineUnit(id=self.id, content=content)

    @classmethod
    def create(cls, content: str = "") -> "LineUnit":
        return cls(id=new_unit_id(), content=content)


__all__ = ["LineUnit", "new_unit_id"]
