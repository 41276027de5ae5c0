"""Debounced autosave in front of a :class:`DocumentStore`."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

from jotdown.runtime.telemetry import record_event

from .protocols import DocumentStore


@dataclass(slots=True)
class PendingSave:
    text: str
    deadline: float
    generation: int


class Autosaver:
    """Coalesces bursts of saves into one write per quiet period.

    With ``debounce_ms == 0`` every :meth:`notify` writes straight through.
    Otherwise the newest text wins and is written once the clock passes the
    deadline set by the most recent notification. Store errors propagate to
    whoever triggered the write and the pending text is kept for the next try.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        debounce_ms: int = 0,
        clock: Callable[[], float] = time.monotonic,
        logger_name: Optional[str] = None,
    ) -> None:
        if debounce_ms < 0:
            raise ValueError("debounce_ms cannot be negative")
        self.store = store
        self.debounce_ms = debounce_ms
        self._clock = clock
        self._logger_name = logger_name
        self._pending: Optional[PendingSave] = None
        self._generation = 0
        self.saves = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    @property
    def deadline(self) -> Optional[float]:
        return self._pending.deadline if self._pending else None

    def notify(self, text: str) -> bool:
        """Queue ``text``; return ``True`` if it was written immediately."""

        self._generation += 1
        deadline = self._clock() + self.debounce_ms / 1000.0
        self._pending = PendingSave(text=text, deadline=deadline, generation=self._generation)
        if self.debounce_ms == 0:
            return self.flush()
        return False

    def process(self) -> bool:
        """Write the pending text if its quiet period has elapsed."""

        pending = self._pending
        if pending is None or pending.deadline > self._clock():
            return False
        return self.flush()

    def flush(self) -> bool:
        pending = self._pending
        if pending is None:
            return False
        self.store.save(pending.text)
        if self._pending is pending:
            self._pending = None
        self.saves += 1
        record_event(
            "autosave.flush",
            level="debug",
            data={"generation": pending.generation, "chars": len(pending.text)},
            logger_name=self._logger_name,
        )
        return True

    def discard(self) -> None:
        self._pending = None


__all__ = ["Autosaver", "PendingSave"]
