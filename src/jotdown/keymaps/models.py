"""Dataclasses describing keymap bindings and action metadata."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Iterable, Mapping

MODIFIER_ALIASES: Mapping[str, str] = MappingProxyType(
    {"meta": "ctrl", "cmd": "ctrl", "command": "ctrl", "control": "ctrl", "option": "alt"}
)

NAMED_KEY_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "<esc>": "ESC",
        "escape": "ESC",
        "return": "ENTER",
        "enter": "ENTER",
        "backspace": "BACKSPACE",
        "delete": "DELETE",
        "tab": "TAB",
        "up": "UP",
        "down": "DOWN",
        "left": "LEFT",
        "right": "RIGHT",
        "space": "SPACE",
    }
)


def _normalize_modifiers(modifiers: Iterable[str]) -> tuple[str, ...]:
    values = []
    for modifier in modifiers:
        cleaned = modifier.strip().lower()
        if cleaned:
            values.append(MODIFIER_ALIASES.get(cleaned, cleaned))
    return tuple(sorted(dict.fromkeys(values)))


def normalize_key(key: str) -> str:
    """Canonical spelling of a key name: ``ENTER``, ``ESC``, ``b``, ``1``."""

    if len(key) == 1:
        return key.lower()
    return NAMED_KEY_ALIASES.get(key.lower(), key.upper())


@dataclass(frozen=True, slots=True)
class KeyStroke:
    """Single normalized key press used by key sequences.

    ``meta``/``cmd`` fold into ``ctrl`` so one binding covers both platforms.
    """

    key: str
    modifiers: tuple[str, ...] = ()
    text: str | None = None

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("key cannot be empty")
        object.__setattr__(self, "key", normalize_key(self.key))
        object.__setattr__(self, "modifiers", _normalize_modifiers(self.modifiers))

    @property
    def token(self) -> str:
        if self.modifiers:
            modifier = "+".join(self.modifiers)
            return f"{modifier}+{self.key}"
        return self.key

    @classmethod
    def parse(cls, token: str) -> "KeyStroke":
        """Parse ``"ctrl+shift+z"``; a lone ``+`` is the plus key."""

        cleaned = token.strip()
        if not cleaned:
            raise ValueError("token cannot be empty")
        if cleaned == "+" or "+" not in cleaned[:-1]:
            return cls(cleaned)
        head, _, key = cleaned[:-1].rpartition("+")
        key = key + cleaned[-1]
        return cls(key, tuple(head.split("+")) if head else ())


@dataclass(frozen=True, slots=True)
class KeySequence:
    """One or more keystrokes pressed in order, e.g. a ``ctrl+k ctrl+b`` chord.

    ``timeout_ms`` bounds how long the dispatcher waits between strokes.
    """

    strokes: tuple[KeyStroke, ...]
    timeout_ms: int = 1000

    def __post_init__(self) -> None:
        if not self.strokes:
            raise ValueError("KeySequence requires at least one stroke")
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")

    @property
    def tokens(self) -> tuple[str, ...]:
        return tuple(stroke.token for stroke in self.strokes)

    @classmethod
    def from_strings(cls, *keys: str, timeout_ms: int = 1000) -> "KeySequence":
        return cls(tuple(KeyStroke.parse(key) for key in keys if key), timeout_ms)


@dataclass(frozen=True, slots=True)
class WhenClause:
    """``flag`` must equal ``expected`` in the dispatcher's flag map.

    Written as ``"field_empty"`` or ``"!all_text_selected"``; a flag missing
    from the map counts as false.
    """

    flag: str
    expected: bool = True

    def __post_init__(self) -> None:
        if not self.flag:
            raise ValueError("flag cannot be empty")

    @classmethod
    def parse(cls, expression: str) -> "WhenClause":
        text = expression.strip()
        negated = text.startswith("!")
        return cls(text[1:].strip() if negated else text, not negated)

    def holds(self, flags: Mapping[str, bool]) -> bool:
        return bool(flags.get(self.flag, False)) == self.expected


@dataclass(frozen=True, slots=True)
class ActionRef:
    """Editor action a binding can trigger.

    ``handler`` is called as ``handler(session, match)``; ``metadata`` carries
    per-action parameters such as the markers a formatting action inserts.
    """

    id: str
    handler: Callable[..., object]
    description: str = ""
    metadata: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("ActionRef id cannot be empty")
        if not callable(self.handler):
            raise TypeError("handler must be callable")
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def __call__(self, *args: object, **kwargs: object) -> object:
        return self.handler(*args, **kwargs)


@dataclass(frozen=True, slots=True)
class Binding:
    """Key sequence bound to an action within one session scope."""

    id: str
    scope: str
    sequence: KeySequence
    action_id: str
    description: str = ""
    when: tuple[WhenClause, ...] = ()
    source: str | None = None
    priority: int = 0

    def __post_init__(self) -> None:
        for name in ("id", "scope", "action_id"):
            if not getattr(self, name):
                raise ValueError(f"binding {name} cannot be empty")
        clauses = tuple(
            clause if isinstance(clause, WhenClause) else WhenClause.parse(str(clause))
            for clause in self.when
        )
        object.__setattr__(self, "when", clauses)

    @property
    def when_map(self) -> Mapping[str, bool]:
        return MappingProxyType({clause.flag: clause.expected for clause in self.when})

    def allows(self, flags: Mapping[str, bool]) -> bool:
        return all(clause.holds(flags) for clause in self.when)

    @property
    def key_signature(self) -> str:
        return " ".join(self.sequence.tokens)


__all__ = [
    "KeyStroke",
    "KeySequence",
    "WhenClause",
    "ActionRef",
    "Binding",
    "normalize_key",
]
