"""Editor configuration and environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Mapping, Optional

from .telemetry import ENV_PREFIX

DEFAULT_PLACEHOLDER = '<span class="placeholder-text">click to type something here</span>'


@dataclass(frozen=True, slots=True)
class EditorConfig:
    """Tunables shared by the session, renderer, and hosts."""

    history_capacity: int = 50
    placeholder: str = DEFAULT_PLACEHOLDER
    highlight_delimiter: str = "=="
    indent: str = "    "
    autosave_debounce_ms: int = 0
    promotion_delay_ms: int = 50
    document_path: str = "notes.md"
    export_filename: str = "notes.md"
    import_path: str = "import.md"

    def __post_init__(self) -> None:
        if self.history_capacity <= 0:
            raise ValueError("history_capacity must be positive")
        if self.autosave_debounce_ms < 0:
            raise ValueError("autosave_debounce_ms cannot be negative")
        if not self.highlight_delimiter:
            raise ValueError("highlight_delimiter cannot be empty")

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides: object,
    ) -> "EditorConfig":
        """Build a config from ``JOTDOWN_*`` variables, then apply ``overrides``.

        ``JOTDOWN_HISTORY_CAPACITY=100`` sets ``history_capacity`` and so on;
        integer fields are parsed, everything else is taken verbatim.
        """

        source = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for entry in fields(cls):
            raw = source.get(f"{ENV_PREFIX}{entry.name.upper()}")
            if raw is None:
                continue
            if entry.type in ("int", int):
                try:
                    values[entry.name] = int(raw)
                except ValueError as exc:
                    raise ValueError(
                        f"{ENV_PREFIX}{entry.name.upper()} must be an integer"
                    ) from exc
            else:
                values[entry.name] = raw
        config = cls(**values)  # type: ignore[arg-type]
        if overrides:
            config = replace(config, **overrides)  # type: ignore[arg-type]
        return config


__all__ = ["EditorConfig", "DEFAULT_PLACEHOLDER"]
