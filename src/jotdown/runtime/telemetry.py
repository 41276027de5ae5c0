"""Structured logging for the editor, built on telelog.

Callers use four names: :func:`configure`, :func:`get_logger`,
:func:`record_event` and :func:`span`. Log settings come from ``JOTDOWN_*``
environment variables unless a preset or an explicit ``telelog.Config`` is
supplied.
"""

from __future__ import annotations

import os
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterator, Mapping, MutableMapping, Optional, cast

import telelog  # type: ignore[import]

tl = cast(Any, telelog)

ENV_PREFIX = "JOTDOWN_"
DEFAULT_LOGGER_NAME = os.getenv(f"{ENV_PREFIX}LOGGER", "jotdown")

_TRUTHY = {"1", "true", "yes", "on"}

_loggers: MutableMapping[str, Any] = {}
_active: Optional[Any] = None


@dataclass(frozen=True, slots=True)
class LogSettings:
    """What the editor asks telelog for; turned into a ``telelog.Config``."""

    level: str = "INFO"
    console: bool = True
    color: bool = True
    json: bool = False
    log_file: str = ""
    buffered: bool = False
    buffer_size: int = 2048

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LogSettings":
        source = os.environ if environ is None else environ

        def flag(name: str, default: bool) -> bool:
            raw = source.get(f"{ENV_PREFIX}{name}")
            return default if raw is None else raw.lower() in _TRUTHY

        return cls(
            level=source.get(f"{ENV_PREFIX}LOG_LEVEL", "INFO").upper(),
            console=not flag("DISABLE_CONSOLE", False),
            color=not flag("NO_COLOR", False),
            json=flag("LOG_JSON", False),
            log_file=source.get(f"{ENV_PREFIX}LOG_FILE", ""),
            buffered=flag("LOG_BUFFERED", False),
            buffer_size=int(source.get(f"{ENV_PREFIX}LOG_BUFFER_SIZE", "2048")),
        )

    def build(self) -> Any:
        config = tl.Config()
        config.with_min_level(self.level)
        config.with_console_output(self.console)
        if self.console:
            config.with_colored_output(self.color)
        config.with_json_format(self.json)
        if self.log_file:
            config.with_file_output(self.log_file)
        if self.buffered:
            config.with_buffering(True)
            config.with_buffer_size(self.buffer_size)
        config.with_profiling(True)
        return config


def preset_settings(preset: str, base: Optional[LogSettings] = None) -> LogSettings:
    """Settings for a named preset, keeping ``base``'s log file where it has one."""

    base = base or LogSettings.from_env()
    key = preset.lower()
    if key == "development":
        return replace(base, level="DEBUG", console=True, color=True, json=False)
    if key == "production":
        return replace(
            base,
            level="INFO",
            console=False,
            log_file=base.log_file or "jotdown.log",
            buffered=True,
        )
    if key == "quiet":
        # Terminal hosts own the screen.
        return replace(base, level="WARNING", console=False, buffered=False)
    raise ValueError(f"Unknown preset '{preset}'.")


def configure(*, config: Optional[Any] = None, preset: Optional[str] = None) -> None:
    """Swap the active telelog configuration and drop cached loggers.

    ``config`` is a ready ``telelog.Config``; ``preset`` is one of
    ``"development"``, ``"production"`` or ``"quiet"``. With neither, the
    environment decides.
    """

    global _active
    if config is not None and preset:
        raise ValueError("Provide either `config` or `preset`, not both.")
    if preset:
        config = preset_settings(preset).build()
    elif config is None:
        config = LogSettings.from_env().build()
    _active = config
    _loggers.clear()


def get_logger(name: Optional[str] = None) -> Any:
    global _active
    if _active is None:
        _active = LogSettings.from_env().build()
    logger_name = name or DEFAULT_LOGGER_NAME
    cached = _loggers.get(logger_name)
    if cached is None:
        cached = _loggers[logger_name] = tl.Logger.with_config(logger_name, _active)
    return cached


def _text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (set, frozenset)):
        return repr(sorted(value, key=str))
    if isinstance(value, (dict, list, tuple)):
        return repr(value)
    return str(value)


def _log(logger: Any, level: str, message: str, payload: Dict[str, Any]) -> None:
    name = str(level).lower()
    structured = getattr(logger, f"{name}_with", None)
    if structured is not None:
        structured(message, [(str(k), _text(v)) for k, v in payload.items()])
        return
    plain = getattr(logger, name, None)
    if plain is None:
        raise ValueError(f"Unsupported log level '{level}'.")
    plain(f"{message} {payload}")


def record_event(
    name: str,
    *,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
    logger_name: Optional[str] = None,
) -> None:
    """Log ``event::<name>`` with ``data`` attached as key/value pairs."""

    _log(get_logger(logger_name), level, f"event::{name}", {"event": name, **(data or {})})


@dataclass
class SpanHandle:
    """Yielded by :func:`span`; metadata added here is logged if the span fails."""

    logger: Any
    span_name: str
    component_name: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = _text(value)

    def fail(self, reason: str) -> None:
        payload: Dict[str, Any] = {"span": self.span_name, **self.metadata}
        if self.component_name:
            payload["component"] = self.component_name
        payload["reason"] = reason
        _log(self.logger, "error", "span::fail", payload)


@contextmanager
def span(
    name: str,
    *,
    logger_name: Optional[str] = None,
    component: Optional[str | bool] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> Iterator[SpanHandle]:
    """Profile a block under ``name``.

    ``component=True`` also tracks the block as a component named ``name``;
    a string names the component explicitly. ``metadata`` is pushed as
    logger context for the duration of the block. An exception escaping the
    block is logged through :meth:`SpanHandle.fail` and re-raised.
    """

    log = get_logger(logger_name)
    component_name = name if component is True else component or None
    context = {key: _text(value) for key, value in (metadata or {}).items()}

    with ExitStack() as stack:
        for key, value in context.items():
            log.add_context(key, value)
            stack.callback(log.remove_context, key)
        if component_name:
            stack.enter_context(log.track_component(component_name))
        stack.enter_context(log.profile(name))
        handle = SpanHandle(log, name, component_name, dict(context))
        try:
            yield handle
        except Exception as exc:
            handle.fail(str(exc))
            raise


configure()

__all__ = [
    "LogSettings",
    "SpanHandle",
    "configure",
    "get_logger",
    "preset_settings",
    "record_event",
    "span",
]
