"""Key dispatch: turns host key events into keymap actions on a session."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from jotdown.actions import ActionResult, KeyInput
from jotdown.keymaps import (
    FALLBACK_SCOPE,
    KeymapRegistry,
    KeymapResolver,
    KeyStroke,
    ResolutionMatch,
    load_default_keymaps,
)
from jotdown.runtime import telemetry

from .editor import EditorSession


@dataclass
class PendingTimeout:
    deadline: float
    timeout_ms: int
    generation: int


def key_to_token(key: KeyInput) -> str:
    return KeyStroke(key.key, tuple(key.modifiers)).token


class KeyDispatcher:
    """Resolves keys against the session's current scope and runs the action.

    Lookups happen in the active scope first (``editing`` or ``batch``) and
    fall back to ``document`` for global shortcuts such as undo. Multi-key
    sequences stay pending until they match, miss, or time out; hosts drive
    expiry through :meth:`process_timeouts`.
    """

    def __init__(
        self,
        session: EditorSession,
        *,
        registry: KeymapRegistry | None = None,
        resolver: KeymapResolver | None = None,
        load_defaults: bool = True,
        default_pending_timeout_ms: int = 1000,
        clock: Callable[[], float] = time.monotonic,
        logger_name: str | None = None,
    ) -> None:
        self.session = session
        self._logger_name = logger_name or "jotdown.keymaps"
        self.registry = registry or KeymapRegistry(logger_name=self._logger_name)
        if load_defaults and registry is None:
            load_default_keymaps(self.registry)
        self.resolver = resolver or KeymapResolver(
            self.registry, logger_name=self._logger_name
        )
        self._default_timeout_ms = default_pending_timeout_ms
        self._clock = clock
        self._pending: List[str] = []
        self._pending_scope: Optional[str] = None
        self._timeouts: Dict[str, PendingTimeout] = {}
        self._timer_counter = 0

    @property
    def pending_tokens(self) -> tuple[str, ...]:
        return tuple(self._pending)

    def flags(self) -> Dict[str, bool]:
        """Flags consulted by binding ``when`` clauses."""

        session = self.session
        field = session.active_field
        return {
            "cursor_at_start": field is not None and field.at_start,
            "cursor_at_end": field is not None and field.at_end,
            "field_empty": field is not None and not field.text,
            "all_text_selected": field is not None and field.all_selected,
            "has_selection": session.scope == "document" and bool(session.selected_ids),
            "can_undo": session.history.can_undo(),
            "can_redo": session.history.can_redo(),
        }

    def handle_key(self, key: KeyInput) -> ActionResult:
        scope = self.session.scope
        if self._pending_scope is not None and self._pending_scope != scope:
            self._clear_pending()
        token = key_to_token(key)
        with telemetry.span(
            f"dispatch::{scope}",
            logger_name=self._logger_name,
            component="session",
            metadata={"key": token, "scope": scope},
        ):
            self._pending.append(token)
            result = self._resolve(scope, tuple(self._pending))
        return self._after_result(scope, result)

    def _resolve(self, scope: str, tokens: tuple[str, ...]) -> ActionResult:
        flags = self.flags()
        result = self.resolver.resolve(scope, tokens, context=flags)
        if result.status == "miss" and scope != FALLBACK_SCOPE:
            result = self.resolver.resolve(FALLBACK_SCOPE, tokens, context=flags)

        if result.status == "match" and result.match:
            self._clear_pending()
            return self._execute_match(result.match)

        if result.status == "pending":
            self._pending_scope = scope
            return ActionResult(
                consumed=True,
                status="pending",
                message="awaiting_sequence",
                timeout_ms=result.timeout_ms or self._default_timeout_ms,
            )

        self.session.awaiting_confirmation = None
        self._clear_pending()
        return ActionResult(consumed=False, status="miss")

    def _execute_match(self, match: ResolutionMatch) -> ActionResult:
        if self.session.awaiting_confirmation not in (None, match.action.id):
            self.session.awaiting_confirmation = None
        with telemetry.span(
            "keymaps::execute",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"binding_id": match.binding.id, "action": match.action.id},
        ) as handle:
            outcome = match.action(self.session, match)
            if isinstance(outcome, ActionResult):
                handle.add_metadata("status", outcome.status)
                return outcome
        return ActionResult(consumed=True)

    def _after_result(self, scope: str, result: ActionResult) -> ActionResult:
        if result.timeout_ms:
            self.arm_timeout(scope, result.timeout_ms)
        else:
            self.cancel_timeout(scope)
        return result

    def _clear_pending(self) -> None:
        self._pending.clear()
        self._pending_scope = None

    # -- pending sequence timeouts ---------------------------------------------

    def arm_timeout(self, scope: str, timeout_ms: int) -> None:
        self._timer_counter += 1
        self._timeouts[scope] = PendingTimeout(
            deadline=self._clock() + timeout_ms / 1000.0,
            timeout_ms=timeout_ms,
            generation=self._timer_counter,
        )

    def cancel_timeout(self, scope: str) -> None:
        self._timeouts.pop(scope, None)

    def process_timeouts(self) -> Dict[str, ActionResult]:
        now = self._clock()
        expired = [
            (scope, timer.generation)
            for scope, timer in self._timeouts.items()
            if timer.deadline <= now
        ]
        return {scope: self._trigger_timeout(scope, gen) for scope, gen in expired}

    def force_timeout(self, scope: Optional[str] = None) -> Dict[str, ActionResult]:
        if scope is not None:
            timer = self._timeouts.get(scope)
            if timer is None:
                return {}
            return {scope: self._trigger_timeout(scope, timer.generation)}
        current = [(name, timer.generation) for name, timer in self._timeouts.items()]
        return {name: self._trigger_timeout(name, gen) for name, gen in current}

    def _trigger_timeout(self, scope: str, generation: int) -> ActionResult:
        timer = self._timeouts.get(scope)
        if timer is None or timer.generation != generation:
            return ActionResult(consumed=False, status="timeout")
        self._timeouts.pop(scope, None)
        if not self._pending or self._pending_scope != scope:
            self._clear_pending()
            return ActionResult(consumed=False, status="timeout")

        tokens = tuple(self._pending)
        self._clear_pending()
        with telemetry.span(
            f"dispatch_timeout::{scope}",
            logger_name=self._logger_name,
            component="session",
            metadata={"scope": scope, "length": len(tokens)},
        ):
            flags = self.flags()
            result = self.resolver.resolve(scope, tokens, context=flags)
            if result.status == "match" and result.match:
                return self._execute_match(result.match)
        return ActionResult(consumed=False, status="timeout", message="pending_timeout")


__all__ = ["KeyDispatcher", "PendingTimeout", "key_to_token"]
