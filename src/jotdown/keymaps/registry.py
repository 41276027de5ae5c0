"""Keymap registry storing editor actions and their scoped bindings."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, Iterator, Optional, Sequence

from jotdown.runtime.telemetry import SpanHandle, span

from .models import ActionRef, Binding, KeySequence


@dataclass(slots=True)
class RegistryStats:
    """Snapshot of how many actions and bindings are registered."""

    action_count: int
    binding_count: int
    scopes: tuple[str, ...]


class KeymapConflictError(RuntimeError):
    """Raised when a binding would shadow another in the same scope."""

    def __init__(self, binding: Binding, conflicts: Iterable[Binding]):
        conflicts_tuple = tuple(conflicts)
        message = (
            f"Binding '{binding.id}' conflicts with {[b.id for b in conflicts_tuple]}"
        )
        super().__init__(message)
        self.binding = binding
        self.conflicts = conflicts_tuple


class KeymapRegistry:
    """Owns action references and the per-scope binding index.

    Every binding change bumps :meth:`revision` so resolvers can rebuild
    their tries lazily.
    """

    def __init__(self, *, logger_name: str | None = None) -> None:
        self._actions: Dict[str, ActionRef] = {}
        self._bindings: Dict[str, Binding] = {}
        # scope -> key signature -> binding ids
        self._index: Dict[str, Dict[str, set[str]]] = {}
        self._logger_name = logger_name
        self._revision = 0

    def revision(self) -> int:
        return self._revision

    def has_action(self, action_id: str) -> bool:
        return action_id in self._actions

    def get_action(self, action_id: str) -> ActionRef:
        try:
            return self._actions[action_id]
        except KeyError as exc:
            raise KeyError(f"Action '{action_id}' is not registered") from exc

    def get_binding(self, binding_id: str) -> Binding:
        try:
            return self._bindings[binding_id]
        except KeyError as exc:
            raise KeyError(f"Binding '{binding_id}' is not registered") from exc

    def register_action(self, action: ActionRef, *, replace: bool = False) -> ActionRef:
        with span(
            "keymaps::register_action",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"action_id": action.id},
        ):
            if not replace and action.id in self._actions:
                raise ValueError(f"Action '{action.id}' already registered")
            self._actions[action.id] = action
            return action

    def register_binding(self, binding: Binding, *, replace: bool = False) -> Binding:
        with span(
            "keymaps::register_binding",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"binding_id": binding.id, "scope": binding.scope},
        ) as handle:
            self._require_action(binding, handle)
            conflicts = self.detect_conflicts(binding, ignore=(binding.id,) if replace else ())
            if conflicts and not replace:
                handle.add_metadata("conflicts", ",".join(c.id for c in conflicts))
                raise KeymapConflictError(binding, conflicts)
            if not replace and binding.id in self._bindings:
                raise ValueError(f"Binding id '{binding.id}' already registered")

            for stale in conflicts:
                self._drop(stale)
            existing = self._bindings.get(binding.id)
            if existing is not None:
                self._drop(existing)

            self._store(binding)
            self._revision += 1
            return binding

    def unregister_binding(self, binding_id: str) -> Optional[Binding]:
        with span(
            "keymaps::unregister_binding",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"binding_id": binding_id},
        ):
            binding = self._bindings.get(binding_id)
            if binding is None:
                return None
            self._drop(binding)
            self._revision += 1
            return binding

    def update_binding(self, binding_id: str, **changes: object) -> Binding:
        with span(
            "keymaps::update_binding",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"binding_id": binding_id},
        ) as handle:
            if binding_id not in self._bindings:
                handle.fail("missing_binding")
                raise KeyError(f"Binding '{binding_id}' not found")

            current = self._bindings[binding_id]
            updated = replace(current, **changes)
            self._require_action(updated, handle)
            conflicts = self.detect_conflicts(updated, ignore=(binding_id,))
            if conflicts:
                handle.add_metadata("conflicts", ",".join(c.id for c in conflicts))
                raise KeymapConflictError(updated, conflicts)

            self._drop(current)
            self._store(updated)
            self._revision += 1
            return updated

    def iter_bindings(self, scope: Optional[str] = None) -> Iterator[Binding]:
        if scope is None:
            yield from self._bindings.values()
            return
        for bucket in self._index.get(scope, {}).values():
            for binding_id in sorted(bucket):
                yield self._bindings[binding_id]

    def bindings_for_action(
        self, action_id: str, *, scope: Optional[str] = None
    ) -> list[Binding]:
        """Bindings that trigger ``action_id``, ordered by id for stable help output."""

        found = [
            binding
            for binding in self.iter_bindings(scope)
            if binding.action_id == action_id
        ]
        return sorted(found, key=lambda binding: binding.id)

    def override_sequence_timeouts(
        self,
        *,
        timeout_ms: int,
        scope: Optional[str] = None,
        binding_ids: Optional[Iterable[str]] = None,
    ) -> None:
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")

        if binding_ids is not None:
            targets = [self.get_binding(binding_id) for binding_id in binding_ids]
        else:
            targets = list(self.iter_bindings(scope))
        if not targets:
            return

        for binding in targets:
            sequence = KeySequence(binding.sequence.strokes, timeout_ms=timeout_ms)
            self._drop(binding)
            self._store(replace(binding, sequence=sequence))
        self._revision += 1

    def stats(self) -> RegistryStats:
        return RegistryStats(
            action_count=len(self._actions),
            binding_count=len(self._bindings),
            scopes=tuple(sorted(self._index)),
        )

    def detect_conflicts(
        self, binding: Binding, *, ignore: Sequence[str] | None = None
    ) -> list[Binding]:
        ignored = set(ignore or ())
        candidates = self._index.get(binding.scope, {}).get(binding.key_signature, set())
        return [
            self._bindings[match_id]
            for match_id in sorted(candidates)
            if match_id not in ignored
            and _contexts_overlap(binding, self._bindings[match_id])
        ]

    def _require_action(self, binding: Binding, handle: SpanHandle) -> None:
        if binding.action_id in self._actions:
            return
        handle.add_metadata("missing_action", binding.action_id)
        raise KeyError(
            f"Binding '{binding.id}' references unknown action '{binding.action_id}'"
        )

    def _store(self, binding: Binding) -> None:
        self._bindings[binding.id] = binding
        by_signature = self._index.setdefault(binding.scope, {})
        by_signature.setdefault(binding.key_signature, set()).add(binding.id)

    def _drop(self, binding: Binding) -> None:
        self._bindings.pop(binding.id, None)
        by_signature = self._index.get(binding.scope)
        if not by_signature:
            return
        bucket = by_signature.get(binding.key_signature)
        if bucket is None:
            return
        bucket.discard(binding.id)
        if not bucket:
            by_signature.pop(binding.key_signature, None)
        if not by_signature:
            self._index.pop(binding.scope, None)


def _contexts_overlap(left: Binding, right: Binding) -> bool:
    """Two bindings overlap unless some flag is required with opposite values.

    An unconditional binding only overlaps another unconditional one.
    """

    if not left.when and not right.when:
        return True
    if not left.when or not right.when:
        return False

    left_map = left.when_map
    right_map = right.when_map
    for flag, expected in left_map.items():
        if flag in right_map and right_map[flag] != expected:
            return False
    return left_map == right_map


__all__ = [
    "KeymapRegistry",
    "KeymapConflictError",
    "RegistryStats",
]
