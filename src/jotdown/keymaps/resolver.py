"""Trie-based keymap resolution with telemetry instrumentation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Literal, Mapping, Optional, Sequence

from jotdown.runtime.telemetry import span

from .models import ActionRef, Binding
from .registry import KeymapRegistry


@dataclass(slots=True)
class TrieNode:
    """Single trie node tracking bindings and child transitions."""

    bindings: list[str] = field(default_factory=list)
    children: Dict[str, "TrieNode"] = field(default_factory=dict)

    def child(self, token: str) -> "TrieNode":
        return self.children.setdefault(token, TrieNode())

    def next_tokens(self) -> tuple[str, ...]:
        return tuple(sorted(self.children))

    def descendants(self) -> list["TrieNode"]:
        found: list[TrieNode] = []
        stack = list(self.children.values())
        while stack:
            node = stack.pop()
            found.append(node)
            stack.extend(node.children.values())
        return found


@dataclass(slots=True)
class KeymapTrie:
    """Token trie for one scope, tagged with the registry revision it reflects."""

    scope: str
    revision: int
    root: TrieNode = field(default_factory=TrieNode)

    def add_binding(self, binding: Binding) -> None:
        node = self.root
        for token in binding.sequence.tokens:
            node = node.child(token)
        node.bindings.append(binding.id)

    def walk(self, tokens: Sequence[str]) -> tuple[Optional[TrieNode], int]:
        node = self.root
        consumed = 0
        for token in tokens:
            child = node.children.get(token)
            if child is None:
                return None, consumed
            node = child
            consumed += 1
        return node, consumed


@dataclass(frozen=True, slots=True)
class ResolutionMatch:
    """Resolved binding paired with its action."""

    binding: Binding
    action: ActionRef


@dataclass(frozen=True, slots=True)
class ResolutionResult:
    """Outcome returned from the resolver."""

    status: Literal["match", "pending", "miss"]
    match: Optional[ResolutionMatch] = None
    consumed: int = 0
    next_expected: tuple[str, ...] = ()
    timeout_ms: Optional[int] = None


class KeymapResolver:
    """Builds scope-specific tries and resolves key token sequences."""

    def __init__(
        self, registry: KeymapRegistry, *, logger_name: str | None = None
    ) -> None:
        self._registry = registry
        self._logger_name = logger_name
        self._tries: Dict[str, KeymapTrie] = {}

    @property
    def registry(self) -> KeymapRegistry:
        return self._registry

    def resolve(
        self,
        scope: str,
        tokens: Sequence[str],
        *,
        context: Optional[Mapping[str, bool]] = None,
    ) -> ResolutionResult:
        flags = context or {}
        normalized = tuple(tokens)
        with span(
            "keymaps::resolve",
            logger_name=self._logger_name,
            component="keymaps",
            metadata={"scope": scope, "length": len(normalized)},
        ) as handle:
            node, consumed = self._trie(scope).walk(normalized)
            if node is None:
                handle.add_metadata("status", "miss")
                return ResolutionResult(status="miss", consumed=consumed)

            match = self._select_match(node, flags)
            if match is not None:
                handle.add_metadata("status", "match")
                handle.add_metadata("binding_id", match.binding.id)
                return ResolutionResult(status="match", match=match, consumed=consumed)

            next_expected = node.next_tokens()
            if not next_expected:
                handle.add_metadata("status", "miss")
                return ResolutionResult(status="miss", consumed=consumed)

            timeout_ms = self._pending_timeout(node)
            handle.add_metadata("status", "pending")
            if timeout_ms is not None:
                handle.add_metadata("timeout_ms", timeout_ms)
            return ResolutionResult(
                status="pending",
                consumed=consumed,
                next_expected=next_expected,
                timeout_ms=timeout_ms,
            )

    def reset(self, scope: Optional[str] = None) -> None:
        if scope is None:
            self._tries.clear()
        else:
            self._tries.pop(scope, None)

    def _trie(self, scope: str) -> KeymapTrie:
        revision = self._registry.revision()
        cached = self._tries.get(scope)
        if cached is not None and cached.revision == revision:
            return cached

        trie = KeymapTrie(scope=scope, revision=revision)
        for binding in self._registry.iter_bindings(scope):
            trie.add_binding(binding)
        self._tries[scope] = trie
        return trie

    def _select_match(
        self, node: TrieNode, context: Mapping[str, bool]
    ) -> Optional[ResolutionMatch]:
        matches: list[ResolutionMatch] = []
        for binding_id in node.bindings:
            binding = self._registry.get_binding(binding_id)
            if binding.allows(context):
                action = self._registry.get_action(binding.action_id)
                matches.append(ResolutionMatch(binding=binding, action=action))
        if not matches:
            return None
        # Higher priority wins; more when-clauses beat a catch-all.
        matches.sort(
            key=lambda m: (-m.binding.priority, -len(m.binding.when), m.binding.id)
        )
        return matches[0]

    def _pending_timeout(self, node: TrieNode) -> Optional[int]:
        timeouts = [
            self._registry.get_binding(binding_id).sequence.timeout_ms
            for descendant in node.descendants()
            for binding_id in descendant.bindings
        ]
        return min(timeouts) if timeouts else None


__all__ = [
    "KeymapResolver",
    "ResolutionResult",
    "ResolutionMatch",
]
