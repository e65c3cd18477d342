"""Fiber data model shared by the refresh runtime and its host.

A fiber is one live, in-tree evaluation of a component type. The runtime only
relies on the small surface described by the ``Fiber`` protocol below; any
host whose instances expose it can be refreshed.

Hook state is kept in ``Hooks``:
- ``list``: every slot in call order (value state and side effects alike)
- ``effect`` / ``layout``: the subset of slots that are side-effect
  registrations and may own a cleanup function
"""

from __future__ import annotations

from typing import Any, Callable, Protocol


class StateSlot:
    """A plain value slot (use_state, use_ref)."""

    __slots__ = ("value", "cleanup")

    def __init__(self, value: Any) -> None:
        self.value = value
        self.cleanup: Callable[[], None] | None = None

    def __repr__(self) -> str:
        return f"StateSlot({self.value!r})"


class EffectSlot:
    """A side-effect registration (use_effect, use_layout)."""

    __slots__ = ("fn", "deps", "cleanup", "pending")

    def __init__(self, fn: Callable[[], Any], deps: tuple | None) -> None:
        self.fn = fn
        self.deps = deps
        self.cleanup: Callable[[], None] | None = None
        self.pending = True

    def __repr__(self) -> str:
        state = "pending" if self.pending else "committed"
        return f"EffectSlot({getattr(self.fn, '__name__', self.fn)!r}, {state})"


class Hooks:
    """Accumulated per-call state of one fiber."""

    __slots__ = ("list", "effect", "layout", "cursor")

    def __init__(self) -> None:
        self.list: list = []
        self.effect: list[EffectSlot] = []
        self.layout: list[EffectSlot] = []
        self.cursor = 0

    def __repr__(self) -> str:
        return f"Hooks({len(self.list)} slots, {len(self.effect)} effects, {len(self.layout)} layout)"


class Fiber(Protocol):
    type: Any
    node: Any
    parent: Any
    hooks: Hooks | None


def dedup_key(fiber: Fiber) -> object:
    """Stable identity of the rendered node, falling back to the fiber itself."""
    node = getattr(fiber, "node", None)
    if node is None:
        return fiber
    try:
        hash(node)
    except TypeError:
        return fiber
    return node
