"""Minimal synchronous component host.

Renders a tree of function components, keeps their hook state on fibers and
announces every lifecycle step through ``refreshx.options.options``. It is
small on purpose: enough to drive the refresh runtime end to end, not a
rendering engine.

Usage:
    def Counter(props):
        count, set_count = use_state(0)
        return f"count: {count}"

    root = Root()
    root.render(h(Counter))
    root.text()  # "count: 0"

Batching: ``update`` calls inside ``with batch():`` are deferred and each
fiber re-renders once when the outermost batch exits.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import Any, Callable

from refreshx.fiber import EffectSlot, Hooks, StateSlot
from refreshx.options import options

# The fiber whose component function is currently running.
current_fiber: contextvars.ContextVar[Fiber | None] = contextvars.ContextVar(
    "current_fiber", default=None
)

# Batch depth counter. When > 0, updates are deferred.
_batch_depth: int = 0

# Fibers updated during a batch, awaiting flush (insertion ordered).
_pending: dict[Fiber, None] = {}


class Element:
    """Description of a child to render: a component function or a tag name."""

    __slots__ = ("type", "props")

    def __init__(self, type, props: dict) -> None:
        self.type = type
        self.props = props

    def __repr__(self) -> str:
        return f"Element({getattr(self.type, '__name__', self.type)!r})"


def h(type, props: dict | None = None, *children) -> Element:
    return Element(type, {**(props or {}), "children": list(children)})


def Fragment(props):
    return props.get("children")


class Fiber:
    """One live evaluation of an element."""

    __slots__ = ("type", "props", "parent", "node", "hooks", "children", "__weakref__")

    def __init__(self, type, props: dict, parent) -> None:
        self.type = type
        self.props = props
        self.parent = parent
        self.node = None
        self.hooks: Hooks | None = Hooks() if callable(type) else None
        self.children: list = []

    def __repr__(self) -> str:
        state = "mounted" if self.parent is not None else "unmounted"
        return f"Fiber({getattr(self.type, '__name__', self.type)}, {state})"


class Root:
    """Container for one rendered tree."""

    def __init__(self) -> None:
        self.fiber: Fiber | None = None

    def render(self, element: Element) -> Fiber:
        self.fiber = _reconcile_one(self, self.fiber, element)
        return self.fiber

    def unmount(self) -> None:
        if self.fiber is not None:
            _unmount(self.fiber)
            self.fiber = None

    def text(self) -> str:
        return _text(self.fiber) if self.fiber is not None else ""


# ─── Rendering ───────────────────────────────────────────────────────────────


def _flatten(rendered) -> list:
    if rendered is None or rendered is False:
        return []
    if isinstance(rendered, (list, tuple)):
        out = []
        for item in rendered:
            out.extend(_flatten(item))
        return out
    return [rendered]


def _reconcile_one(parent, prev: Fiber | None, element: Element) -> Fiber:
    candidate = Fiber(element.type, element.props, parent)
    options.emit("fiber", candidate)
    if prev is not None:
        options.emit("fiber", prev)
        if prev.type is candidate.type or (
            not callable(prev.type) and prev.type == candidate.type
        ):
            prev.props = element.props
            _perform(prev)
            return prev
        _unmount(prev)
    _perform(candidate)
    return candidate


def _reconcile_children(fiber: Fiber, rendered) -> None:
    items = _flatten(rendered)
    old = fiber.children
    result: list = []
    for i, item in enumerate(items):
        prev = old[i] if i < len(old) else None
        if isinstance(item, Element):
            result.append(_reconcile_one(fiber, prev if isinstance(prev, Fiber) else None, item))
        else:
            if isinstance(prev, Fiber):
                _unmount(prev)
            result.append(str(item))
    for prev in old[len(items):]:
        if isinstance(prev, Fiber):
            _unmount(prev)
    fiber.children = result


def _perform(fiber: Fiber) -> None:
    if not callable(fiber.type):
        _reconcile_children(fiber, fiber.props.get("children"))
        return

    options.emit("diff", fiber)
    if fiber.hooks is None:
        fiber.hooks = Hooks()
    fiber.hooks.cursor = 0
    token = current_fiber.set(fiber)
    try:
        rendered = fiber.type(fiber.props)
    finally:
        current_fiber.reset(token)
    _reconcile_children(fiber, rendered)
    options.emit("diffed", fiber)
    _commit(fiber.hooks)


def _commit(hooks: Hooks) -> None:
    for effect in hooks.layout + hooks.effect:
        if not effect.pending:
            continue
        effect.pending = False
        if effect.cleanup is not None:
            cleanup, effect.cleanup = effect.cleanup, None
            cleanup()
        result = effect.fn()
        effect.cleanup = result if callable(result) else None


def _unmount(fiber: Fiber) -> None:
    for child in fiber.children:
        if isinstance(child, Fiber):
            _unmount(child)
    if fiber.hooks is not None:
        for effect in fiber.hooks.layout + fiber.hooks.effect:
            if effect.cleanup is not None:
                cleanup, effect.cleanup = effect.cleanup, None
                cleanup()
    options.emit("unmount", fiber)
    fiber.parent = None
    _pending.pop(fiber, None)


def _text(fiber: Fiber) -> str:
    return "".join(_text(c) if isinstance(c, Fiber) else c for c in fiber.children)


# ─── Scheduling ──────────────────────────────────────────────────────────────


def update(fiber: Fiber) -> None:
    """Re-render one fiber and its subtree. Deferred inside a batch."""
    if _batch_depth > 0:
        _pending[fiber] = None
    else:
        _rerender(fiber)


def _rerender(fiber: Fiber) -> None:
    if fiber.parent is None:
        return  # unmounted since it was scheduled
    options.emit("fiber", fiber)
    _perform(fiber)


def begin_batch() -> None:
    global _batch_depth
    _batch_depth += 1


def end_batch() -> None:
    global _batch_depth
    _batch_depth -= 1
    if _batch_depth == 0:
        _flush_pending()


def _flush_pending() -> None:
    while _pending:
        # Snapshot and clear — renders may schedule new updates.
        batch = list(_pending)
        _pending.clear()
        for fiber in batch:
            _rerender(fiber)


@contextmanager
def batch():
    """Defer updates until the block exits."""
    begin_batch()
    try:
        yield
    finally:
        end_batch()


def get_pending_count() -> int:
    """Number of fibers waiting to re-render. Useful for testing."""
    return len(_pending)


# ─── Hooks ───────────────────────────────────────────────────────────────────


def _next_slot(factory: Callable[[], Any]) -> tuple[Fiber, Any]:
    fiber = current_fiber.get()
    if fiber is None:
        raise RuntimeError("Hooks can only be called while a component renders")
    hooks = fiber.hooks
    if hooks.cursor < len(hooks.list):
        slot = hooks.list[hooks.cursor]
    else:
        slot = factory()
        hooks.list.append(slot)
    hooks.cursor += 1
    return fiber, slot


def use_state(initial):
    """Value state that survives re-renders (and compatible hot swaps)."""
    fiber, slot = _next_slot(lambda: StateSlot(initial() if callable(initial) else initial))

    def set_state(value) -> None:
        new = value(slot.value) if callable(value) else value
        if new is not slot.value and new != slot.value:
            slot.value = new
            update(fiber)

    return slot.value, set_state


def use_ref(initial=None) -> StateSlot:
    _, slot = _next_slot(lambda: StateSlot(initial))
    return slot


def _use_effect(kind: str, fn: Callable, deps) -> None:
    def _create() -> EffectSlot:
        slot = EffectSlot(fn, None)
        getattr(current_fiber.get().hooks, kind).append(slot)
        return slot

    _, slot = _next_slot(_create)
    deps = tuple(deps) if deps is not None else None
    if slot.deps is None or deps is None or deps != slot.deps:
        slot.fn = fn
        slot.deps = deps
        slot.pending = True


def use_effect(fn: Callable, deps=None) -> None:
    """Run ``fn`` after render when ``deps`` change. ``fn`` may return a cleanup."""
    _use_effect("effect", fn, deps)


def use_layout(fn: Callable, deps=None) -> None:
    """Like use_effect, committed before regular effects."""
    _use_effect("layout", fn, deps)
