"""Instance tracking — which live fibers render which component type.

Four observers keep the tables in _anchor current while the host renders:

- fiber:   redirect a fiber whose type has been replaced to the newest version
- diff:    record the fiber under its type before it evaluates
- diffed:  remember the latest fiber per rendered node, collapse duplicates
- unmount: forget the fiber

None of them may raise: an exception here would corrupt the host's own pass.
"""

from __future__ import annotations

import logging

from refreshx import _anchor
from refreshx.fiber import dedup_key
from refreshx.options import Disposer, Options

logger = logging.getLogger("refreshx.tracking")

# Structural types provided by hosts, never user components.
BUILT_IN_COMPONENTS = frozenset({"Fragment", "Suspense", "ErrorBoundary"})


class RemapCycleError(RuntimeError):
    """The identity-remap table loops back on itself."""


def is_builtin(type) -> bool:
    return getattr(type, "__name__", None) in BUILT_IN_COMPONENTS


def _is_component_fiber(fiber) -> bool:
    return fiber is not None and callable(getattr(fiber, "type", None))


def _attached(fiber) -> bool:
    return getattr(fiber, "parent", None) is not None


def resolve_type(type):
    """Follow the remap chain from ``type`` to its newest replacement."""
    seen = {id(type)}
    current = type
    while True:
        try:
            nxt = _anchor.mapped_types.get(current)
        except TypeError:
            return current
        if nxt is None:
            return current
        if id(nxt) in seen:
            raise RemapCycleError(
                f"Remap chain for {getattr(type, '__name__', type)!r} loops at "
                f"{getattr(nxt, '__name__', nxt)!r}"
            )
        seen.add(id(nxt))
        current = nxt


def tracked_fibers(type) -> list:
    """Snapshot of the fibers currently tracked for ``type``."""
    try:
        return list(_anchor.fibers_for_type.get(type, ()))
    except TypeError:
        return []


# --- Observers ---


def on_fiber(fiber) -> None:
    if not _is_component_fiber(fiber) or is_builtin(fiber.type):
        return
    try:
        found = resolve_type(fiber.type)
    except RemapCycleError:
        logger.exception("Cannot redirect fiber of %r", fiber.type)
        return
    if found is not fiber.type:
        fiber.type = found


def on_diff(fiber) -> None:
    if not _is_component_fiber(fiber) or is_builtin(fiber.type):
        return
    try:
        fibers = _anchor.fibers_for_type.get(fiber.type)
        if fibers is None:
            _anchor.fibers_for_type[fiber.type] = [fiber]
        elif not any(f is fiber for f in fibers):
            fibers.append(fiber)
    except TypeError:
        logger.debug("Type %r is not weak-referenceable; not tracked", fiber.type)


def on_diffed(fiber) -> None:
    if not _is_component_fiber(fiber):
        return
    _anchor.last_seen[dedup_key(fiber)] = fiber

    try:
        fibers = _anchor.fibers_for_type.get(fiber.type)
    except TypeError:
        return
    if not fibers or len(fibers) < 2:
        return

    unique: list = []
    by_key: dict = {}
    for f in fibers:
        key = dedup_key(f)
        kept = by_key.get(key)
        if kept is None:
            by_key[key] = f
            unique.append(f)
        elif kept is not f and _attached(kept) and _attached(f):
            logger.warning(
                "Merging distinct live fibers of %s sharing node %r",
                getattr(fiber.type, "__name__", fiber.type), key,
            )
    if len(unique) != len(fibers):
        fibers[:] = unique


def on_unmount(fiber) -> None:
    if not _is_component_fiber(fiber):
        return
    try:
        fibers = _anchor.fibers_for_type.get(fiber.type)
    except TypeError:
        fibers = None
    if fibers is not None:
        for i, f in enumerate(fibers):
            if f is fiber:
                del fibers[i]
                break
        if not fibers:
            del _anchor.fibers_for_type[fiber.type]

    _anchor.last_seen.pop(dedup_key(fiber), None)


def install(options: Options) -> Disposer:
    """Subscribe the four tracking observers. Returns a disposer for all of them."""
    disposers = [
        options.subscribe("fiber", on_fiber),
        options.subscribe("diff", on_diff),
        options.subscribe("diffed", on_diffed),
        options.subscribe("unmount", on_unmount),
    ]

    def _uninstall() -> None:
        for dispose in disposers:
            dispose()
        disposers.clear()

    return _uninstall
