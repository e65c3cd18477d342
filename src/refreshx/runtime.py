"""Replacement engine — swap a component type for its edited version in place.

The transform layer calls ``register`` every time a module re-evaluates.
When an edit id shows up with a different function object than last time,
the (old, new) pair is queued. The transport drains the queue and, for each
pair, calls ``replace_component``, which moves every live fiber over to the
new type, cleans up or discards its hook state, and asks the host to render
it again.

The runtime must be attached to a host before it can re-render anything:

    from refreshx import runtime, host

    runtime.attach(host.update)

All state lives in _anchor.
"""

from __future__ import annotations

import logging
from typing import Callable

from refreshx import _anchor
from refreshx.fiber import Hooks, dedup_key
from refreshx.options import Options, options as default_options
from refreshx.signature import Signature, SignStatus
from refreshx import tracking

logger = logging.getLogger("refreshx.runtime")

_update: Callable[[object], None] | None = None
_uninstall: Callable[[], None] | None = None


# ─── Attachment ──────────────────────────────────────────────────────────────


def attach(update: Callable[[object], None], options: Options | None = None) -> None:
    """Install the tracking observers and remember the host's update entry point.

    Call once, after the host is importable. Attaching again replaces the
    previous attachment.
    """
    global _update, _uninstall
    if options is None:
        options = default_options
    detach()
    _uninstall = tracking.install(options)
    _update = update
    logger.debug("Attached to %r", options)


def detach() -> None:
    global _update, _uninstall
    if _uninstall is not None:
        _uninstall()
    _uninstall = None
    _update = None


def is_attached() -> bool:
    return _update is not None


# ─── Registration ────────────────────────────────────────────────────────────


def register(type, id: str) -> None:
    """Record that edit id ``id`` currently evaluates to ``type``.

    A different object for a known id queues a pending replacement.
    """
    if not callable(type):
        return

    existing = _anchor.types_by_id.get(id)
    if existing is None:
        _anchor.types_by_id[id] = type
    elif existing is not type:
        _anchor.pending.append((existing, type))
        _anchor.types_by_id[id] = type
        logger.debug("Queued replacement for %s", id)

    try:
        if type not in _anchor.signatures:
            signature = Signature(type)
            signature.status = SignStatus.DONE
            _anchor.signatures[type] = signature
    except TypeError:
        logger.debug("Type %r is not weak-referenceable; no signature seeded", type)


def get_pending_updates() -> list[tuple[object, object]]:
    """The live pending queue. Snapshot it before calling ``clear_pending``."""
    return _anchor.pending


def clear_pending() -> None:
    _anchor.pending.clear()


# ─── Replacement ─────────────────────────────────────────────────────────────


def replace_component(old_type, new_type, reset_state: bool) -> None:
    """Move every fiber of ``old_type`` to ``new_type`` and re-render it.

    With ``reset_state`` all hook cleanups run and hook state is discarded.
    Without it only side-effect cleanups run; value state survives.
    """
    if _update is None:
        logger.warning("Runtime not attached; skipping replacement of %s", _name(old_type))
        return

    if old_type is new_type:
        return

    fibers = tracking.tracked_fibers(old_type)
    if not fibers:
        return

    try:
        tracked = _anchor.fibers_for_type.setdefault(new_type, [])
    except TypeError:
        logger.warning("Cannot track %r: not weak-referenceable; skipping replacement", new_type)
        return
    del _anchor.fibers_for_type[old_type]
    for fiber in fibers:
        if not any(f is fiber for f in tracked):
            tracked.append(fiber)

    # An older implementation coming back as "new" must not close a loop.
    _anchor.mapped_types.pop(new_type, None)
    _anchor.mapped_types[old_type] = new_type

    _anchor.pending[:] = [p for p in _anchor.pending if p[0] is not old_type]

    # Re-rendering may re-enter the tracking observers and mutate the list.
    updated = 0
    for fiber in list(fibers):
        if fiber is None:
            continue

        current = fiber
        key = dedup_key(fiber)
        if key in _anchor.last_seen:
            current = _anchor.last_seen.pop(key)

        if current is None or getattr(current, "parent", None) is None:
            continue

        current.type = new_type

        hooks = getattr(current, "hooks", None)
        if hooks is not None:
            if reset_state:
                cleanup_hooks(hooks)
                current.hooks = Hooks()
            else:
                run_cleanups(hooks)

        _update(current)
        updated += 1

    logger.info(
        "Replaced %s -> %s (%d fibers, %s)",
        _name(old_type), _name(new_type), updated,
        "reset" if reset_state else "preserved",
    )


def cleanup_hooks(hooks: Hooks) -> None:
    """Run the cleanup of every hook slot. Failures are logged, not raised."""
    for slot in hooks.list:
        cleanup = getattr(slot, "cleanup", None)
        if callable(cleanup):
            try:
                cleanup()
            except Exception:
                logger.exception("Error in cleanup")


def run_cleanups(hooks: Hooks) -> None:
    """Run side-effect cleanups once, keeping value state.

    Each effect also forgets its dependencies so the host runs it again
    against the new implementation.
    """
    for kind, effects in (("effect", hooks.effect), ("layout", hooks.layout)):
        for effect in effects:
            cleanup = effect.cleanup
            effect.deps = None
            if callable(cleanup):
                effect.cleanup = None
                try:
                    cleanup()
                except Exception:
                    logger.exception("Error in %s cleanup", kind)


def _name(type) -> str:
    return getattr(type, "__qualname__", None) or repr(type)
