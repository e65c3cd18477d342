"""Registration slots for code prepared for hot reload.

A source transform rewrites each module so that component definitions
report themselves as the module evaluates:

    _s = refresh_sig()

    def Counter(props):
        _s()
        count, set_count = use_state(0)
        ...

    _s(Counter, "use_state{count}", False, lambda: [use_interval])
    refresh_reg(Counter, "app.counter Counter")

The first ``_s(...)`` call records the signature, the ``_s()`` inside the
body finalizes it on first render, once every custom hook in the module is
defined. Without a transform, decorate components with ``@component``.
"""

from __future__ import annotations

from typing import Callable, TypeVar

from refreshx import runtime
from refreshx.signature import SignStatus, sign

F = TypeVar("F", bound=Callable)


def refresh_reg(type, id: str) -> None:
    runtime.register(type, id)


def refresh_sig() -> Callable:
    """Return a signer for one component definition.

    The signer walks BEGIN -> NEEDS_HOOKS -> DONE; calls past DONE are no-ops.
    It always returns ``type`` so it can wrap expressions.
    """
    status: SignStatus | None = SignStatus.BEGIN
    saved_type = None

    def _sign(type=None, key=None, force_reset=False, get_custom_hooks=None):
        nonlocal status, saved_type
        if saved_type is None:
            saved_type = type
        if status is not None:
            status = sign(type or saved_type, key, force_reset, get_custom_hooks, status)
        return type

    return _sign


def component(
    fn: F | None = None,
    *,
    key: str | None = None,
    force_reset: bool = False,
    hooks: Callable[[], list] | None = None,
):
    """Decorator: register a component under ``"<module> <qualname>"`` and sign it.

    Usage:
        @component(key="use_state{count}")
        def Counter(props):
            ...

    The function is returned unchanged, so its identity is the component type.
    """

    def decorate(fn: F) -> F:
        signer = refresh_sig()
        signer(fn, key, force_reset, hooks)
        signer()
        refresh_reg(fn, f"{fn.__module__} {fn.__qualname__}")
        return fn

    if fn is not None:
        return decorate(fn)
    return decorate
