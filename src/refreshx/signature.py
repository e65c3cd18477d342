"""Signature registry — structural fingerprints of component hook state.

The transform layer describes each component's hook-call shape with an
explicit ``key`` and a lazy accessor listing the custom hooks it calls.
Comparing fingerprints of an old and a new implementation decides whether
live hook state can survive a swap.

Signing is a two-phase protocol per component per module evaluation:

    status = record_signature(Counter, "useState{count}", False, lambda: [use_timer])
    # ... later, once every custom hook in the module is defined ...
    finalize_signature(Counter, status)

All state lives in _anchor.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable

from refreshx import _anchor

logger = logging.getLogger("refreshx.signature")


class SignStatus(enum.Enum):
    BEGIN = "begin"
    NEEDS_HOOKS = "needsHooks"  # Started
    DONE = "done"  # Finalized


def _no_custom_hooks() -> list:
    return []


class Signature:
    """Structural fingerprint attached to one component type."""

    __slots__ = ("type", "key", "full_key", "force_reset", "get_custom_hooks", "status")

    def __init__(
        self,
        type,
        key: str | None = None,
        force_reset: bool = False,
        get_custom_hooks: Callable[[], list] | None = None,
    ) -> None:
        self.type = type
        self.key = key
        self.full_key: str | None = None
        self.force_reset = bool(force_reset)
        self.get_custom_hooks = get_custom_hooks or _no_custom_hooks
        self.status = SignStatus.NEEDS_HOOKS

    def __repr__(self) -> str:
        name = getattr(self.type, "__name__", self.type)
        return f"Signature({name}, key={self.key!r}, {self.status.name})"


# Stand-in for identities that were never signed.
EMPTY = Signature(None)
EMPTY.status = SignStatus.DONE


def _custom_hooks(signature: Signature) -> list:
    try:
        return list(signature.get_custom_hooks() or ())
    except Exception:
        # Accessors may reference hooks defined further down a module that has
        # not finished evaluating yet.
        logger.debug("Custom hooks of %r not resolvable yet", signature, exc_info=True)
        return []


def compute_key(signature: Signature, _visited: set | None = None) -> str:
    """Explicit key plus the '::'-joined keys of every nested custom hook.

    Hooks without a registered signature contribute an empty string. A hook
    already on the current path also contributes an empty string, so
    self-referencing accessors terminate.
    """
    key = signature.key or ""
    hooks = _custom_hooks(signature)
    if not hooks:
        return key

    visited = set(_visited) if _visited else set()
    if signature.type is not None:
        visited.add(id(signature.type))

    parts = []
    for hook in hooks:
        sig = get_signature(hook)
        if sig is None or id(hook) in visited:
            parts.append("")
        else:
            parts.append(compute_key(sig, visited))
    return key + "::".join(parts)


def record_signature(
    type,
    key: str | None = None,
    force_reset: bool = False,
    get_custom_hooks: Callable[[], list] | None = None,
) -> SignStatus | None:
    """Create or overwrite the signature for ``type``. Returns the phase token."""
    if type is None:
        return None
    try:
        _anchor.signatures[type] = Signature(type, key, force_reset, get_custom_hooks)
    except TypeError:
        logger.debug("Cannot sign %r: not weak-referenceable", type)
        return None
    return SignStatus.NEEDS_HOOKS


def finalize_signature(type, status: SignStatus | None) -> SignStatus | None:
    """Compute ``full_key`` for a Started signature. No-op from any other state."""
    if type is None or status is not SignStatus.NEEDS_HOOKS:
        return None
    signature = _anchor.signatures.get(type)
    if signature is None or signature.status is not SignStatus.NEEDS_HOOKS:
        return None
    signature.full_key = compute_key(signature)
    signature.status = SignStatus.DONE
    return SignStatus.DONE


def sign(
    type,
    key: str | None = None,
    force_reset: bool = False,
    get_custom_hooks: Callable[[], list] | None = None,
    status: SignStatus | None = SignStatus.BEGIN,
) -> SignStatus | None:
    """Single entry point for generated code: dispatches on ``status``."""
    if status is SignStatus.BEGIN:
        return record_signature(type, key, force_reset, get_custom_hooks)
    if status is SignStatus.NEEDS_HOOKS:
        return finalize_signature(type, status)
    return None


def get_signature(type) -> Signature | None:
    try:
        return _anchor.signatures.get(type)
    except TypeError:
        return None
