"""Reset decision and flush — what the reload transport calls.

Once per reload event the transport calls ``flush()``: the pending queue is
snapshotted and cleared, then every (old, new) pair is compared and handed
to the runtime. Pairs queued while the snapshot is processed wait for the
next flush.
"""

from __future__ import annotations

import logging

from refreshx import runtime
from refreshx.signature import EMPTY, compute_key, get_signature

logger = logging.getLogger("refreshx.refresh")


def should_reset(prev, next) -> bool:
    """Hook state must be discarded when the structural signature changed.

    That is: the explicit keys differ, the computed keys (including nested
    custom hooks) differ, or the new version forces a reset. Unsigned types
    compare as empty signatures.
    """
    prev_sig = get_signature(prev) or EMPTY
    next_sig = get_signature(next) or EMPTY
    return (
        prev_sig.key != next_sig.key
        or compute_key(prev_sig) != compute_key(next_sig)
        or next_sig.force_reset
    )


def process_pair(prev, next) -> None:
    if not runtime.is_attached():
        logger.warning("Runtime not initialized")
        return
    runtime.replace_component(prev, next, should_reset(prev, next))


def flush() -> None:
    """Drain the pending queue and apply every replacement in order."""
    if not runtime.is_attached():
        logger.warning("Runtime not initialized")
        return

    pending = list(runtime.get_pending_updates())
    runtime.clear_pending()

    for prev, next in pending:
        process_pair(prev, next)


def is_component(value) -> bool:
    """A callable whose name starts with an uppercase letter."""
    if not callable(value):
        return False
    name = getattr(value, "__name__", None)
    # Stricter than "first char equals its uppercase": names starting with
    # "_" or a caseless character are private helpers, not components.
    return isinstance(name, str) and len(name) > 0 and name[0].isupper()
