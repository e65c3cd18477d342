"""Data anchor — plain Python structures that hold all refresh state.

This module stores the raw tables the refresh runtime works on: which fibers
render which component type, which type replaced which, and the signatures
and registrations the transform layer feeds in. Separating data from behavior
means the behavior modules can themselves be reloaded while the tables persist.
"""

import weakref

# Signature registry: component type -> Signature
signatures: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()

# Instance tracker: component type -> list of live fibers rendered with it
fibers_for_type: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()

# Identity remap: old component type -> the type that replaced it
mapped_types: weakref.WeakKeyDictionary = weakref.WeakKeyDictionary()

# Dedup table: fiber.node (or the fiber itself) -> most recently rendered fiber
last_seen: dict[object, object] = {}

# Identity registry: edit id -> currently live component type
types_by_id: dict[str, object] = {}

# Pending (old, new) replacements, FIFO
pending: list[tuple[object, object]] = []


def clear() -> None:
    """Drop every table entry. Useful for testing."""
    signatures.clear()
    fibers_for_type.clear()
    mapped_types.clear()
    last_seen.clear()
    types_by_id.clear()
    pending.clear()
