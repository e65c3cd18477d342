"""Lifecycle extension points a rendering host announces.

Instead of a single mutable slot per hook that each consumer saves, wraps and
replaces, every extension point holds an ordered list of observers. The host
calls ``emit`` and observers run in registration order. ``subscribe`` returns
a disposer that removes the observer again.
"""

from __future__ import annotations

from typing import Callable

Observer = Callable[[object], None]
Disposer = Callable[[], None]

# fiber:  a fiber is about to evaluate (creation/reuse)
# diff:   immediately before the component function runs
# diffed: immediately after the component function returns
# unmount: the fiber is permanently removed
POINTS = ("fiber", "diff", "diffed", "unmount")


class Options:
    """Ordered observer lists, one per lifecycle extension point."""

    def __init__(self) -> None:
        self._observers: dict[str, list[Observer]] = {point: [] for point in POINTS}

    def subscribe(self, point: str, observer: Observer) -> Disposer:
        """Register an observer. Returns a function that removes it."""
        observers = self._observers[point]
        observers.append(observer)

        def _unsubscribe() -> None:
            try:
                observers.remove(observer)
            except ValueError:
                pass  # already removed

        return _unsubscribe

    def emit(self, point: str, fiber: object) -> None:
        for observer in list(self._observers[point]):
            observer(fiber)

    def observers(self, point: str) -> tuple[Observer, ...]:
        return tuple(self._observers[point])

    def clear(self) -> None:
        for observers in self._observers.values():
            observers.clear()

    def __repr__(self) -> str:
        counts = ", ".join(f"{p}={len(o)}" for p, o in self._observers.items())
        return f"Options({counts})"


# Default extension points used by refreshx.host.
options = Options()
