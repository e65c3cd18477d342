"""Textual integration for refreshx. Opt-in — requires textual.

Reload events usually arrive on a file-watcher thread while the component
tree lives on the app thread. ``bridge`` returns a callable the transport can
fire from anywhere: it marshals the flush onto the app thread and only runs
it while the app is running and not paused. Skipped flushes leave the
pending pairs queued for the next event.
"""

import logging
import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

from refreshx import refresh

logger = logging.getLogger("refreshx.textual")

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend bridged flushes, e.g. during screen or widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a state where components can be swapped?"""
    return app.is_running and id(app) not in _paused_apps


def bridge(app, on_failure=None):
    """Return a thread-safe trigger that flushes pending replacements on ``app``.

    A failed flush calls ``on_failure`` if given, otherwise the exception
    propagates on the app thread.
    """
    _main = threading.get_ident()

    def _guarded():
        if not is_safe(app):
            logger.debug("App not ready; replacements stay queued")
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe)
        else:
            _safe()

    def _safe():
        try:
            refresh.flush()
        except Exception:
            logger.exception("Failed to flush updates")
            if on_failure is None:
                raise
            on_failure()

    return _guarded


def guard_update(update):
    """Wrap a host update entry point so vanished widgets are skipped.

    A component whose widget was already removed raises NoMatches when it
    re-renders; that fiber is stale, not broken.
    """

    def _update(fiber):
        try:
            update(fiber)
        except NoMatches:
            logger.debug("Skipping stale fiber %r", fiber)

    return _update
