"""Tests for refreshx.textual — Textual integration layer."""

import logging
import threading

import pytest
from textual.css.query import NoMatches

from refreshx import refresh, runtime
from refreshx import textual as rtx


class _MockApp:
    """Minimal mock matching the Textual App interface rtx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)


def A(props):
    pass


def B(props):
    pass


@pytest.fixture
def flushes(monkeypatch, updates):
    calls = []
    monkeypatch.setattr(refresh, "flush", lambda: calls.append(threading.get_ident()))
    return calls


class TestBridge:
    def test_flushes_when_safe(self, flushes):
        trigger = rtx.bridge(_MockApp())
        trigger()
        assert flushes == [threading.get_ident()]

    def test_skips_when_not_running(self, flushes):
        trigger = rtx.bridge(_MockApp(is_running=False))
        trigger()
        assert flushes == []

    def test_skips_during_pause(self, flushes):
        app = _MockApp()
        trigger = rtx.bridge(app)
        with rtx.pause(app):
            trigger()
        assert flushes == []
        trigger()
        assert len(flushes) == 1

    def test_skipped_flush_keeps_pairs_queued(self, updates):
        app = _MockApp(is_running=False)
        runtime.register(A, "Counter")
        runtime.register(B, "Counter")
        rtx.bridge(app)()
        assert runtime.get_pending_updates() == [(A, B)]

        app.is_running = True
        rtx.bridge(app)()
        assert runtime.get_pending_updates() == []

    def test_thread_marshal(self, flushes):
        """Triggers from a background thread use call_from_thread."""
        app = _MockApp()
        trigger = rtx.bridge(app)

        t = threading.Thread(target=trigger)
        t.start()
        t.join()

        assert len(app._call_from_thread_log) == 1
        assert len(flushes) == 1

    def test_failure_calls_fallback(self, monkeypatch, caplog):
        def broken():
            raise RuntimeError("boom")

        monkeypatch.setattr(refresh, "flush", broken)
        fallbacks = []
        trigger = rtx.bridge(_MockApp(), on_failure=lambda: fallbacks.append(True))

        with caplog.at_level(logging.ERROR, logger="refreshx.textual"):
            trigger()

        assert fallbacks == [True]
        assert "Failed to flush updates" in caplog.text

    def test_failure_propagates_without_fallback(self, monkeypatch):
        def broken():
            raise RuntimeError("boom")

        monkeypatch.setattr(refresh, "flush", broken)
        with pytest.raises(RuntimeError, match="boom"):
            rtx.bridge(_MockApp())()


class TestGuardUpdate:
    def test_passes_through(self):
        seen = []
        rtx.guard_update(seen.append)("fiber")
        assert seen == ["fiber"]

    def test_catches_nomatch(self):
        """NoMatches from vanished widgets is silently swallowed."""

        def _raise_nomatch(fiber):
            raise NoMatches("StatusFooter")

        rtx.guard_update(_raise_nomatch)("fiber")

    def test_propagates_real_errors(self):
        def _raise_value_error(fiber):
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            rtx.guard_update(_raise_value_error)("fiber")


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert rtx.is_safe(app)

        with pytest.raises(RuntimeError):
            with rtx.pause(app):
                assert not rtx.is_safe(app)
                raise RuntimeError("oops")

        assert rtx.is_safe(app)

    def test_multiple_apps_independent(self):
        app_a = _MockApp()
        app_b = _MockApp()
        with rtx.pause(app_a):
            assert not rtx.is_safe(app_a)
            assert rtx.is_safe(app_b)
