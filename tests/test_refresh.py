"""Tests for the reset decision and the transport flush."""

import logging

import pytest

from refreshx import refresh, runtime, tracking
from refreshx.fiber import Hooks
from refreshx.signature import record_signature

from conftest import FakeFiber


def A(props):
    pass


def B(props):
    pass


def C(props):
    pass


def use_timer():
    pass


def use_clock():
    pass


@pytest.fixture
def replacements(monkeypatch, updates):
    """Record replace_component calls instead of performing them."""
    calls = []
    monkeypatch.setattr(
        runtime, "replace_component", lambda old, new, reset: calls.append((old, new, reset))
    )
    return calls


class TestShouldReset:
    def test_same_key_same_hooks_preserves(self):
        record_signature(use_timer, "h")
        record_signature(A, "k1", False, lambda: [use_timer])
        record_signature(B, "k1", False, lambda: [use_timer])
        assert refresh.should_reset(A, B) is False

    def test_key_change_resets(self):
        record_signature(A, "k1")
        record_signature(B, "k2")
        assert refresh.should_reset(A, B) is True

    def test_custom_hook_shape_change_resets(self):
        record_signature(use_timer, "t")
        record_signature(use_clock, "c")
        record_signature(A, "k1", False, lambda: [use_timer])
        record_signature(B, "k1", False, lambda: [use_clock])
        assert refresh.should_reset(A, B) is True

    def test_hook_signed_after_component_counts(self):
        record_signature(A, "k1", False, lambda: [use_timer])
        record_signature(B, "k1", False, lambda: [use_clock])
        record_signature(use_timer, "t")
        record_signature(use_clock, "t")
        assert refresh.should_reset(A, B) is False

    def test_force_reset_on_new_resets(self):
        record_signature(A, "k1")
        record_signature(B, "k1", True)
        assert refresh.should_reset(A, B) is True

    def test_force_reset_on_old_only_preserves(self):
        record_signature(A, "k1", True)
        record_signature(B, "k1")
        assert refresh.should_reset(A, B) is False

    def test_unsigned_against_keyed_resets(self):
        record_signature(B, "k1")
        assert refresh.should_reset(A, B) is True
        assert refresh.should_reset(B, C) is True

    def test_both_unsigned_preserves(self):
        assert refresh.should_reset(A, B) is False


class TestProcessPair:
    def test_preserve(self, replacements):
        record_signature(A, "k1")
        record_signature(B, "k1")
        refresh.process_pair(A, B)
        assert replacements == [(A, B, False)]

    def test_reset(self, replacements):
        record_signature(A, "k1")
        record_signature(B, "k2")
        refresh.process_pair(A, B)
        assert replacements == [(A, B, True)]

    def test_not_attached_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="refreshx.refresh"):
            refresh.process_pair(A, B)
        assert "Runtime not initialized" in caplog.text


class TestFlush:
    def test_empty_is_noop(self, replacements):
        refresh.flush()
        refresh.flush()
        assert replacements == []

    def test_not_attached_warns_and_keeps_queue(self, caplog):
        runtime.register(A, "Counter")
        runtime.register(B, "Counter")
        with caplog.at_level(logging.WARNING, logger="refreshx.refresh"):
            refresh.flush()
        assert "Runtime not initialized" in caplog.text
        assert runtime.get_pending_updates() == [(A, B)]

    def test_processes_in_order_and_clears(self, replacements):
        runtime.register(A, "Counter")
        runtime.register(B, "Counter")
        runtime.register(C, "Counter")
        refresh.flush()
        assert [(old, new) for old, new, _ in replacements] == [(A, B), (B, C)]
        assert runtime.get_pending_updates() == []

    def test_second_flush_does_not_reapply(self, replacements):
        runtime.register(A, "Counter")
        runtime.register(B, "Counter")
        refresh.flush()
        refresh.flush()
        assert len(replacements) == 1

    def test_pairs_queued_during_processing_survive(self, monkeypatch, updates):
        def D(props):
            pass

        def E(props):
            pass

        processed = []

        def replace(old, new, reset):
            processed.append((old, new))
            # a re-render re-evaluates another module mid-flush
            runtime.register(E, "Other")

        monkeypatch.setattr(runtime, "replace_component", replace)
        runtime.register(A, "Counter")
        runtime.register(D, "Other")
        runtime.register(B, "Counter")

        refresh.flush()

        assert processed == [(A, B)]
        assert runtime.get_pending_updates() == [(D, E)]

    def test_real_replacement(self, updates):
        record_signature(A, "k1")
        record_signature(B, "k1")
        fiber = FakeFiber(A, hooks=Hooks())
        tracking.on_diff(fiber)
        runtime.register(A, "Counter")
        runtime.register(B, "Counter")

        refresh.flush()

        assert fiber.type is B
        assert updates == [fiber]


class TestIsComponent:
    def test_uppercase_function(self):
        assert refresh.is_component(A)

    def test_lowercase_function(self):
        assert not refresh.is_component(use_timer)

    def test_non_callable(self):
        assert not refresh.is_component("Counter")
        assert not refresh.is_component(None)

    def test_nameless_callable(self):
        class Handler:
            def __call__(self):
                pass

        assert not refresh.is_component(Handler())

    def test_underscore_prefix_rejected(self):
        def _Private(props):
            pass

        assert not refresh.is_component(_Private)
