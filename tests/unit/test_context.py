"""
Unit tests for call contexts.
"""

import threading
import time

import pytest

from recurly_client.runtime.context import Context
from recurly_client.runtime.errors import CancelledError, DeadlineExceededError


class TestContext:
    """Tests for Context."""

    def test_background_is_live(self):
        ctx = Context.background()
        assert not ctx.done()
        assert ctx.error() is None
        assert ctx.deadline is None
        assert ctx.remaining() is None
        ctx.raise_if_done()

    def test_cancel(self):
        ctx = Context()
        ctx.cancel()
        ctx.cancel()
        assert ctx.done()
        assert isinstance(ctx.error(), CancelledError)
        assert not isinstance(ctx.error(), DeadlineExceededError)
        with pytest.raises(CancelledError):
            ctx.raise_if_done()

    def test_cancel_from_another_thread(self):
        ctx = Context()
        worker = threading.Thread(target=ctx.cancel)
        worker.start()
        worker.join()
        assert ctx.done()

    def test_expired_deadline(self):
        ctx = Context(timeout=0)
        assert ctx.remaining() == 0.0
        with pytest.raises(DeadlineExceededError) as exc_info:
            ctx.raise_if_done()
        assert str(exc_info.value.message) == "context deadline exceeded"

    def test_future_deadline(self):
        ctx = Context(timeout=60)
        assert not ctx.done()
        assert 0 < ctx.remaining() <= 60

    def test_child_inherits_cancellation(self):
        parent = Context()
        child = Context(parent=parent)
        parent.cancel()
        assert isinstance(child.error(), CancelledError)

    def test_child_inherits_earlier_deadline(self):
        parent = Context(timeout=5)
        child = Context(timeout=60, parent=parent)
        assert child.deadline == parent.deadline

    def test_child_keeps_own_earlier_deadline(self):
        parent = Context(timeout=60)
        child = Context(timeout=5, parent=parent)
        assert child.deadline < parent.deadline


class TestRun:
    """Tests for Context.run."""

    def test_returns_result(self):
        assert Context().run(lambda a, b=0: a + b, 1, b=2) == 3

    def test_propagates_exception(self):
        def fail():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            Context().run(fail)

    def test_cancelled_before_start(self):
        calls = []
        ctx = Context()
        ctx.cancel()
        with pytest.raises(CancelledError):
            ctx.run(calls.append, 1)
        assert calls == []

    def test_cancel_interrupts_wait(self):
        release = threading.Event()
        ctx = Context()
        timer = threading.Timer(0.1, ctx.cancel)
        timer.start()
        started = time.monotonic()
        try:
            with pytest.raises(CancelledError):
                ctx.run(release.wait, 5)
        finally:
            release.set()
            timer.cancel()
        assert time.monotonic() - started < 1.0

    def test_parent_cancel_interrupts_wait(self):
        release = threading.Event()
        parent = Context()
        child = Context(parent=parent)
        timer = threading.Timer(0.1, parent.cancel)
        timer.start()
        try:
            with pytest.raises(CancelledError):
                child.run(release.wait, 5)
        finally:
            release.set()
            timer.cancel()

    def test_deadline_interrupts_wait(self):
        release = threading.Event()
        started = time.monotonic()
        try:
            with pytest.raises(DeadlineExceededError):
                Context(timeout=0.1).run(release.wait, 5)
        finally:
            release.set()
        assert time.monotonic() - started < 1.0

    def test_late_result_goes_to_on_abandon(self):
        release = threading.Event()
        abandoned = []
        delivered = threading.Event()

        def on_abandon(result):
            abandoned.append(result)
            delivered.set()

        ctx = Context(timeout=0.05)
        with pytest.raises(DeadlineExceededError):
            ctx.run(lambda: release.wait(5) and "late", on_abandon=on_abandon)
        release.set()
        assert delivered.wait(2)
        assert abandoned == ["late"]
