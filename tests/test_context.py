"""Tests for njalladns.app.context: Context deadlines and cancellation."""

import threading
import time

from njalladns.app.context import Context
from njalladns.app.exceptions import Cancelled, DeadlineExceeded


def test_background_is_never_done():
    ctx = Context.background()
    assert ctx.deadline is None
    assert ctx.remaining() is None
    assert not ctx.done()
    assert ctx.err() is None


def test_with_timeout_sets_deadline():
    ctx = Context.background().with_timeout(10)
    assert ctx.deadline is not None
    assert 9 < ctx.remaining() <= 10


def test_expired_deadline_reports_deadline_exceeded():
    ctx = Context.background().with_timeout(0)
    assert ctx.done()
    assert isinstance(ctx.err(), DeadlineExceeded)
    assert ctx.remaining() == 0.0


def test_cancel_reports_cancelled():
    ctx = Context.background().with_cancel()
    ctx.cancel()
    assert isinstance(ctx.err(), Cancelled)
    assert "canceled" in str(ctx.err())


def test_cancel_propagates_to_children():
    parent = Context.background().with_cancel()
    child = parent.with_timeout(60)
    grandchild = child.with_cancel()

    parent.cancel()

    assert child.done()
    assert grandchild.done()
    assert isinstance(grandchild.err(), Cancelled)


def test_child_cancel_leaves_parent_alive():
    parent = Context.background().with_cancel()
    child = parent.with_cancel()
    child.cancel()
    assert child.done()
    assert not parent.done()


def test_child_of_cancelled_parent_starts_cancelled():
    parent = Context.background().with_cancel()
    parent.cancel()
    assert parent.with_timeout(60).done()


def test_child_deadline_capped_by_parent():
    parent = Context.background().with_timeout(1)
    child = parent.with_timeout(60)
    assert child.deadline == parent.deadline


def test_child_deadline_can_be_shorter():
    parent = Context.background().with_timeout(60)
    child = parent.with_timeout(1)
    assert child.deadline < parent.deadline


def test_context_manager_cancels_and_detaches():
    parent = Context.background().with_cancel()
    with parent.with_timeout(60) as child:
        assert not child.done()
        assert child in parent._children
    assert child.done()
    assert not parent.done()
    assert child not in parent._children


def test_wait_returns_false_when_timeout_elapses():
    ctx = Context.background().with_cancel()
    assert ctx.wait(0.01) is False


def test_wait_returns_true_on_deadline():
    ctx = Context.background().with_timeout(0.02)
    started = time.monotonic()
    assert ctx.wait(5) is True
    assert time.monotonic() - started < 2


def test_wait_wakes_on_cancel_from_other_thread():
    ctx = Context.background().with_cancel()
    timer = threading.Timer(0.02, ctx.cancel)
    timer.start()
    started = time.monotonic()
    try:
        assert ctx.wait(5) is True
    finally:
        timer.cancel()
    assert time.monotonic() - started < 2


def test_wait_on_parent_cancel_wakes_child():
    parent = Context.background().with_cancel()
    child = parent.with_cancel()
    timer = threading.Timer(0.02, parent.cancel)
    timer.start()
    try:
        assert child.wait(5) is True
    finally:
        timer.cancel()
