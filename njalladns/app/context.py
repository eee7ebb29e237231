"""Deadline and cancellation propagation for provider and RPC calls.

A :class:`Context` is handed down from the caller through the provider
into the RPC client. Waiting is done on a ``threading.Event`` so that a
cancellation wakes a sleeping retry loop immediately instead of letting
it run out its backoff.

Usage::

    ctx = Context.background().with_timeout(60)
    with ctx.with_timeout(10) as op_ctx:
        client.call(op_ctx, "list-records", {"domain": "example.com"})
"""

from __future__ import annotations

import threading
import time
from typing import Optional, Set

from njalladns.app.exceptions import Cancelled, ContextError, DeadlineExceeded


class Context:
    def __init__(
        self, deadline: Optional[float] = None, parent: Optional["Context"] = None
    ) -> None:
        # Deadlines are time.monotonic() values; a child never outlives its parent
        if parent is not None and parent.deadline is not None:
            deadline = (
                parent.deadline if deadline is None else min(deadline, parent.deadline)
            )
        self._deadline = deadline
        self._parent = parent
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: Set["Context"] = set()
        self._error: Optional[ContextError] = None
        if parent is not None:
            parent._attach(self)

    @classmethod
    def background(cls) -> "Context":
        """Return a context that is never cancelled and has no deadline."""
        return cls()

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def with_timeout(self, seconds: float) -> "Context":
        return Context(deadline=time.monotonic() + seconds, parent=self)

    def with_cancel(self) -> "Context":
        return Context(parent=self)

    def __enter__(self) -> "Context":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, ``None`` when there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def err(self) -> Optional[ContextError]:
        """Return why the context is done, or ``None`` while it is live."""
        if (
            self._error is None
            and self._deadline is not None
            and time.monotonic() >= self._deadline
        ):
            self.cancel(DeadlineExceeded())
        return self._error

    def done(self) -> bool:
        return self.err() is not None

    def cancel(self, error: Optional[ContextError] = None) -> None:
        with self._lock:
            if self._error is None:
                self._error = error or Cancelled()
            error = self._error
            children = list(self._children)
            self._children.clear()
        self._event.set()
        for child in children:
            child.cancel(error)
        if self._parent is not None:
            self._parent._detach(self)

    def wait(self, timeout: float) -> bool:
        """Block for ``timeout`` seconds or until the context is done.

        Returns ``True`` if the context finished first.
        """
        end = time.monotonic() + timeout
        while not self._event.is_set():
            now = time.monotonic()
            limit = end - now
            if self._deadline is not None:
                limit = min(limit, self._deadline - now)
            if limit <= 0:
                break
            self._event.wait(limit)
        return self.done()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _attach(self, child: "Context") -> None:
        with self._lock:
            if self._error is None:
                self._children.add(child)
                return
            error = self._error
        child.cancel(error)

    def _detach(self, child: "Context") -> None:
        with self._lock:
            self._children.discard(child)
