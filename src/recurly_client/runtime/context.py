"""
Call contexts.

A Context is handed to every client call. Cancelling it (from any thread), or
letting its deadline pass, makes the call fail with CancelledError or
DeadlineExceededError instead of whatever transport error the interrupted
request produced.
"""

from __future__ import annotations
import threading
import time
from typing import Any, Callable, Optional

from .errors import CancelledError, DeadlineExceededError

#: Seconds between cancellation checks while a call is in flight.
POLL_INTERVAL = 0.05


class Context:
    """Cancellation token with an optional deadline."""

    def __init__(self, timeout: Optional[float] = None, parent: Optional["Context"] = None):
        """
        Args:
            timeout: Seconds from now until the deadline, or None for no deadline
            parent: A context whose cancellation and deadline this one inherits
        """
        self._event = threading.Event()
        self._parent = parent
        self._deadline: Optional[float] = None
        if timeout is not None:
            self._deadline = time.monotonic() + timeout
        if parent is not None and parent._deadline is not None:
            if self._deadline is None or parent._deadline < self._deadline:
                self._deadline = parent._deadline

    @classmethod
    def background(cls) -> "Context":
        """A context that is never cancelled and has no deadline."""
        return cls()

    def cancel(self) -> None:
        """Cancel the context. Safe to call more than once."""
        self._event.set()

    @property
    def deadline(self) -> Optional[float]:
        """Deadline on the time.monotonic() clock, or None."""
        return self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when there is none."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def error(self) -> Optional[CancelledError]:
        """Return the reason the context is done, or None while it is live."""
        if self._event.is_set():
            return CancelledError()
        if self._parent is not None:
            err = self._parent.error()
            if err is not None:
                return err
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return DeadlineExceededError()
        return None

    def done(self) -> bool:
        return self.error() is not None

    def raise_if_done(self) -> None:
        """Raise the context's error if it has been cancelled or expired."""
        err = self.error()
        if err is not None:
            raise err

    def run(self, fn: Callable[..., Any], *args: Any,
            on_abandon: Optional[Callable[[Any], None]] = None, **kwargs: Any) -> Any:
        """
        Run a blocking call on a worker thread, giving up when the context ends.

        The worker is not interrupted; once abandoned, its eventual result is
        passed to on_abandon so it can release resources.

        Args:
            fn: Callable to run
            on_abandon: Called with the late result of an abandoned call

        Returns:
            Whatever fn returns

        Raises:
            CancelledError: If the context ends before fn returns
            Exception: Whatever fn raises
        """
        self.raise_if_done()
        state = {"abandoned": False}
        outcome: dict = {}
        finished = threading.Event()
        lock = threading.Lock()

        def worker() -> None:
            try:
                outcome["result"] = fn(*args, **kwargs)
            except BaseException as e:
                outcome["error"] = e
            with lock:
                finished.set()
                abandoned = state["abandoned"]
            if abandoned and on_abandon is not None and "result" in outcome:
                on_abandon(outcome["result"])

        threading.Thread(target=worker, name="recurly-call", daemon=True).start()

        while True:
            if finished.wait(self._poll_interval()):
                break
            err = self.error()
            if err is None:
                continue
            with lock:
                if not finished.is_set():
                    state["abandoned"] = True
                    raise err
            break

        if "error" in outcome:
            raise outcome["error"]
        return outcome["result"]

    def _poll_interval(self) -> float:
        remaining = self.remaining()
        if remaining is None:
            return POLL_INTERVAL
        return min(POLL_INTERVAL, remaining)


__all__ = ["Context"]
