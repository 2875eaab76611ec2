#!/usr/bin/env python3

# standards
from datetime import timedelta
import threading
from time import monotonic
from typing import Callable, List, Optional, Union


Seconds = Union[timedelta, float, int]


class ContextDone(Exception):
    """
    Raised by `Context.raise_if_done`. The client turns this into a `Canceled` or `Timeout` error.
    """


class Context:
    """
    A cancellation signal and an optional deadline, passed by the caller to `HttpClient.execute`. Cancellation is cooperative:
    the client checks the context before touching the network, between redirect hops and body chunks, caps socket timeouts by the
    time remaining, and closes the in-flight response when `cancel()` is called from another thread.

    Contexts form a tree: a child is canceled when its parent is, and its deadline is never later than its parent's.
    """

    def __init__(self, timeout: Optional[Seconds] = None, parent: Optional['Context'] = None) -> None:
        self.parent = parent
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []
        deadline = None if timeout is None else monotonic() + _to_seconds(timeout)
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline

    @classmethod
    def background(cls) -> 'Context':
        return cls()

    def child(self, timeout: Optional[Seconds] = None) -> 'Context':
        return Context(timeout, parent=self)

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set() or (self.parent is not None and self.parent.cancelled)

    @property
    def expired(self) -> bool:
        return self.deadline is not None and monotonic() >= self.deadline

    @property
    def done(self) -> bool:
        return self.cancelled or self.expired

    def remaining(self) -> Optional[float]:
        """
        Seconds left before the deadline, or None if there is no deadline.
        """
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - monotonic())

    def raise_if_done(self) -> None:
        if self.cancelled:
            raise ContextDone('context canceled')
        if self.expired:
            raise ContextDone('context deadline exceeded')

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Arranges for `callback` to be called when this context or one of its ancestors gets canceled, or right away if it already
        is. Returns a function that unregisters the callback. The callback may end up being called more than once, so it should be
        idempotent.
        """
        with self._lock:
            already_cancelled = self._cancelled.is_set()
            if not already_cancelled:
                self._callbacks.append(callback)
        if already_cancelled:
            callback()
            return lambda: None
        unregister_from_parent = self.parent.on_cancel(callback) if self.parent is not None else None

        def unregister() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)
            if unregister_from_parent is not None:
                unregister_from_parent()

        return unregister


def _to_seconds(value: Seconds) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)
