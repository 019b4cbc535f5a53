"""
Cancellable execution context.

A Context carries an optional deadline and an explicit cancellation flag.
Repository operations check it before executing and register driver-level
interrupts on it while a statement is in flight, so a timeout and an
explicit ``cancel()`` take the same abort path.
"""

import threading
import time
import weakref
from typing import Callable, List, Optional

from .errors import CancelledError


class Context:
    """Deadline/cancellation carrier, derived parent -> child."""

    def __init__(self, deadline: Optional[float] = None, parent: Optional["Context"] = None):
        """
        Args:
            deadline: Absolute ``time.monotonic()`` value after which the
                      context is done, or None for no deadline
            parent: Context whose cancellation also cancels this one
        """
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline = deadline
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []
        self._reason: Optional[str] = None
        # Held weakly: a child that goes out of scope drops off this set.
        self._children: "weakref.WeakSet[Context]" = weakref.WeakSet()
        self._parent = parent

        if parent is not None:
            parent._adopt(self)

    @classmethod
    def background(cls) -> "Context":
        """Context that is never cancelled and has no deadline."""
        return cls()

    def with_timeout(self, seconds: float) -> "Context":
        """Child context that expires ``seconds`` from now."""
        return Context(deadline=time.monotonic() + seconds, parent=self)

    def with_cancel(self) -> "Context":
        """Child context that can be cancelled independently."""
        return Context(parent=self)

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline (never negative), or None."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def cancel(self, reason: str = "context cancelled") -> None:
        """Cancel this context and run registered callbacks once."""
        with self._lock:
            if self._cancelled.is_set():
                return
            self._reason = reason
            self._cancelled.set()
            callbacks, self._callbacks = self._callbacks, []
            children = list(self._children)
            self._children.clear()
        self.release()
        for child in children:
            child.cancel("parent context cancelled")
        for callback in callbacks:
            callback()

    def release(self) -> None:
        """Detach from the parent. Parent cancellation no longer reaches this context."""
        parent, self._parent = self._parent, None
        if parent is not None:
            with parent._lock:
                parent._children.discard(self)

    def _adopt(self, child: "Context") -> None:
        with self._lock:
            if not self._cancelled.is_set():
                self._children.add(child)
                return
        child.cancel("parent context cancelled")

    def done(self) -> bool:
        """True once cancelled or past the deadline."""
        if self._cancelled.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def reason(self) -> Optional[str]:
        """Why the context is done, or None while it is still live."""
        if self._cancelled.is_set():
            return self._reason
        if self.done():
            return "deadline exceeded"
        return None

    def raise_if_done(self) -> None:
        """Raise CancelledError if the context is done."""
        if self.done():
            raise CancelledError(self.reason() or "context cancelled")

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register ``callback`` to run when the context is cancelled.

        Runs immediately if the context is already cancelled.

        Returns:
            Function that unregisters the callback
        """
        with self._lock:
            if not self._cancelled.is_set():
                self._callbacks.append(callback)
                registered = True
            else:
                registered = False
        if not registered:
            callback()

        def unregister() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unregister
