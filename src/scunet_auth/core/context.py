"""
Request-scoped context: cancellation, deadline and trace id.

One AuthContext lives for exactly one login or logout call. It is safe to
cancel from another thread while the call is running.
"""

import threading
import time
import uuid
from typing import Optional

from .exceptions import Cancelled


class AuthContext:
    """Cancellation signal plus request metadata for a single call."""

    def __init__(self, timeout: Optional[float] = None, trace_id: Optional[str] = None):
        """
        Initialize context.

        Args:
            timeout: Seconds until the deadline. None means no deadline.
            trace_id: Identifier attached to log lines. Random if omitted.
        """
        self.trace_id = trace_id or uuid.uuid4().hex[:12]
        self.deadline: Optional[float] = None
        if timeout is not None:
            self.deadline = time.monotonic() + timeout
        self._cancelled = threading.Event()
        self._reason = ""

    def cancel(self, reason: str = "context cancelled") -> None:
        """Signal cancellation to every operation using this context."""
        self._reason = reason
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        """True once cancelled or past the deadline."""
        return self._cancelled.is_set() or self.expired

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline, or None without a deadline."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise Cancelled(self._reason or "context cancelled")
        if self.expired:
            raise Cancelled("context deadline exceeded")

    def wait(self, seconds: float) -> bool:
        """
        Block for up to ``seconds`` or until cancelled.

        Returns:
            True if the context was cancelled while waiting
        """
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            self._cancelled.wait(remaining)
            return True
        return self._cancelled.wait(seconds)

    def sleep(self, seconds: float) -> None:
        """Sleep for ``seconds``, raising Cancelled as soon as the context ends."""
        self.raise_if_cancelled()
        self.wait(seconds)
        self.raise_if_cancelled()

    def __repr__(self) -> str:
        return f"AuthContext(trace_id={self.trace_id}, remaining={self.remaining()})"
