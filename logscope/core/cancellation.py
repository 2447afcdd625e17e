"""
CancellationToken — Cooperative cancellation for long scans

Scans call check() between entries. A token is cancelled explicitly
(cancel()) or implicitly once its deadline passes.
"""

import threading
import time
from typing import Optional

from ..errors import CancellationError


class CancellationToken:
    """Thread-safe cancel flag with an optional deadline."""

    def __init__(self, timeout: Optional[float] = None):
        """
        Args:
            timeout: Seconds until the token expires (None = never)
        """
        self._event = threading.Event()
        self._reason = "request cancelled"
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self, reason: str = "request cancelled") -> None:
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._reason = "request timed out"
            self._event.set()
            return True
        return False

    def check(self) -> None:
        """Raise CancellationError if the token has been cancelled."""
        if self.cancelled:
            raise CancellationError(self._reason)
