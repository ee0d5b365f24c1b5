"""
Cooperative cancellation.

A CancellationToken is passed down through every long-running call
(recognizer loop, contact and app enumeration). Callers on another
thread call cancel(); workers call check() at their suspension points.
"""

import threading
from typing import Optional

from voicedialer.errors import Cancelled


class CancellationToken:
    """Thread-safe cancel flag."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def check(self, where: str = ""):
        """Raise Cancelled if cancel() has been called."""
        if self._event.is_set():
            raise Cancelled(where)


class _NeverCancelled(CancellationToken):
    def cancel(self):
        raise RuntimeError("NEVER token cannot be cancelled")


NEVER = _NeverCancelled()


def ensure_token(token: Optional[CancellationToken]) -> CancellationToken:
    return token if token is not None else NEVER
