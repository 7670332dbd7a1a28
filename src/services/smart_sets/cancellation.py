"""Cooperative cancellation for long-running evaluations."""

from __future__ import annotations

import threading

__all__ = ["CancellationToken", "NEVER_CANCELLED"]


class CancellationToken:
    """Thread-safe cancellation flag shared between a caller and an evaluation.

    Evaluators poll ``cancelled`` while scanning and stop promptly once it
    is set; they return no result rather than a partial one.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class _NeverCancelled(CancellationToken):
    """Token used when the caller passes none; cancel() is a no-op."""

    def cancel(self) -> None:
        return None


NEVER_CANCELLED = _NeverCancelled()
