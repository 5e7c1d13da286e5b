"""Cancellation error type.

Defines the public ``CancelledError`` raised when an operation observes a
cancelled token and no more specific abort error was attached.
"""

from __future__ import annotations


class CancelledError(RuntimeError):
    """Raised when an operation is cancelled cooperatively.

    Distinct from ``asyncio.CancelledError``: this signals a request-level
    abort observed by polling, not task cancellation.
    """


__all__ = ["CancelledError"]
