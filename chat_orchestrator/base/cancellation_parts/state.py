"""Internal state holder for cancellation tokens.

Dataclass used by ``CancellationToken`` to track cancellation status, the
reason text and the exception that describes the abort (a deadline expiry or
a user stop).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class State:
    """Internal state for cooperative cancellation tokens."""

    cancelled: bool = False
    reason: Optional[str] = None
    error: Optional[BaseException] = None


__all__ = ["State"]
