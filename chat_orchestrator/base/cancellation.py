"""Cooperative cancellation primitives (public API facade).

Purpose
-------
Expose the in-process half of the two-layer cancellation model via the
canonical ``chat_orchestrator.base.cancellation`` import path while the
concrete implementations live under ``cancellation_parts``.

Notes
-----
- ``CancellationToken`` signals aborts across an orchestrator and the
  provider stream it drives.
- ``DeadlineTimer`` turns a wall-clock budget into a delayed abort of the same
  token; timeout and user stop share the mechanism and differ only in the
  attached error.
- ``CancelledError`` is raised by operations that observe a cancellation
  without a more specific error.
- The persisted per-conversation flag (the durable, cross-request signal)
  lives behind the conversation store and is polled by the streaming
  orchestrator.
"""

from .cancellation_parts.cancelled_error import CancelledError
from .cancellation_parts.cancellation_token import CancellationToken
from .cancellation_parts.deadline_timer import DeadlineTimer

__all__ = ["CancellationToken", "CancelledError", "DeadlineTimer"]
