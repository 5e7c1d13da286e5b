"""Cancellation parts package (token, deadline timer, state, error)."""

from .cancelled_error import CancelledError
from .cancellation_token import CancellationToken
from .deadline_timer import DeadlineTimer
from .state import State

__all__ = ["CancelledError", "CancellationToken", "DeadlineTimer", "State"]
