"""Deadline timer bound to a cancellation token.

``DeadlineTimer`` is an async context manager that schedules a delayed abort
of a :class:`CancellationToken`. The scheduled callback is always cancelled on
exit, whatever the exit path, so a finished generation is never aborted late.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

from .cancellation_token import CancellationToken


class DeadlineTimer:
    """Abort ``token`` with ``error_factory()`` after ``seconds`` elapse.

    Usage::

        async with DeadlineTimer(token, 300.0, lambda: GenerationTimeoutError(300.0)):
            ...
    """

    def __init__(
        self,
        token: CancellationToken,
        seconds: float,
        error_factory: Callable[[], BaseException],
    ) -> None:
        self._token = token
        self._seconds = seconds
        self._error_factory = error_factory
        self._handle: Optional[asyncio.TimerHandle] = None
        self.expired = False

    @property
    def active(self) -> bool:
        """Whether the abort is still scheduled."""
        return self._handle is not None and not self._handle.cancelled()

    def _fire(self) -> None:
        self._handle = None
        if self._token.cancelled:
            return
        self.expired = True
        error = self._error_factory()
        self._token.cancel(str(error), error=error)

    def start(self) -> None:
        if self._handle is None and self._seconds > 0:
            loop = asyncio.get_running_loop()
            self._handle = loop.call_later(self._seconds, self._fire)

    def clear(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def __aenter__(self) -> "DeadlineTimer":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.clear()


__all__ = ["DeadlineTimer"]
