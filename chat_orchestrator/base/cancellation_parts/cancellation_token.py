"""Cooperative cancellation token implementation.

Exposes the ``CancellationToken`` class: the in-process half of the two-layer
cancellation model. It stops local awaiting quickly but cannot cross process
or request boundaries; the persisted per-conversation flag covers those.
"""

from __future__ import annotations

import asyncio
from threading import Lock
from typing import Callable, List, Optional

from .cancelled_error import CancelledError
from .state import State


class CancellationToken:
    """A cooperative cancellation token with cascading semantics.

    ``cancel`` is idempotent: the first reason and error win. Child tokens
    inherit cancellation when the parent is cancelled. Callbacks registered
    with ``on_cancel`` run once, synchronously, at cancel time; provider
    handles use them to close open SDK streams.
    """

    def __init__(self, *, parent: "CancellationToken | None" = None) -> None:
        self._state = State()
        self._lock = Lock()
        self._children: List[CancellationToken] = []
        self._callbacks: List[Callable[[], None]] = []
        self._event: Optional[asyncio.Event] = None
        if parent is not None:
            parent.link_child(self)

    @property
    def cancelled(self) -> bool:  # noqa: D401 - short form
        """Whether cancellation has been requested."""
        return self._state.cancelled

    @property
    def reason(self) -> str | None:  # noqa: D401 - short form
        """Reason string supplied at cancel time (if any)."""
        return self._state.reason

    @property
    def error(self) -> BaseException | None:
        """Exception describing the abort, when one was attached."""
        return self._state.error

    def cancel(self, reason: str | None = None, *, error: BaseException | None = None) -> None:
        """Request cancellation, run callbacks and cascade to children."""
        with self._lock:
            if self._state.cancelled:
                return
            self._state.cancelled = True
            self._state.reason = reason if reason is not None else (str(error) if error else None)
            self._state.error = error
            children = list(self._children)
            callbacks = list(self._callbacks)
            self._callbacks.clear()
        if self._event is not None:
            self._event.set()
        for cb in callbacks:
            cb()
        for child in children:
            child.cancel(reason, error=error)

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """Register ``callback``; runs immediately when already cancelled."""
        with self._lock:
            if not self._state.cancelled:
                self._callbacks.append(callback)
                return
        callback()

    def link_child(self, token: "CancellationToken") -> "CancellationToken":
        """Link a child token so parent cancellation cascades (returns child)."""
        with self._lock:
            self._children.append(token)
            should_cancel = self._state.cancelled
            reason = self._state.reason
            error = self._state.error
        if should_cancel:
            token.cancel(reason, error=error)
        return token

    def child(self) -> "CancellationToken":
        """Create and link a child token (shortcut)."""
        return CancellationToken(parent=self)

    def raise_if_cancelled(self) -> None:
        """Raise the attached abort error, or ``CancelledError``, when cancelled."""
        if not self._state.cancelled:
            return
        if self._state.error is not None:
            raise self._state.error
        raise CancelledError(f"Stream aborted: {self._state.reason or 'Request was aborted'}")

    async def wait(self) -> None:
        """Suspend until the token is cancelled."""
        if self._state.cancelled:
            return
        if self._event is None:
            self._event = asyncio.Event()
        await self._event.wait()

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return (
            f"CancellationToken(cancelled={self._state.cancelled}, "
            f"reason={self._state.reason!r}, children={len(self._children)})"
        )


__all__ = ["CancellationToken"]
