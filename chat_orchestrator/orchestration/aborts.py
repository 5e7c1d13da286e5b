"""Await provider work while honoring the in-process cancellation token.

A hung provider never delivers its next event, so polling the token between
events is not enough. These helpers race the pending await against
``token.wait()`` and, when the token wins, cancel the pending await and raise
the token's attached error.
"""
from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Awaitable, Tuple, TypeVar

from ..base.cancellation import CancellationToken, CancelledError

T = TypeVar("T")


async def _pull(iterator: AsyncIterator[T]) -> Tuple[bool, Any]:
    try:
        return True, await iterator.__anext__()
    except StopAsyncIteration:
        return False, None


async def run_or_abort(awaitable: Awaitable[T], token: CancellationToken) -> T:
    """Return the result of ``awaitable`` unless ``token`` is cancelled first.

    Raises the token's error (or ``CancelledError``) when cancellation wins;
    the pending work is cancelled and awaited before raising.
    """
    if token.cancelled:
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        token.raise_if_cancelled()
    work = asyncio.ensure_future(awaitable)
    abort = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait({work, abort}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        work.cancel()
        raise
    finally:
        abort.cancel()
    if work in done:
        return work.result()
    work.cancel()
    await asyncio.gather(work, return_exceptions=True)
    token.raise_if_cancelled()
    raise CancelledError("Stream aborted: Request was aborted")


async def next_event_or_abort(iterator: AsyncIterator[T], token: CancellationToken) -> Tuple[bool, Any]:
    """Return ``(True, event)`` for the next event or ``(False, None)`` at end of stream."""
    return await run_or_abort(_pull(iterator), token)


__all__ = ["next_event_or_abort", "run_or_abort"]
