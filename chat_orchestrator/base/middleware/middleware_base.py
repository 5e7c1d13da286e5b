"""Base class for model stream middleware.

Provides no-op implementations for all hooks so implementers override only
what they need. Hooks are pure transformations of the event stream and of
the final resolved text; they must not perform I/O.
"""

from __future__ import annotations

from typing import AsyncIterator, Optional, Tuple

from ..streaming import StreamEvent


class Middleware:
    """Base middleware with pass-through hooks.

    Failure modes:
    - Implementations may raise to abort the stream; the orchestrator treats
      that like any other stream failure.
    """

    async def wrap_stream(self, events: AsyncIterator[StreamEvent]) -> AsyncIterator[StreamEvent]:
        """Transform the event stream.

        Parameters:
            events: Events produced by the handle (or the previous middleware).

        Returns:
            An async iterator of (possibly) rewritten events.
        """
        async for event in events:
            yield event

    def transform_final(self, text: str, reasoning: Optional[str]) -> Tuple[str, Optional[str]]:
        """Transform the resolved final ``(text, reasoning)`` pair."""
        return text, reasoning


__all__ = ["Middleware"]
