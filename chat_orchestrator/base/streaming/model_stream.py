"""Model stream protocol.

The orchestrator consumes a model stream in two phases: it iterates events
as they arrive, then asks for the resolved final text and reasoning. The
resolution calls may raise; callers fall back to what they accumulated.
"""
from __future__ import annotations

from typing import AsyncIterator, Protocol, runtime_checkable

from .events import StreamEvent


@runtime_checkable
class ModelStream(Protocol):
    """Async iterable of :data:`StreamEvent` plus final-result accessors."""

    def __aiter__(self) -> AsyncIterator[StreamEvent]:
        ...

    async def final_text(self) -> str:
        """Full text of the last model step after the stream ended."""
        ...

    async def final_reasoning(self) -> str:
        """Full reasoning trace after the stream ended."""
        ...

    async def aclose(self) -> None:
        """Release the underlying provider stream."""
        ...


__all__ = ["ModelStream"]
