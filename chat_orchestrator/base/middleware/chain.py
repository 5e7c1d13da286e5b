"""Middleware chain for model stream hooks."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import AsyncIterator, List, Optional, Tuple

from ..streaming import StreamEvent
from .middleware_base import Middleware


@dataclass
class MiddlewareChain:
    """Composable chain applying middleware in order.

    Attributes:
        items: Ordered middleware; the first one sees the raw handle events.
    """

    items: List[Middleware] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.items)

    def wrap_stream(self, events: AsyncIterator[StreamEvent]) -> AsyncIterator[StreamEvent]:
        wrapped = events
        for m in self.items:
            wrapped = m.wrap_stream(wrapped)
        return wrapped

    def transform_final(self, text: str, reasoning: Optional[str]) -> Tuple[str, Optional[str]]:
        for m in self.items:
            text, reasoning = m.transform_final(text, reasoning)
        return text, reasoning


__all__ = ["MiddlewareChain"]
