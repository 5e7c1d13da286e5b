"""Reasoning extraction middleware.

Models without a native thinking channel often emit their reasoning inline,
wrapped in a tag such as ``<think>...</think>``. This middleware rewrites
the text stream so tagged regions surface as ``reasoning-delta`` events and
everything else stays visible text.

Tags may be split across deltas (``"<thi"`` + ``"nk>"``). The buffer holds
back only the longest suffix that could still begin a tag, so ordinary text
is never delayed by more than ``len(tag) - 1`` characters.
"""

from __future__ import annotations

import re
from typing import AsyncIterator, List, Optional, Tuple

from ..streaming import Finish, ReasoningDelta, ReasoningFinish, StreamEvent, TextDelta
from .middleware_base import Middleware


def _partial_tag_suffix(buffer: str, tag: str) -> int:
    """Length of the longest suffix of ``buffer`` that is a proper prefix of ``tag``."""
    for size in range(min(len(buffer), len(tag) - 1), 0, -1):
        if tag.startswith(buffer[-size:]):
            return size
    return 0


class ReasoningExtractionMiddleware(Middleware):
    """Split ``<tag>...</tag>`` regions of the text stream into reasoning.

    Parameters:
        tag_name: Tag without angle brackets (``think`` or ``thinking``).
        separator: Joins multiple reasoning regions in :meth:`transform_final`.
    """

    def __init__(self, tag_name: str, separator: str = "\n") -> None:
        self.tag_name = tag_name
        self.separator = separator
        self.opening = f"<{tag_name}>"
        self.closing = f"</{tag_name}>"
        self._pattern = re.compile(re.escape(self.opening) + r"(.*?)" + re.escape(self.closing), re.DOTALL)

    def _emit(self, text: str, in_reasoning: bool) -> List[StreamEvent]:
        if not text:
            return []
        return [ReasoningDelta(text)] if in_reasoning else [TextDelta(text)]

    async def wrap_stream(self, events: AsyncIterator[StreamEvent]) -> AsyncIterator[StreamEvent]:
        buffer = ""
        in_reasoning = False
        async for event in events:
            if not isinstance(event, TextDelta):
                if isinstance(event, Finish):
                    for out in self._emit(buffer, in_reasoning):
                        yield out
                    buffer = ""
                yield event
                continue
            buffer += event.text
            while True:
                tag = self.closing if in_reasoning else self.opening
                idx = buffer.find(tag)
                if idx == -1:
                    keep = _partial_tag_suffix(buffer, tag)
                    ready, buffer = buffer[: len(buffer) - keep], buffer[len(buffer) - keep :]
                    for out in self._emit(ready, in_reasoning):
                        yield out
                    break
                for out in self._emit(buffer[:idx], in_reasoning):
                    yield out
                buffer = buffer[idx + len(tag) :]
                if in_reasoning:
                    yield ReasoningFinish()
                in_reasoning = not in_reasoning
        for out in self._emit(buffer, in_reasoning):
            yield out
        if in_reasoning:
            yield ReasoningFinish()

    def extract(self, text: str) -> Tuple[str, Optional[str]]:
        """Return ``(visible_text, reasoning)`` for a complete text."""
        matches = self._pattern.findall(text or "")
        if not matches:
            return text, None
        visible = self._pattern.sub("", text)
        return visible, self.separator.join(m for m in matches)

    def transform_final(self, text: str, reasoning: Optional[str]) -> Tuple[str, Optional[str]]:
        visible, extracted = self.extract(text)
        if extracted is None:
            return text, reasoning
        return visible, extracted if not reasoning else reasoning


__all__ = ["ReasoningExtractionMiddleware"]
