"""Typed stream events emitted by model handles.

A model stream is a sequence of these events. Each class carries a ``type``
class attribute spelled the way the events are named on the wire
(``text-delta``, ``tool-call`` ...), which the NDJSON service endpoint reuses.

Ordering guarantees provided by handles:
- ``ToolCall`` for an id precedes the matching ``ToolResult``.
- ``Finish`` is the last event of a stream that completed normally.
- ``StreamErrorEvent`` does not end the stream; consumers keep reading.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Union


@dataclass(frozen=True)
class TokenUsage:
    """Provider-reported token counts (any may be missing)."""

    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        def _sum(a: Optional[int], b: Optional[int]) -> Optional[int]:
            if a is None and b is None:
                return None
            return (a or 0) + (b or 0)

        return TokenUsage(
            prompt_tokens=_sum(self.prompt_tokens, other.prompt_tokens),
            completion_tokens=_sum(self.completion_tokens, other.completion_tokens),
            total_tokens=_sum(self.total_tokens, other.total_tokens),
        )

    def to_dict(self) -> Dict[str, Optional[int]]:
        return {
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "totalTokens": self.total_tokens,
        }


@dataclass(frozen=True)
class TextDelta:
    type: ClassVar[str] = "text-delta"
    text: str


@dataclass(frozen=True)
class ReasoningDelta:
    type: ClassVar[str] = "reasoning-delta"
    text: str


@dataclass(frozen=True)
class ReasoningText:
    """A complete reasoning chunk (as opposed to an incremental delta)."""

    type: ClassVar[str] = "reasoning"
    text: str


@dataclass(frozen=True)
class ReasoningFinish:
    """Reasoning phase ended; ``text`` is the authoritative trace when given."""

    type: ClassVar[str] = "reasoning-finish"
    text: Optional[str] = None


@dataclass(frozen=True)
class ToolCall:
    type: ClassVar[str] = "tool-call"
    tool_call_id: Optional[str]
    tool_name: str
    args: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    type: ClassVar[str] = "tool-result"
    tool_call_id: Optional[str]
    tool_name: str
    result: Any = None


@dataclass(frozen=True)
class StreamErrorEvent:
    """In-band provider error; the stream may still produce more events."""

    type: ClassVar[str] = "error"
    error: Any


@dataclass(frozen=True)
class Finish:
    type: ClassVar[str] = "finish"
    usage: Optional[TokenUsage] = None
    finish_reason: Optional[str] = None


StreamEvent = Union[
    TextDelta,
    ReasoningDelta,
    ReasoningText,
    ReasoningFinish,
    ToolCall,
    ToolResult,
    StreamErrorEvent,
    Finish,
]


def event_to_dict(event: StreamEvent) -> Dict[str, Any]:
    """Return a JSON-friendly mapping for an event (used by the NDJSON endpoint)."""
    out: Dict[str, Any] = {"type": event.type}
    if isinstance(event, (TextDelta, ReasoningDelta, ReasoningText)):
        out["text"] = event.text
    elif isinstance(event, ReasoningFinish):
        out["text"] = event.text
    elif isinstance(event, ToolCall):
        out |= {"toolCallId": event.tool_call_id, "toolName": event.tool_name, "args": event.args}
    elif isinstance(event, ToolResult):
        out |= {"toolCallId": event.tool_call_id, "toolName": event.tool_name, "result": event.result}
    elif isinstance(event, StreamErrorEvent):
        out["error"] = str(event.error)
    elif isinstance(event, Finish):
        out["usage"] = event.usage.to_dict() if event.usage else None
        out["finishReason"] = event.finish_reason
    return out


__all__ = [
    "TokenUsage",
    "TextDelta",
    "ReasoningDelta",
    "ReasoningText",
    "ReasoningFinish",
    "ToolCall",
    "ToolResult",
    "StreamErrorEvent",
    "Finish",
    "StreamEvent",
    "event_to_dict",
]
