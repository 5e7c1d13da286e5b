"""Streaming primitives shared by provider handles and orchestrators."""

from .events import (
    event_to_dict,
    Finish,
    ReasoningDelta,
    ReasoningFinish,
    ReasoningText,
    StreamErrorEvent,
    StreamEvent,
    TextDelta,
    TokenUsage,
    ToolCall,
    ToolResult,
)
from .model_stream import ModelStream
from .streaming_metrics import StreamMetrics, apply_token_usage, build_token_usage

__all__ = [
    "event_to_dict",
    "Finish",
    "ReasoningDelta",
    "ReasoningFinish",
    "ReasoningText",
    "StreamErrorEvent",
    "StreamEvent",
    "TextDelta",
    "TokenUsage",
    "ToolCall",
    "ToolResult",
    "ModelStream",
    "StreamMetrics",
    "apply_token_usage",
    "build_token_usage",
]
