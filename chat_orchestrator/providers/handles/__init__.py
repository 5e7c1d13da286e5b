"""SDK-backed model handles sharing one tool loop."""

from .anthropic_handle import AnthropicHandle
from .base import BaseModelHandle, HandleStream, PendingToolCall, StepOutcome
from .google_handle import GoogleHandle
from .openai_compatible import OpenAICompatibleHandle

__all__ = [
    "AnthropicHandle",
    "BaseModelHandle",
    "GoogleHandle",
    "HandleStream",
    "OpenAICompatibleHandle",
    "PendingToolCall",
    "StepOutcome",
]
