"""
Outcome of an orchestrated generation.

Success carries the final content and metrics; failure carries the persisted
user-facing error text. Either way the conversation already holds a coherent
assistant turn when the outcome is returned.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .generation_metrics import GenerationMetrics
from .tool_call_record import ToolCallRecord


@dataclass
class GenerationOutcome:
    """Result returned to the caller of an orchestrator.

    Attributes:
        using_user_key: Whether caller-supplied credentials were used.
        message_id: Assistant message written for this turn, if any.
        content: Final visible content on success or cancellation.
        thinking: Final reasoning trace, when any.
        tool_calls: Tool invocations made during the turn.
        generation_metrics: Metrics for completed or cancelled turns.
        error: User-facing error text on failure.
        cancelled: True when the user stopped the generation.
    """

    using_user_key: bool
    message_id: Optional[str] = None
    content: Optional[str] = None
    thinking: Optional[str] = None
    tool_calls: List[ToolCallRecord] = field(default_factory=list)
    generation_metrics: Optional[GenerationMetrics] = None
    error: Optional[str] = None
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"messageId": self.message_id, "usingUserKey": self.using_user_key}
        if self.error is not None:
            out["error"] = self.error
            return out
        out["content"] = self.content
        if self.thinking:
            out["thinking"] = self.thinking
        if self.tool_calls:
            out["toolCalls"] = [c.to_dict() for c in self.tool_calls]
        if self.generation_metrics is not None:
            out["generationMetrics"] = self.generation_metrics.to_dict()
        if self.cancelled:
            out["cancelled"] = True
        return out


__all__ = ["GenerationOutcome"]
