"""
Conversation message model.

Defines ``ConversationMessage`` and the ``Role`` literal. Content is either a
plain string or an ordered list of :class:`ContentPart`. Assistant messages
created by the streaming orchestrator start empty and are mutated in place
until finalized; the conversation store owns persistence.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from .attachment import Attachment
from .content_part import ContentPart
from .generation_metrics import GenerationMetrics
from .tool_call_record import ToolCallRecord

Role = Literal["user", "assistant", "system", "tool"]

MessageContent = Union[str, List[ContentPart]]


@dataclass
class ConversationMessage:
    """A stored or in-flight conversation message.

    Attributes:
        role: Author role.
        content: Plain text or ordered content parts.
        id: Store-assigned identifier (``None`` until persisted).
        conversation_id: Owning conversation.
        branch_id: Branch timeline the message belongs to.
        attachments: Stored file references.
        thinking: Reasoning trace, kept apart from visible content.
        tool_calls: Ordered tool invocations.
        tool_call_id: For ``tool`` role messages, the originating call.
        generation_metrics: Set once when an assistant turn completes.
        is_error: Whether the content is a user-facing error message.
    """

    role: Role
    content: MessageContent = ""
    id: Optional[str] = None
    conversation_id: Optional[str] = None
    branch_id: Optional[str] = None
    attachments: List[Attachment] = field(default_factory=list)
    thinking: Optional[str] = None
    tool_calls: Optional[List[ToolCallRecord]] = None
    tool_call_id: Optional[str] = None
    generation_metrics: Optional[GenerationMetrics] = None
    is_error: bool = False

    def is_structured(self) -> bool:
        """Return True if the content is a list of parts."""
        return isinstance(self.content, list)

    def text_or_joined(self, separator: str = " ") -> str:
        """Return the text view of the content; non-text parts contribute nothing."""
        if isinstance(self.content, str):
            return self.content
        return separator.join(p.text or "" for p in self.content if p.type == "text")

    def to_provider_dict(self) -> Dict[str, Any]:
        """Return the ``{role, content}`` shape handed to model handles."""
        if isinstance(self.content, str):
            return {"role": self.role, "content": self.content}
        return {"role": self.role, "content": [p.to_dict() for p in self.content]}

    def to_dict(self) -> Dict[str, Any]:
        """Return the camelCase shape served by the HTTP layer; unset fields are dropped."""
        content: Any = self.content
        if isinstance(content, list):
            content = [p.to_dict() for p in content]
        raw: Dict[str, Any] = {
            "id": self.id,
            "conversationId": self.conversation_id,
            "branchId": self.branch_id,
            "role": self.role,
            "content": content,
            "thinking": self.thinking,
            "toolCalls": [c.to_dict() for c in self.tool_calls] if self.tool_calls else None,
            "toolCallId": self.tool_call_id,
            "generationMetrics": self.generation_metrics.to_dict() if self.generation_metrics else None,
        }
        out = {k: v for k, v in raw.items() if v is not None}
        if self.is_error:
            out["isError"] = True
        return out

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ConversationMessage":
        content = raw.get("content", "")
        if isinstance(content, list):
            content = [p if isinstance(p, ContentPart) else ContentPart.from_dict(p) for p in content]
        return cls(role=raw.get("role", "user"), content=content)


__all__ = ["ConversationMessage", "MessageContent", "Role"]
