"""Pydantic DTOs for inbound generation requests.

The service layer validates request bodies with these models before mapping
them to :class:`~chat_orchestrator.base.models.GenerationRequest`. Validation
is structural only; whether a provider/model pair can actually be built is
decided by the provider registry.
"""

from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ...config.defaults import SUPPORTED_PROVIDERS
from ..models import Attachment, ContentPart, ConversationMessage, GenerationRequest

Role = Literal["user", "assistant", "system", "tool"]


class PartDTO(BaseModel):
    """A single content part in a request message.

    Parameters:
        type: Part type: ``text``, ``image`` or ``file``.
        text: Text payload for text parts.
        image: URL or storage reference for image parts.
        data: URL or storage reference for file parts.
        mimeType: Media type for file parts, when known.
    """

    type: Literal["text", "image", "file"]
    text: Optional[str] = None
    image: Optional[str] = None
    data: Optional[str] = None
    mimeType: Optional[str] = None

    @model_validator(mode="after")
    def _validate_payload(self) -> "PartDTO":
        if self.type == "image" and not self.image:
            raise ValueError("image part requires 'image'")
        if self.type == "file" and not self.data:
            raise ValueError("file part requires 'data'")
        return self

    def to_part(self) -> ContentPart:
        return ContentPart(
            type=self.type,
            text=self.text,
            image=self.image,
            data=self.data,
            mime_type=self.mimeType,
        )


class AttachmentDTO(BaseModel):
    """Stored attachment reference carried on a message."""

    type: Literal["image", "pdf", "text", "document", "audio", "video", "file"]
    storageId: str = Field(..., min_length=1)
    name: str = ""
    mimeType: Optional[str] = None
    extractedText: Optional[str] = None
    size: Optional[int] = None

    def to_attachment(self) -> Attachment:
        return Attachment(
            type=self.type,
            storage_id=self.storageId,
            name=self.name,
            mime_type=self.mimeType,
            extracted_text=self.extractedText,
            size=self.size,
        )


class MessageDTO(BaseModel):
    """A history message with plain or structured content.

    Raises:
        ValidationError: When a structured message has no parts.
    """

    role: Role
    content: Union[str, List[PartDTO]] = ""
    attachments: List[AttachmentDTO] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_content(self) -> "MessageDTO":
        if isinstance(self.content, list) and not self.content:
            raise ValueError("content parts must be a non-empty list")
        return self

    def to_message(self) -> ConversationMessage:
        content = self.content if isinstance(self.content, str) else [p.to_part() for p in self.content]
        return ConversationMessage(
            role=self.role,
            content=content,
            attachments=[a.to_attachment() for a in self.attachments],
        )


class GenerateRequestDTO(BaseModel):
    """Request body for the generate endpoints.

    Parameters:
        conversationId: Target conversation (non-empty).
        messages: Ordered history (non-empty).
        branchId: Branch the new assistant message belongs to.
        provider: Provider identifier; must be one of the supported providers.
        model: Model identifier.
        temperature: Within [0.0, 2.0] when provided.
        enabledTools: Tool names switched on by the user.
        thinkingBudget: ``low``/``medium``/``high`` or a positive token budget.
        userId: Owner of the usage record.

    Raises:
        ValidationError: On unknown providers, empty history or out-of-range params.
    """

    model_config = ConfigDict(extra="ignore")

    conversationId: str = Field(..., min_length=1)
    messages: List[MessageDTO] = Field(..., min_length=1)
    branchId: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    enabledTools: List[str] = Field(default_factory=list)
    thinkingBudget: Optional[Union[int, str]] = None
    userId: str = "default"

    @field_validator("provider")
    @classmethod
    def _known_provider(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        name = value.strip().lower()
        if name not in SUPPORTED_PROVIDERS:
            raise ValueError(f"unsupported provider '{value}'")
        return name

    @field_validator("thinkingBudget")
    @classmethod
    def _valid_budget(cls, value: Optional[Union[int, str]]) -> Optional[Union[int, str]]:
        if isinstance(value, int) and value <= 0:
            raise ValueError("thinkingBudget must be positive")
        return value

    def to_request(self) -> GenerationRequest:
        return GenerationRequest(
            conversation_id=self.conversationId,
            messages=[m.to_message() for m in self.messages],
            branch_id=self.branchId,
            provider=self.provider,
            model=self.model,
            temperature=self.temperature,
            enabled_tools=list(self.enabledTools),
            thinking_budget=self.thinkingBudget,
            user_id=self.userId,
        )


__all__ = ["PartDTO", "AttachmentDTO", "MessageDTO", "GenerateRequestDTO"]
