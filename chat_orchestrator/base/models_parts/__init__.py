"""Models parts package public surface.

Re-exports individual models so callers can import from
``chat_orchestrator.base.models_parts`` if needed, while
``chat_orchestrator.base.models`` remains the primary stable import path.
"""

from .attachment import Attachment, AttachmentType
from .content_part import ContentPart, ContentPartType
from .conversation_message import ConversationMessage, MessageContent, Role
from .generation_metrics import GenerationMetrics, tokens_per_second
from .generation_outcome import GenerationOutcome
from .generation_request import GenerationRequest, ThinkingBudget
from .model_capabilities import ModelCapabilities, ModelPricing
from .tool_call_record import ToolCallRecord
from .usage_record import UsageRecord
from .user_preferences import UserPreferences

__all__ = [
    "Attachment",
    "AttachmentType",
    "ContentPart",
    "ContentPartType",
    "ConversationMessage",
    "MessageContent",
    "Role",
    "GenerationMetrics",
    "tokens_per_second",
    "GenerationOutcome",
    "GenerationRequest",
    "ThinkingBudget",
    "ModelCapabilities",
    "ModelPricing",
    "ToolCallRecord",
    "UsageRecord",
    "UserPreferences",
]
