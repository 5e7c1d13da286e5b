"""
Domain models public surface.

Re-exports the one-class-per-file implementations under
``chat_orchestrator.base.models_parts`` to keep imports stable.
"""

from .models_parts.attachment import Attachment, AttachmentType
from .models_parts.content_part import ContentPart, ContentPartType
from .models_parts.conversation_message import ConversationMessage, MessageContent, Role
from .models_parts.generation_metrics import GenerationMetrics, tokens_per_second
from .models_parts.generation_outcome import GenerationOutcome
from .models_parts.generation_request import GenerationRequest, ThinkingBudget
from .models_parts.model_capabilities import ModelCapabilities, ModelPricing
from .models_parts.tool_call_record import ToolCallRecord
from .models_parts.usage_record import UsageRecord
from .models_parts.user_preferences import UserPreferences

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
