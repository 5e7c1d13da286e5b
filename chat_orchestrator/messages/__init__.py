"""Conversation history preparation: attachment resolution and system prompt."""

from .normalizer import MessageNormalizer, attachment_to_part, expand_attachments, is_storage_id
from .system_prompt import build_system_prompt, has_system_message, inject_system_prompt

__all__ = [
    "MessageNormalizer",
    "attachment_to_part",
    "expand_attachments",
    "is_storage_id",
    "build_system_prompt",
    "has_system_message",
    "inject_system_prompt",
]
