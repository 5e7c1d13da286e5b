"""System prompt construction and injection.

``inject_system_prompt`` is idempotent: a history that already carries a
``system`` message is returned unchanged; otherwise exactly one system
message is prepended.
"""
from __future__ import annotations

from typing import List, Optional

from ..base.models import ConversationMessage, UserPreferences
from ..config.defaults import DEFAULT_SYSTEM_PROMPT, USER_INSTRUCTIONS_LABEL


def build_system_prompt(
    preferences: Optional[UserPreferences], instructions: Optional[str] = None
) -> str:
    """Return the custom prompt when enabled, else the default persona, plus instructions."""
    prompt = DEFAULT_SYSTEM_PROMPT
    if preferences is not None and preferences.use_custom_system_prompt:
        custom = (preferences.system_prompt or "").strip()
        if custom:
            prompt = custom
    if instructions and instructions.strip():
        prompt += USER_INSTRUCTIONS_LABEL + instructions.strip()
    return prompt


def has_system_message(messages: List[ConversationMessage]) -> bool:
    return any(m.role == "system" for m in messages)


def inject_system_prompt(
    messages: List[ConversationMessage],
    preferences: Optional[UserPreferences],
    instructions: Optional[str] = None,
) -> List[ConversationMessage]:
    """Prepend a system message unless one already exists.

    Returns a new list; the input is not modified.
    """
    if has_system_message(messages):
        return list(messages)
    system = ConversationMessage(role="system", content=build_system_prompt(preferences, instructions))
    return [system, *messages]


__all__ = ["build_system_prompt", "has_system_message", "inject_system_prompt"]
