"""User preferences consulted during generation."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class UserPreferences:
    """Subset of user settings the orchestrators read.

    Attributes:
        use_custom_system_prompt: Prefer ``system_prompt`` over the default persona.
        system_prompt: Custom system prompt text.
        show_tool_outputs: Also record each tool result as a ``tool`` message.
    """

    use_custom_system_prompt: bool = False
    system_prompt: Optional[str] = None
    show_tool_outputs: bool = False


__all__ = ["UserPreferences"]
