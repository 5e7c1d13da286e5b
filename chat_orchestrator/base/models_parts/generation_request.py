"""
GenerationRequest for one orchestrated assistant turn.

The HTTP layer validates the inbound payload with the pydantic DTO and maps it
to this dataclass. Provider/model defaults are applied by
:meth:`GenerationRequest.with_defaults`; whether the pair is known is checked
by the provider registry when the model handle is built.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional, Union

from .conversation_message import ConversationMessage

ThinkingBudget = Union[str, int, None]


@dataclass
class GenerationRequest:
    """Inputs of a streaming or non-streaming generation.

    Attributes:
        conversation_id: Target conversation.
        messages: History to send, oldest first.
        branch_id: Branch timeline the new assistant message belongs to.
        provider: Provider identifier; the default provider when ``None``.
        model: Model identifier; the provider's default model when ``None``.
        temperature: Sampling temperature; ``1`` when ``None``.
        enabled_tools: Tool names the user switched on.
        thinking_budget: Symbolic level (``low``/``medium``/``high``) or a
            numeric token budget.
        user_id: Owner of the usage record consulted by the credit gate.
    """

    conversation_id: str
    messages: List[ConversationMessage]
    branch_id: Optional[str] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    enabled_tools: List[str] = field(default_factory=list)
    thinking_budget: ThinkingBudget = None
    user_id: str = "default"

    def with_defaults(self, *, provider: str, model: str, temperature: float) -> "GenerationRequest":
        """Return a copy with unset provider/model/temperature filled in."""
        return replace(
            self,
            provider=self.provider or provider,
            model=self.model or model,
            temperature=self.temperature if self.temperature is not None else temperature,
        )


__all__ = ["GenerationRequest", "ThinkingBudget"]
