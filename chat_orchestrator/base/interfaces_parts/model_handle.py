"""ModelHandle Protocol (single-class module).

A model handle is what the provider registry builds for one provider/model
pair. It hides SDK differences behind two calls that share one tool loop.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from ..cancellation import CancellationToken
from ..streaming import ModelStream, TokenUsage
from ..tools import ToolRouter, ToolSpec


@dataclass
class GenerateResult:
    """Aggregated output of a non-streaming generation.

    Attributes:
        text: Text of the final model step.
        reasoning: Reasoning trace, when the model produced one.
        tool_calls: ``(id, name, args)`` in invocation order.
        tool_results: Results aligned by index with ``tool_calls``.
        usage: Provider-reported usage summed across steps, when reported.
    """

    text: str = ""
    reasoning: Optional[str] = None
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)
    tool_results: List[Any] = field(default_factory=list)
    usage: Optional[TokenUsage] = None


@runtime_checkable
class ModelHandle(Protocol):
    """Provider-neutral model handle.

    ``messages`` use the provider wire shape produced by
    :meth:`ConversationMessage.to_provider_dict`. ``tool_router`` executes
    the tools the model calls; handles build one from ``tools`` when omitted.
    """

    provider: str
    model: str

    def stream(
        self,
        messages: Sequence[Dict[str, Any]],
        *,
        temperature: float,
        tools: Sequence[ToolSpec] = (),
        provider_options: Optional[Dict[str, Any]] = None,
        max_steps: int = 1,
        cancel_token: Optional[CancellationToken] = None,
        tool_router: Optional[ToolRouter] = None,
    ) -> ModelStream:  # pragma: no cover - interface
        ...

    async def generate(
        self,
        messages: Sequence[Dict[str, Any]],
        *,
        temperature: float,
        tools: Sequence[ToolSpec] = (),
        provider_options: Optional[Dict[str, Any]] = None,
        max_steps: int = 1,
        cancel_token: Optional[CancellationToken] = None,
        tool_router: Optional[ToolRouter] = None,
    ) -> GenerateResult:  # pragma: no cover - interface
        ...


__all__ = ["ModelHandle", "GenerateResult"]
