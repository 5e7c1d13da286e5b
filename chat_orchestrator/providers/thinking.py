"""Provider-specific thinking configuration.

Three provider families expose native reasoning controls; everything else
gets reasoning extracted from an in-band tag by middleware. The two paths are
mutually exclusive for a given provider.

- openai: ``{"reasoningEffort": level}`` for o1/o3 models that support thinking.
- anthropic: ``{"thinking": {"type": "enabled", "budgetTokens": n}}``.
- google: ``{"thinkingConfig": {"includeThoughts": True, "thinkingBudget": n}}``.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..base.models import ModelCapabilities, ThinkingBudget
from ..config.defaults import (
    DEFAULT_ANTHROPIC_THINKING_BUDGET,
    DEFAULT_GOOGLE_THINKING_BUDGET,
    DEFAULT_REASONING_EFFORT,
    NATIVE_THINKING_PROVIDERS,
    REASONING_EFFORT_LEVELS,
)

_OPENAI_REASONING_MARKERS = ("o1", "o3")


def has_native_thinking(provider: str) -> bool:
    return provider in NATIVE_THINKING_PROVIDERS


def _numeric_budget(budget: ThinkingBudget, default: int) -> int:
    if isinstance(budget, bool):
        return default
    if isinstance(budget, int) and budget > 0:
        return budget
    if isinstance(budget, str) and budget.strip().isdigit() and int(budget) > 0:
        return int(budget)
    return default


def _effort_level(budget: ThinkingBudget) -> str:
    if isinstance(budget, str) and budget in REASONING_EFFORT_LEVELS:
        return budget
    return DEFAULT_REASONING_EFFORT


def thinking_options(
    provider: str,
    model: str,
    thinking_budget: ThinkingBudget,
    capabilities: Optional[ModelCapabilities],
) -> Dict[str, Any]:
    """Return provider options enabling native thinking, or ``{}``.

    Options are only produced when the catalog says the model supports
    thinking; non-native providers always get ``{}``.
    """
    if capabilities is None or not capabilities.supports_thinking:
        return {}
    if provider == "openai":
        if not any(marker in model for marker in _OPENAI_REASONING_MARKERS):
            return {}
        return {"reasoningEffort": _effort_level(thinking_budget)}
    if provider == "anthropic":
        return {
            "thinking": {
                "type": "enabled",
                "budgetTokens": _numeric_budget(thinking_budget, DEFAULT_ANTHROPIC_THINKING_BUDGET),
            }
        }
    if provider == "google":
        return {
            "thinkingConfig": {
                "includeThoughts": True,
                "thinkingBudget": _numeric_budget(thinking_budget, DEFAULT_GOOGLE_THINKING_BUDGET),
            }
        }
    return {}


def reasoning_tag(provider: str, model: str) -> str:
    """Return the in-band reasoning tag for a non-native provider/model."""
    m = model.lower()
    if provider == "deepseek" or "deepseek" in m:
        return "think"
    if provider == "groq" and "qwq" in m:
        return "think"
    if "r1" in m:
        return "think"
    return "thinking"


__all__ = ["has_native_thinking", "thinking_options", "reasoning_tag"]
