"""Static model catalog.

A lookup table of capability flags and per-1M pricing for the models listed
in ``PROVIDER_MODELS``. Unknown model ids get a heuristic row derived from
the id so that callers never need to handle a missing entry.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional, Tuple

from ...config.defaults import PROVIDER_MODELS
from ..models import ModelCapabilities, ModelPricing

# id -> (supports_tools, is_multimodal, supports_thinking, input $/1M, output $/1M)
_Row = Tuple[bool, bool, bool, float, float]

KNOWN_MODELS: Dict[str, _Row] = {
    "o3-mini": (True, True, True, 1.1, 4.4),
    "o4-mini": (True, True, True, 1.1, 4.4),
    "o3": (True, True, True, 2.0, 8.0),
    "o1": (True, True, True, 15.0, 60.0),
    "gpt-4.1": (True, True, False, 2.0, 8.0),
    "gpt-4.1-mini": (True, True, False, 0.4, 1.6),
    "gpt-4.1-nano": (True, True, False, 0.1, 0.4),
    "gpt-4o": (True, True, False, 5.0, 15.0),
    "gpt-4o-mini": (True, True, False, 0.15, 0.6),
    "gemini-2.5-pro": (True, True, True, 2.5, 10.0),
    "gemini-2.5-flash-preview-05-20": (True, True, True, 0.15, 1.0),
    "gemini-2.5-flash-lite-preview-06-17": (True, True, True, 0.1, 0.4),
    "gemini-2.0-flash": (True, True, False, 0.1, 0.4),
    "gemini-2.0-flash-lite": (True, True, False, 0.075, 0.3),
    "gemini-1.5-pro": (True, True, False, 2.5, 10.0),
    "gemini-1.5-flash": (True, True, False, 0.075, 0.3),
    "claude-sonnet-4-0": (True, True, True, 3.0, 15.0),
    "claude-opus-4-0": (True, True, True, 15.0, 75.0),
    "claude-3-7-sonnet-latest": (True, True, True, 3.0, 15.0),
    "claude-3-5-sonnet-latest": (True, True, False, 3.0, 15.0),
    "claude-3-5-haiku-latest": (True, True, False, 0.8, 4.0),
    "claude-3-opus-latest": (True, True, False, 15.0, 75.0),
    "deepseek/deepseek-chat-v3-0324:free": (True, False, False, 0.0, 0.0),
    "deepseek/deepseek-r1-0528:free": (False, False, True, 0.0, 0.0),
    "deepseek/deepseek-r1:free": (False, False, True, 0.0, 0.0),
    "microsoft/phi-4-reasoning-plus:free": (False, True, True, 0.0, 0.0),
    "qwen/qwen3-30b-a3b:free": (True, False, True, 0.0, 0.0),
    "anthropic/claude-3.5-sonnet": (True, True, False, 3.0, 15.0),
    "openai/gpt-4o": (True, True, False, 5.0, 15.0),
    "meta-llama/llama-3.1-405b-instruct": (True, False, False, 3.5, 8.0),
    "deepseek-r1-distill-llama-70b": (True, False, True, 0.75, 0.99),
    "llama-3.3-70b-versatile": (True, False, False, 0.59, 0.79),
    "qwen-qwq-32b": (True, False, True, 0.29, 0.39),
    "qwen/qwen3-32b": (True, False, True, 0.29, 0.59),
    "meta-llama/llama-4-scout-17b-16e-instruct": (True, True, False, 0.11, 0.34),
    "llama-3.1-8b-instant": (True, False, False, 0.05, 0.08),
    "deepseek-chat": (True, False, False, 0.27, 1.1),
    "deepseek-reasoner": (True, False, True, 0.55, 2.19),
    "grok-3-beta": (True, False, False, 3.0, 15.0),
    "grok-3-mini-beta": (True, False, True, 0.3, 0.5),
    "grok-2-vision-1212": (True, True, False, 2.0, 10.0),
    "grok-beta": (True, False, False, 5.0, 15.0),
    "command-a-03-2025": (True, False, False, 3.0, 15.0),
    "command-r7b-12-2024": (True, False, False, 1.0, 3.0),
    "command-r-plus": (True, False, False, 3.0, 15.0),
    "command-r": (True, False, False, 1.5, 7.5),
    "magistral-medium-2506": (True, False, False, 2.0, 5.0),
    "magistral-small-2506": (True, False, False, 0.5, 1.5),
    "mistral-medium-2505": (True, True, False, 0.4, 2.0),
    "mistral-small-2503": (True, True, False, 0.1, 0.3),
    "pixtral-12b-2409": (True, True, False, 0.15, 0.15),
    "mistral-large-latest": (True, False, False, 2.0, 6.0),
    "codestral-latest": (True, False, False, 0.3, 0.9),
}

_REASONING_MARKERS = ("reasoning", "r1", "qwq", "o3", "o4", "o1")


def _provider_of(model_id: str, provider_models: Mapping[str, list]) -> str:
    for name, models in provider_models.items():
        if model_id in models:
            return name
    return "unknown"


def fallback_model_info(model_id: str, provider_models: Mapping[str, list] = PROVIDER_MODELS) -> ModelCapabilities:
    """Derive capabilities for an uncatalogued model from its id.

    No pricing is attached; the credit gate applies its fallback rate.
    """
    provider = _provider_of(model_id, provider_models)
    supports_tools = True
    is_multimodal = False
    supports_thinking = False

    if "vision" in model_id or "flash" in model_id or provider == "google":
        is_multimodal = True
    if "claude" in model_id:
        is_multimodal = "vision" in model_id or "3.5" in model_id or "opus" in model_id
        if "3.7" in model_id or "4" in model_id or "claude-3-7" in model_id:
            supports_thinking = True
    if "grok" in model_id:
        is_multimodal = "vision" in model_id
        supports_thinking = True
    if any(marker in model_id for marker in _REASONING_MARKERS):
        # Reasoning models typically reject tool definitions.
        supports_tools = False
        supports_thinking = True
    if "gemini-2.5" in model_id:
        supports_thinking = True

    return ModelCapabilities(
        id=model_id,
        provider=provider,
        supports_tools=supports_tools,
        is_multimodal=is_multimodal,
        supports_thinking=supports_thinking,
    )


class StaticModelCatalog:
    """In-process :class:`ModelCatalog` backed by :data:`KNOWN_MODELS`.

    ``overrides`` replaces or adds rows; tests use it to pin pricing.
    """

    def __init__(self, overrides: Optional[Mapping[str, ModelCapabilities]] = None) -> None:
        self._overrides: Dict[str, ModelCapabilities] = dict(overrides or {})

    def get_model_info(self, model_id: str) -> ModelCapabilities:
        if model_id in self._overrides:
            return self._overrides[model_id]
        row = KNOWN_MODELS.get(model_id)
        if row is None:
            return fallback_model_info(model_id)
        tools, multimodal, thinking, price_in, price_out = row
        return ModelCapabilities(
            id=model_id,
            provider=_provider_of(model_id, PROVIDER_MODELS),
            supports_tools=tools,
            is_multimodal=multimodal,
            supports_thinking=thinking,
            pricing=ModelPricing(input=price_in, output=price_out),
        )


__all__ = ["KNOWN_MODELS", "StaticModelCatalog", "fallback_model_info"]
