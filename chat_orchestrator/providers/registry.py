"""Provider adapter registry.

Purpose
-------
Map a provider identifier to a constructor ``(model, api_key, base_url) ->
ModelHandle`` and wrap construction with the provider-specific thinking
configuration. Adding a provider means registering a constructor; nothing
branches on provider names outside this module and ``thinking``.

Built-in constructors import their handle module lazily with
``importlib.import_module`` so that the SDKs (``openai``, ``anthropic``,
``google-genai``) load only when a provider is actually used.

Failure semantics
-----------------
- Unknown provider: :class:`ConfigurationError`.
- Constructor raised: :class:`ModelConstructionError` naming provider/model.
- A missing API key is not an error here; ``get_provider_api_key`` returns
  ``None`` and callers decide.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from importlib import import_module
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..base.errors import ConfigurationError, ModelConstructionError
from ..base.interfaces import ModelCatalog, ModelHandle
from ..base.logging import LogContext, get_logger, log_event
from ..base.middleware import MiddlewareChain, ReasoningExtractionMiddleware
from ..base.models import ThinkingBudget
from ..config import get_provider_config
from ..config.defaults import FALLBACK_MODEL, SUPPORTED_PROVIDERS
from ..config.env import resolve_provider_key
from .handles.base import BaseModelHandle
from .thinking import has_native_thinking, reasoning_tag, thinking_options

ProviderConstructor = Callable[[str, str, Optional[str]], ModelHandle]

_OPENAI_COMPATIBLE = ("openai", "groq", "deepseek", "openrouter", "grok", "cohere", "mistral")


def _openai_compatible(provider: str) -> ProviderConstructor:
    def construct(model: str, api_key: str, base_url: Optional[str]) -> ModelHandle:
        mod = import_module("chat_orchestrator.providers.handles.openai_compatible")
        return mod.OpenAICompatibleHandle(provider, model, api_key=api_key, base_url=base_url)

    return construct


def _anthropic(model: str, api_key: str, base_url: Optional[str]) -> ModelHandle:
    mod = import_module("chat_orchestrator.providers.handles.anthropic_handle")
    return mod.AnthropicHandle(model, api_key=api_key, base_url=base_url)


def _google(model: str, api_key: str, base_url: Optional[str]) -> ModelHandle:
    mod = import_module("chat_orchestrator.providers.handles.google_handle")
    return mod.GoogleHandle(model, api_key=api_key, base_url=base_url)


def builtin_constructors() -> Dict[str, ProviderConstructor]:
    ctors: Dict[str, ProviderConstructor] = {name: _openai_compatible(name) for name in _OPENAI_COMPATIBLE}
    ctors["anthropic"] = _anthropic
    ctors["google"] = _google
    return ctors


@dataclass
class BuiltModel:
    """A ready-to-invoke handle plus the options the orchestrator must pass."""

    handle: ModelHandle
    provider_options: Dict[str, Any] = field(default_factory=dict)
    has_native_thinking: bool = False


class ProviderRegistry:
    """Registry of provider constructors.

    Parameters:
        catalog: Model metadata lookup used for thinking support.
        constructors: Initial constructor mapping; defaults to the nine
            built-in providers.
    """

    def __init__(
        self,
        catalog: ModelCatalog,
        constructors: Optional[Dict[str, ProviderConstructor]] = None,
    ) -> None:
        self._catalog = catalog
        self._constructors: Dict[str, ProviderConstructor] = (
            dict(constructors) if constructors is not None else builtin_constructors()
        )
        self._logger = get_logger("providers.registry")

    def register_provider(self, name: str, constructor: ProviderConstructor) -> None:
        """Register (or replace) the constructor for ``name``."""
        self._constructors[name.lower().strip()] = constructor

    def available_providers(self) -> List[str]:
        """Registered providers, built-ins first in their canonical order."""
        ordered = [p for p in SUPPORTED_PROVIDERS if p in self._constructors]
        return ordered + sorted(p for p in self._constructors if p not in SUPPORTED_PROVIDERS)

    def get_default_model(self, provider: str) -> str:
        """First model of the provider's configured list, else the global fallback."""
        models = get_provider_config(provider).get("models") or []
        return models[0] if models else FALLBACK_MODEL

    def get_provider_api_key(self, provider: str, user_key: Optional[str] = None) -> Tuple[Optional[str], bool]:
        """Return ``(key, using_user_key)``; a non-blank user key always wins."""
        if user_key is not None and user_key.strip():
            return user_key.strip(), True
        key, _ = resolve_provider_key(provider)
        return key, False

    def build_model(
        self,
        provider: str,
        model: str,
        api_key: str,
        base_url: Optional[str] = None,
        thinking_budget: ThinkingBudget = None,
    ) -> BuiltModel:
        """Construct a handle and its provider options.

        Non-native providers get the reasoning-extraction middleware attached
        to the handle instead of provider options.
        """
        name = (provider or "").lower().strip()
        ctor = self._constructors.get(name)
        if ctor is None:
            raise ConfigurationError(f"Unsupported provider: {provider}", provider=provider, model=model)
        if not model or not model.strip():
            raise ConfigurationError(f"No model specified for {name}", provider=name)
        url = base_url or get_provider_config(name).get("base_url")
        try:
            handle = ctor(model, api_key, url)
        except Exception as e:
            log_event(
                self._logger,
                "provider.construct_failed",
                LogContext(provider=name, model=model),
                error=str(e),
            )
            raise ModelConstructionError(name, model, e) from e

        native = has_native_thinking(name)
        options: Dict[str, Any] = {}
        if native:
            options = thinking_options(name, model, thinking_budget, self._catalog.get_model_info(model))
        elif isinstance(handle, BaseModelHandle):
            handle.middleware = MiddlewareChain([ReasoningExtractionMiddleware(reasoning_tag(name, model))])
        return BuiltModel(handle=handle, provider_options=options, has_native_thinking=native)


__all__ = [
    "BuiltModel",
    "ProviderConstructor",
    "ProviderRegistry",
    "builtin_constructors",
]
