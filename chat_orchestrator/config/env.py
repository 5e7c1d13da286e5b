"""chat_orchestrator.config.env
============================

Centralized environment variable mapping and helpers for built-in provider
credentials.

Purpose
-------
- Provide a single source of truth for mapping provider identifiers to their
  corresponding environment variable names (canonical and aliases).
- Offer small utilities to look up built-in API keys consistently across the
  orchestrator package.

Design Notes
------------
- Canonical mapping is defined in ``ENV_MAP``. Providers that accept more than
  one variable list them in ``ENV_ALIASES`` in precedence order. OpenAI checks
  the deployment-scoped ``CONVEX_OPENAI_API_KEY`` before ``OPENAI_API_KEY``.
- Helpers never raise on unknown providers or unset variables; callers decide
  how to proceed (an absent built-in key is not an error at this layer).
"""

from __future__ import annotations

import os
from typing import Dict, Iterable, Optional, Tuple

# Canonical provider -> env var mapping
ENV_MAP: Dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "google": "GOOGLE_GENERATIVE_AI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
    "groq": "GROQ_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "grok": "GROK_API_KEY",
    "cohere": "COHERE_API_KEY",
    "mistral": "MISTRAL_API_KEY",
}


# Provider -> ordered tuple of acceptable env var names (highest precedence first)
ENV_ALIASES: Dict[str, Tuple[str, ...]] = {
    "openai": ("CONVEX_OPENAI_API_KEY", "OPENAI_API_KEY"),
    "google": ("GOOGLE_GENERATIVE_AI_API_KEY", "GEMINI_API_KEY"),
}


def is_placeholder(val: Optional[str]) -> bool:
    """Return True if the provided string looks like a placeholder/test value.

    Heuristics: contains 'placeholder', 'changeme', 'example', or starts with
    'test_'. The check is case-insensitive and ignores surrounding spaces.
    """
    if val is None:
        return False
    v = str(val).strip().lower()
    return (
        "placeholder" in v
        or "changeme" in v
        or "example" in v
        or v.startswith("test_")
    )


def get_env_var_name(provider: str) -> Optional[str]:
    """Return the canonical environment variable name for a provider."""
    return ENV_MAP.get(provider.lower()) if provider else None


def get_env_var_candidates(provider: str) -> Iterable[str]:
    """Yield acceptable environment variable names for a provider.

    Aliases are yielded in their declared order; the canonical name is yielded
    first when the provider declares no aliases.

    Parameters
    ----------
    provider: str
        Provider identifier (case-insensitive).

    Yields
    ------
    str
        Environment variable names in priority order.
    """
    p = (provider or "").lower()
    aliases = ENV_ALIASES.get(p)
    if aliases:
        yield from aliases
        return
    canonical = ENV_MAP.get(p)
    if canonical:
        yield canonical


def resolve_provider_key(provider: str) -> Tuple[Optional[str], Optional[str]]:
    """Resolve a built-in API key for a provider from the process environment.

    Returns
    -------
    Tuple[Optional[str], Optional[str]]
        ``(value, env_var_used)`` for the first non-blank candidate, or
        ``(None, None)`` when nothing is set.
    """
    for name in get_env_var_candidates(provider):
        val = os.environ.get(name)
        if val and val.strip():
            return val.strip(), name
    return None, None


__all__ = [
    "ENV_MAP",
    "ENV_ALIASES",
    "is_placeholder",
    "get_env_var_name",
    "get_env_var_candidates",
    "resolve_provider_key",
]
