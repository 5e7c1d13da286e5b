"""Generation timeout configuration.

Centralizes the wall-clock budgets that bound a single generation. The value
feeds the deadline timer that aborts the in-process cancellation token; it is
not a per-chunk idle timeout.

Key Components
--------------
TimeoutConfig
    Dataclass capturing normalized timeout values in seconds.

get_timeout_config()
    Returns a process-cached configuration, re-parsing environment overrides
    only when they change. Supported environment variables (all optional):
        ORCHESTRATOR_TIMEOUT_SECONDS
        ORCHESTRATOR_SLOW_TIMEOUT_SECONDS
        ORCHESTRATOR_HTTP_CONNECT_SECONDS

timeout_for_provider(provider)
    Resolve the generation budget for a provider. Providers listed in
    ``SLOW_PROVIDERS`` get the longer budget.
"""
from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Tuple

from ..config.defaults import (
    DEFAULT_TIMEOUT_SECONDS,
    SLOW_PROVIDER_TIMEOUT_SECONDS,
    SLOW_PROVIDERS,
)


@dataclass(frozen=True)
class TimeoutConfig:
    """Container for normalized timeout values (seconds).

    Attributes:
        default_seconds: Generation budget for most providers.
        slow_provider_seconds: Generation budget for providers known to be slow.
        slow_providers: Provider identifiers that receive the longer budget.
        http_connect_seconds: Connect timeout for pooled HTTP clients.
    """

    default_seconds: float = DEFAULT_TIMEOUT_SECONDS
    slow_provider_seconds: float = SLOW_PROVIDER_TIMEOUT_SECONDS
    slow_providers: Tuple[str, ...] = SLOW_PROVIDERS
    http_connect_seconds: float = 10.0


_CACHED: TimeoutConfig | None = None
_ENV_GUARD: str | None = None


def _parse_env_float(name: str, default: float) -> float:
    """Parse a positive float from the environment, falling back to ``default``."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if val > 0 else default


def get_timeout_config() -> TimeoutConfig:
    """Return the process-cached :class:`TimeoutConfig`.

    The cache is refreshed when any of the supported environment variables
    change, which keeps tests that monkeypatch the environment deterministic.
    """
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - documented module cache
    guard = "/".join(
        os.getenv(name, "")
        for name in (
            "ORCHESTRATOR_TIMEOUT_SECONDS",
            "ORCHESTRATOR_SLOW_TIMEOUT_SECONDS",
            "ORCHESTRATOR_HTTP_CONNECT_SECONDS",
        )
    )
    if _CACHED is not None and _ENV_GUARD == guard:
        return _CACHED

    _CACHED = TimeoutConfig(
        default_seconds=_parse_env_float("ORCHESTRATOR_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        slow_provider_seconds=_parse_env_float(
            "ORCHESTRATOR_SLOW_TIMEOUT_SECONDS", SLOW_PROVIDER_TIMEOUT_SECONDS
        ),
        http_connect_seconds=_parse_env_float("ORCHESTRATOR_HTTP_CONNECT_SECONDS", 10.0),
    )
    _ENV_GUARD = guard
    return _CACHED


def timeout_for_provider(provider: str) -> float:
    """Return the generation budget in seconds for ``provider``."""
    cfg = get_timeout_config()
    if provider in cfg.slow_providers:
        return cfg.slow_provider_seconds
    return cfg.default_seconds


__all__ = ["TimeoutConfig", "get_timeout_config", "timeout_for_provider"]
