"""Unified configuration layer for the orchestrator.

Goals
-----
* Centralize defaults (models, base URLs, generation tunables).
* Merge sources in a predictable order:
    1. Built-in defaults
    2. Optional external config file (JSON or YAML) pointed to by PROVIDERS_CONFIG_FILE
    3. Environment variables (e.g. OPENAI_MODEL, GROQ_BASE_URL)
    4. In-code overrides passed to helper
* Provide single call sites: ``get_provider_config(provider)`` and
  ``get_orchestrator_settings()``.

Environment Variable Conventions
--------------------------------
<PROVIDER>_MODEL, <PROVIDER>_BASE_URL, e.g. OPENAI_MODEL, OPENROUTER_BASE_URL.
Orchestrator tunables: ORCHESTRATOR_STREAM_THROTTLE_MS,
ORCHESTRATOR_MAX_STEPS, ORCHESTRATOR_CHARS_PER_TOKEN,
ORCHESTRATOR_ESTIMATED_OUTPUT_TOKENS.

External Config File (Optional)
-------------------------------
If PROVIDERS_CONFIG_FILE is set to a path, we attempt to load JSON first and
fall back to YAML. Structure example:

```
groq:
  model: llama-3.3-70b-versatile
cohere:
  base_url: https://api.cohere.ai/compatibility/v1
orchestrator:
  stream_throttle_ms: 0
```

Public API
----------
* get_provider_config(provider: str, overrides: dict | None = None) -> dict
* get_orchestrator_settings() -> OrchestratorSettings
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
import json
import os

import yaml

from .env import is_placeholder
from .defaults import (
    CHARS_PER_TOKEN,
    DEFAULT_MAX_STEPS,
    ESTIMATED_OUTPUT_TOKENS,
    PROVIDER_BASE_URLS,
    PROVIDER_MODELS,
    STREAM_THROTTLE_SECONDS,
)


# -------------------- Defaults --------------------

DEFAULTS: Dict[str, Dict[str, Any]] = {
    name: {"base_url": url, "models": list(PROVIDER_MODELS.get(name, []))}
    for name, url in PROVIDER_BASE_URLS.items()
}


ENV_FIELD_MAP = {
    "model": "MODEL",
    "base_url": "BASE_URL",
}


_FILE_CACHE: Optional[Dict[str, Any]] = None
_DOTENV_LOADED = False


def _load_dotenv_once() -> None:
    """Lightweight .env loader (no external dependency).

    Parses KEY=VALUE lines, ignoring comments and blank lines. Safe to call
    multiple times. Overrides existing environment variables only if their
    current values appear to be placeholders.
    """
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    path = os.getenv("DOTENV_FILE", ".env")
    if not os.path.isfile(path):
        _DOTENV_LOADED = True
        return
    try:
        with open(path, "r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                k, v = line.split("=", 1)
                k = k.strip()
                v = v.strip().strip('"').strip("'")
                if k and (k not in os.environ or is_placeholder(os.environ.get(k))):
                    os.environ[k] = v
    finally:
        _DOTENV_LOADED = True


def _load_external_config() -> Dict[str, Any]:
    global _FILE_CACHE
    if _FILE_CACHE is not None:
        return _FILE_CACHE
    path = os.getenv("PROVIDERS_CONFIG_FILE")
    if not path or not Path(path).exists():
        _FILE_CACHE = {}
        return _FILE_CACHE
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except ValueError:
        data = yaml.safe_load(text) or {}
    if not isinstance(data, dict):
        data = {}
    _FILE_CACHE = data
    return data


def reset_config_cache() -> None:
    """Forget the cached external config file (tests flip PROVIDERS_CONFIG_FILE)."""
    global _FILE_CACHE
    _FILE_CACHE = None


def _env_overrides(provider: str) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    prefix = provider.upper()
    for field, suffix in ENV_FIELD_MAP.items():
        val = os.getenv(f"{prefix}_{suffix}")
        if val is not None and val.strip():
            out[field] = val.strip()
    return out


def get_provider_config(provider: str, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return merged configuration for a provider.

    Merge order (later wins): defaults -> external config -> env vars -> overrides
    """
    _load_dotenv_once()
    name = (provider or "").lower().strip()
    cfg: Dict[str, Any] = dict(DEFAULTS.get(name, {}))

    file_cfg = _load_external_config().get(name)
    if isinstance(file_cfg, dict):
        cfg |= file_cfg

    cfg |= _env_overrides(name)

    if overrides:
        cfg |= {k: v for k, v in overrides.items() if v is not None}

    return cfg


@dataclass(frozen=True)
class OrchestratorSettings:
    """Tunables shared by the streaming and non-streaming orchestrators.

    Attributes:
        stream_throttle_seconds: Pause between stream event iterations.
        chars_per_token: Ratio used for pre-flight token estimation.
        estimated_output_tokens: Output budget assumed by the pre-flight check.
        max_steps: Maximum model/tool round trips per generation.
    """

    stream_throttle_seconds: float = STREAM_THROTTLE_SECONDS
    chars_per_token: int = CHARS_PER_TOKEN
    estimated_output_tokens: int = ESTIMATED_OUTPUT_TOKENS
    max_steps: int = DEFAULT_MAX_STEPS


def _int_env(name: str, fallback: Any) -> Any:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return fallback
    try:
        return int(raw)
    except ValueError:
        return fallback


def get_orchestrator_settings() -> OrchestratorSettings:
    """Return orchestrator settings merged from defaults, config file and env."""
    _load_dotenv_once()
    section = _load_external_config().get("orchestrator")
    section = section if isinstance(section, dict) else {}

    throttle_ms = section.get("stream_throttle_ms", STREAM_THROTTLE_SECONDS * 1000)
    throttle_ms = _int_env("ORCHESTRATOR_STREAM_THROTTLE_MS", throttle_ms)
    return OrchestratorSettings(
        stream_throttle_seconds=max(0.0, float(throttle_ms) / 1000.0),
        chars_per_token=max(1, _int_env(
            "ORCHESTRATOR_CHARS_PER_TOKEN", section.get("chars_per_token", CHARS_PER_TOKEN)
        )),
        estimated_output_tokens=_int_env(
            "ORCHESTRATOR_ESTIMATED_OUTPUT_TOKENS",
            section.get("estimated_output_tokens", ESTIMATED_OUTPUT_TOKENS),
        ),
        max_steps=max(1, _int_env("ORCHESTRATOR_MAX_STEPS", section.get("max_steps", DEFAULT_MAX_STEPS))),
    )


__all__ = [
    "get_provider_config",
    "get_orchestrator_settings",
    "reset_config_cache",
    "OrchestratorSettings",
    "DEFAULTS",
]
