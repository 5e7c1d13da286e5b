"""Pytest configuration for the orchestrator test suite.

Provides an isolated environment (built-in keys, no config file, no timeout
overrides), a harness wiring in-memory collaborators around a scripted
provider, and a structured-log collector. The shared ``chat_orchestrator``
logger does not propagate, so tests attach their own handler instead of
relying on ``caplog``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional

import pytest

from chat_orchestrator.base.interfaces import ModelHandle
from chat_orchestrator.base.logging import ROOT_LOGGER_NAME, get_logger
from chat_orchestrator.base.memory import (
    InMemoryAttachmentStore,
    InMemoryConversationStore,
    InMemoryCredentialsStore,
    InMemoryPreferencesStore,
    InMemoryUsageStore,
    StaticModelCatalog,
)
from chat_orchestrator.base.models import ConversationMessage
from chat_orchestrator.config import OrchestratorSettings, reset_config_cache
from chat_orchestrator.orchestration import Collaborators, NonStreamingOrchestrator, StreamingOrchestrator
from chat_orchestrator.providers import ProviderRegistry
from chat_orchestrator.usage import CreditGate

BUILT_IN_KEY = "sk-built-in"

_ENV_VARS = (
    "CONVEX_OPENAI_API_KEY",
    "PROVIDERS_CONFIG_FILE",
    "ORCHESTRATOR_TIMEOUT_SECONDS",
    "ORCHESTRATOR_SLOW_TIMEOUT_SECONDS",
    "ORCHESTRATOR_STREAM_THROTTLE_MS",
    "ORCHESTRATOR_MAX_STEPS",
    "ORCHESTRATOR_CHARS_PER_TOKEN",
    "ORCHESTRATOR_ESTIMATED_OUTPUT_TOKENS",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "GROQ_API_KEY",
    "TAVILY_API_KEY",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Pin provider keys and drop orchestrator overrides for every test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DOTENV_FILE", "/nonexistent/.env")
    monkeypatch.setenv("OPENAI_API_KEY", BUILT_IN_KEY)
    reset_config_cache()
    yield
    reset_config_cache()


class _ListHandler(logging.Handler):
    """Capture log records into a list for assertions."""

    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.messages: List[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(record.getMessage())


class LogCollector:
    def __init__(self, handler: _ListHandler) -> None:
        self._handler = handler

    def events(self, name: Optional[str] = None) -> List[Dict[str, Any]]:
        """Parsed JSON events, optionally filtered by event name."""
        out: List[Dict[str, Any]] = []
        for message in self._handler.messages:
            try:
                payload = json.loads(message)
            except ValueError:
                continue
            if name is None or payload.get("event") == name:
                out.append(payload)
        return out


@pytest.fixture()
def log_events() -> Iterator[LogCollector]:
    """Attach a list handler to the shared orchestrator logger."""
    base = get_logger(ROOT_LOGGER_NAME)
    handler = _ListHandler()
    previous = base.level
    base.addHandler(handler)
    base.setLevel(logging.DEBUG)
    yield LogCollector(handler)
    base.removeHandler(handler)
    base.setLevel(previous)


@dataclass
class Harness:
    """In-memory collaborators around a registry whose ``openai`` entry is scripted."""

    deps: Collaborators
    conversations: InMemoryConversationStore
    preferences: InMemoryPreferencesStore
    credentials: InMemoryCredentialsStore
    attachments: InMemoryAttachmentStore
    usage: InMemoryUsageStore
    registry: ProviderRegistry

    def use(self, handle: ModelHandle, provider: str = "openai") -> None:
        """Route ``provider`` to ``handle`` regardless of model or key."""
        self.registry.register_provider(provider, lambda model, api_key, base_url: handle)

    def streaming(self) -> StreamingOrchestrator:
        return StreamingOrchestrator(self.deps, throttle_seconds=0)

    def non_streaming(self) -> NonStreamingOrchestrator:
        return NonStreamingOrchestrator(self.deps)

    async def messages(self, conversation_id: str = "conv-1") -> List[ConversationMessage]:
        return await self.conversations.list_messages(conversation_id)


@pytest.fixture()
def make_harness() -> Callable[..., Harness]:
    def _make(conversations: Optional[InMemoryConversationStore] = None, **settings: Any) -> Harness:
        catalog = StaticModelCatalog()
        usage = InMemoryUsageStore()
        registry = ProviderRegistry(catalog)
        deps = Collaborators(
            conversations=conversations or InMemoryConversationStore(),
            preferences=InMemoryPreferencesStore(),
            credentials=InMemoryCredentialsStore(),
            attachments=InMemoryAttachmentStore(),
            catalog=catalog,
            registry=registry,
            credit_gate=CreditGate(usage, catalog),
            settings=OrchestratorSettings(stream_throttle_seconds=0, **settings),
        )
        return Harness(
            deps=deps,
            conversations=deps.conversations,
            preferences=deps.preferences,
            credentials=deps.credentials,
            attachments=deps.attachments,
            usage=usage,
            registry=registry,
        )

    return _make


@pytest.fixture()
def harness(make_harness: Callable[..., Harness]) -> Harness:
    return make_harness()

