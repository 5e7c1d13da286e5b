"""Pre-flight steps shared by both orchestrators.

Covers ``INIT -> CREDIT_CHECKED -> MODEL_READY``: request defaults, API key
resolution, the credit pre-check, model construction, tool selection, and
message normalization with system prompt injection.

Configuration and credit failures raised here surface directly to the
caller; no message has been written yet when they fire.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..base.errors import ConfigurationError, CreditExhaustedError, SpendingLimitError
from ..base.interfaces import (
    AttachmentStore,
    ConversationStore,
    CredentialsStore,
    ModelCatalog,
    PreferencesStore,
)
from ..base.logging import LogContext, get_logger, log_event
from ..base.models import ConversationMessage, GenerationRequest, ModelCapabilities, UserPreferences
from ..base.tools import ToolRouter, ToolSpec, default_tool_router
from ..config import OrchestratorSettings, get_orchestrator_settings
from ..config.defaults import DEFAULT_PROVIDER, DEFAULT_TEMPERATURE
from ..messages import MessageNormalizer, inject_system_prompt
from ..providers import BuiltModel, ProviderRegistry
from ..usage import CreditGate
from .state import GenerationContext, GenerationState

_logger = get_logger("orchestration.preparation")


@dataclass
class Collaborators:
    """Everything an orchestrator talks to.

    The stores are external collaborators; ``registry``, ``credit_gate`` and
    ``tool_router`` are this package's own components wired over them.
    """

    conversations: ConversationStore
    preferences: PreferencesStore
    credentials: CredentialsStore
    attachments: AttachmentStore
    catalog: ModelCatalog
    registry: ProviderRegistry
    credit_gate: CreditGate
    tool_router: ToolRouter = field(default_factory=default_tool_router)
    settings: OrchestratorSettings = field(default_factory=get_orchestrator_settings)


@dataclass
class PreparedGeneration:
    """Output of the pre-flight: a built model and provider-ready input."""

    built: BuiltModel
    capabilities: ModelCapabilities
    messages: List[Dict[str, Any]]
    tools: List[ToolSpec]
    router: ToolRouter
    preferences: UserPreferences


def estimate_input_tokens(messages: List[ConversationMessage], chars_per_token: int) -> int:
    """Sum of ``ceil(len(text) / chars_per_token)`` per message; text parts join with a space."""
    return sum(math.ceil(len(m.text_or_joined(" ")) / chars_per_token) for m in messages)


def resolve_request(request: GenerationRequest, registry: ProviderRegistry) -> GenerationRequest:
    """Fill provider, model and temperature defaults."""
    provider = (request.provider or DEFAULT_PROVIDER).lower().strip()
    model = request.model or registry.get_default_model(provider)
    return request.with_defaults(provider=provider, model=model, temperature=DEFAULT_TEMPERATURE)


def missing_key_error(provider: str) -> ConfigurationError:
    return ConfigurationError(
        f"No API key available for {provider}. Please configure your API key in settings "
        "or use a provider with built-in support.",
        provider=provider,
    )


async def check_credits(
    deps: Collaborators, request: GenerationRequest, ctx: GenerationContext
) -> None:
    """Raise when the estimated usage does not fit the user's plan."""
    settings = deps.settings
    estimated_input = estimate_input_tokens(request.messages, settings.chars_per_token)
    check = await deps.credit_gate.check_available(
        request.user_id, ctx.model, estimated_input, settings.estimated_output_tokens
    )
    if not check.has_credits:
        raise CreditExhaustedError(check.required_credits, check.available_credits)
    if check.would_exceed_spending:
        raise SpendingLimitError()


def select_tools(
    router: ToolRouter, enabled_tools: List[str], capabilities: ModelCapabilities
) -> List[ToolSpec]:
    """Enabled tools the router knows, or none when the model cannot call tools."""
    if not capabilities.supports_tools:
        return []
    return router.specs(enabled_tools)


def metered_router(deps: Collaborators, request: GenerationRequest, using_user_key: bool) -> ToolRouter:
    """Router charging metered tools against the user's search quota (built-in key only)."""
    if using_user_key:
        return deps.tool_router.with_meter(None)

    async def meter(_tool: str) -> None:
        await deps.credit_gate.increment_searches(request.user_id)

    return deps.tool_router.with_meter(meter)


async def prepare_generation(
    deps: Collaborators, request: GenerationRequest, ctx: GenerationContext
) -> PreparedGeneration:
    """Run the pre-flight and advance ``ctx`` to ``MODEL_READY``.

    Raises:
        ConfigurationError: Unknown provider or no usable API key.
        CreditExhaustedError / SpendingLimitError: Pre-check failed.
        ModelConstructionError: The provider adapter could not build a handle.
    """
    registry = deps.registry
    if ctx.provider not in registry.available_providers():
        raise ConfigurationError(f"Unsupported provider: {ctx.provider}", provider=ctx.provider, model=ctx.model)

    user_key = await deps.credentials.get_api_key_for_provider(request.user_id, ctx.provider)
    api_key, using_user_key = registry.get_provider_api_key(ctx.provider, user_key)
    ctx.using_user_key = using_user_key

    if not using_user_key:
        await check_credits(deps, request, ctx)
    ctx.transition(GenerationState.CREDIT_CHECKED)
    _log_state(ctx)

    if not api_key:
        raise missing_key_error(ctx.provider)

    built = registry.build_model(ctx.provider, ctx.model, api_key, thinking_budget=request.thinking_budget)
    capabilities = deps.catalog.get_model_info(ctx.model)

    preferences = await deps.preferences.get_user_preferences(request.user_id) or UserPreferences()
    instructions = await deps.preferences.get_user_instructions(request.user_id)

    normalizer = MessageNormalizer(deps.attachments)
    normalized = await normalizer.normalize(request.messages, capabilities)
    with_system = inject_system_prompt(normalized, preferences, instructions)

    tools = select_tools(deps.tool_router, request.enabled_tools, capabilities)
    ctx.transition(GenerationState.MODEL_READY)
    _log_state(ctx, tools=[t.name for t in tools] or None, native_thinking=built.has_native_thinking)
    return PreparedGeneration(
        built=built,
        capabilities=capabilities,
        messages=[m.to_provider_dict() for m in with_system],
        tools=tools,
        router=metered_router(deps, request, using_user_key),
        preferences=preferences,
    )


def log_context(ctx: GenerationContext) -> LogContext:
    return LogContext(
        provider=ctx.provider,
        model=ctx.model,
        conversation_id=ctx.conversation_id,
        message_id=ctx.message_id,
    )


def _log_state(ctx: GenerationContext, **fields: Optional[Any]) -> None:
    log_event(_logger, "generation.state", log_context(ctx), state=ctx.state.value, **fields)


__all__ = [
    "Collaborators",
    "PreparedGeneration",
    "check_credits",
    "estimate_input_tokens",
    "log_context",
    "metered_router",
    "missing_key_error",
    "prepare_generation",
    "resolve_request",
    "select_tools",
]
