from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import HTTPException
from pydantic import ValidationError

from chat_orchestrator.base.dto import GenerateRequestDTO
from chat_orchestrator.base.errors import (
    ConfigurationError,
    CreditExhaustedError,
    OrchestrationError,
    SpendingLimitError,
)
from chat_orchestrator.base.memory import (
    InMemoryAttachmentStore,
    InMemoryConversationStore,
    InMemoryCredentialsStore,
    InMemoryPreferencesStore,
    InMemoryUsageStore,
    StaticModelCatalog,
)
from chat_orchestrator.base.models import GenerationRequest
from chat_orchestrator.orchestration import (
    Collaborators,
    NonStreamingOrchestrator,
    StreamingOrchestrator,
)
from chat_orchestrator.providers import ProviderRegistry
from chat_orchestrator.usage import CreditGate


@dataclass
class ServiceState:
    """Collaborators and the two orchestrators shared by every request."""

    deps: Collaborators
    streaming: StreamingOrchestrator
    non_streaming: NonStreamingOrchestrator


def build_collaborators() -> Collaborators:
    """Wire the in-memory stores, static catalog, registry and credit gate."""
    catalog = StaticModelCatalog()
    return Collaborators(
        conversations=InMemoryConversationStore(),
        preferences=InMemoryPreferencesStore(),
        credentials=InMemoryCredentialsStore(),
        attachments=InMemoryAttachmentStore(),
        catalog=catalog,
        registry=ProviderRegistry(catalog),
        credit_gate=CreditGate(InMemoryUsageStore(), catalog),
    )


def build_state(deps: Optional[Collaborators] = None, *, throttle_seconds: Optional[float] = None) -> ServiceState:
    deps = deps or build_collaborators()
    return ServiceState(
        deps=deps,
        streaming=StreamingOrchestrator(deps, throttle_seconds=throttle_seconds),
        non_streaming=NonStreamingOrchestrator(deps),
    )


def _validate_body_as_request(body: Dict[str, Any]) -> GenerationRequest:
    """Validate an inbound body strictly into a :class:`GenerationRequest` (400 on failure)."""
    try:
        dto = GenerateRequestDTO.model_validate(body)
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail=e.errors(include_url=False, include_context=False, include_input=False),
        ) from e
    return dto.to_request()


def _status_for(error: OrchestrationError) -> int:
    if isinstance(error, (CreditExhaustedError, SpendingLimitError)):
        return 402
    if isinstance(error, ConfigurationError):
        return 400
    return 500


def _http_error(error: OrchestrationError) -> HTTPException:
    """Map a pre-flight failure to an HTTP error carrying its code and message."""
    return HTTPException(
        status_code=_status_for(error),
        detail={"error": error.message, "errorCode": error.error_code.value},
    )


__all__ = [
    "ServiceState",
    "build_collaborators",
    "build_state",
    "_validate_body_as_request",
    "_http_error",
]
