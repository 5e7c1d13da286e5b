from __future__ import annotations

import os
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from chat_orchestrator.base.errors import ConfigurationError, CreditExhaustedError, SpendingLimitError
from chat_orchestrator.config.defaults import SERVICE_CORS_DEFAULT_ORIGINS
from chat_orchestrator.orchestration import Collaborators, request_cancellation

from .app_parts.app_core import ServiceState, _http_error, _validate_body_as_request, build_state
from .chat_stream import stream_generation

_PREFLIGHT_ERRORS = (ConfigurationError, CreditExhaustedError, SpendingLimitError)


def _state(request: Request) -> ServiceState:
    return request.app.state.service


def create_app(deps: Optional[Collaborators] = None, *, throttle_seconds: Optional[float] = None) -> FastAPI:
    """Build the HTTP surface over one set of collaborators.

    ``deps`` defaults to the in-memory wiring; tests pass their own stores
    and scripted providers.
    """
    app = FastAPI(title="Chat Orchestrator", version="0.1.0")
    app.state.service = build_state(deps, throttle_seconds=throttle_seconds)

    # -----------------------------------------------------------------------
    # CORS configuration
    # -----------------------------------------------------------------------

    cors_origins_env = os.getenv("SERVICE_CORS_ORIGINS", SERVICE_CORS_DEFAULT_ORIGINS)
    allow_origins = [o.strip() for o in cors_origins_env.split(",") if o.strip()]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Health and providers
    # -----------------------------------------------------------------------

    @app.get("/api/health")
    def health() -> Dict[str, Any]:
        """Report that the service is running."""
        return {"ok": True}

    @app.get("/api/providers")
    def get_providers(request: Request) -> Dict[str, Any]:
        """List registered providers with their default models."""
        registry = _state(request).deps.registry
        providers = [
            {"id": name, "defaultModel": registry.get_default_model(name)}
            for name in registry.available_providers()
        ]
        return {"ok": True, "providers": providers}

    # -----------------------------------------------------------------------
    # Generation
    # -----------------------------------------------------------------------

    @app.post("/api/generate")
    async def post_generate(request: Request, body: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
        """Run a non-streaming generation and return its outcome.

        Pre-flight failures map to 400 (configuration) and 402 (credits).
        Later failures are persisted into the conversation and returned with
        ``ok`` false.
        """
        gen_request = _validate_body_as_request(body)
        try:
            outcome = await _state(request).non_streaming.generate(gen_request)
        except _PREFLIGHT_ERRORS as e:
            raise _http_error(e) from e
        return {"ok": outcome.ok, **outcome.to_dict()}

    @app.post("/api/generate/stream")
    async def post_generate_stream(request: Request, body: Dict[str, Any] = Body(...)) -> StreamingResponse:
        """Stream a generation as NDJSON events followed by a result line."""
        gen_request = _validate_body_as_request(body)
        return await stream_generation(_state(request), gen_request)

    # -----------------------------------------------------------------------
    # Conversations
    # -----------------------------------------------------------------------

    @app.post("/api/conversations/{conversation_id}/cancel")
    async def post_cancel(request: Request, conversation_id: str) -> Dict[str, Any]:
        """Ask the running generation for a conversation to stop."""
        if not conversation_id.strip():
            raise HTTPException(status_code=400, detail="conversation_id is required")
        state = _state(request)
        aborted = await request_cancellation(state.deps.conversations, conversation_id, state.streaming)
        return {"ok": True, "inProcess": aborted}

    @app.get("/api/conversations/{conversation_id}/messages")
    async def get_messages(request: Request, conversation_id: str) -> Dict[str, Any]:
        """Return the stored messages of a conversation, oldest first."""
        messages = await _state(request).deps.conversations.list_messages(conversation_id)
        return {"ok": True, "messages": [m.to_dict() for m in messages]}

    # -----------------------------------------------------------------------
    # Usage
    # -----------------------------------------------------------------------

    @app.get("/api/usage/{user_id}")
    async def get_usage(request: Request, user_id: str) -> Dict[str, Any]:
        """Return the user's usage record with remaining credits."""
        usage = await _state(request).deps.credit_gate.get_usage(user_id)
        return {"ok": True, "usage": usage}

    return app


app = create_app()


def get_app() -> FastAPI:
    """Return the module-level application instance (used by the dev server)."""
    return app


__all__ = ["app", "create_app", "get_app"]
