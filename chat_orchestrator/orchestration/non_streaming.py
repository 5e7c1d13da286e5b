"""Non-streaming generation orchestrator.

The same pre-flight, system prompt and error classification as the
streaming path, collapsed to one provider call and one message write.
Tool calls run inside the handle's loop and are recorded afterwards, paired
with their results by position.
"""
from __future__ import annotations

import json
import logging
import time
from typing import List, Optional

from ..base.cancellation import DeadlineTimer
from ..base.errors import ConfigurationError, CreditExhaustedError, GenerationTimeoutError, SpendingLimitError
from ..base.interfaces import GenerateResult
from ..base.logging import get_logger, log_event, normalized_log_event
from ..base.models import (
    ConversationMessage,
    GenerationMetrics,
    GenerationOutcome,
    GenerationRequest,
    ToolCallRecord,
    tokens_per_second,
)
from ..base.timeouts import timeout_for_provider
from ..config.defaults import EMPTY_RESPONSE_FALLBACK
from ..usage import estimate_tokens
from .accounting import deduct_usage
from .aborts import run_or_abort
from .failure import error_code_of, record_failure, release_generation
from .preparation import (
    Collaborators,
    PreparedGeneration,
    estimate_input_tokens,
    log_context,
    prepare_generation,
    resolve_request,
)
from .state import GenerationContext, GenerationState

_PREFLIGHT_ERRORS = (ConfigurationError, CreditExhaustedError, SpendingLimitError)


def tool_call_records(result: GenerateResult) -> List[ToolCallRecord]:
    """Pair each tool call with the result at the same index."""
    stamp = int(time.time() * 1000)
    records: List[ToolCallRecord] = []
    for index, call in enumerate(result.tool_calls):
        outcome = result.tool_results[index] if index < len(result.tool_results) else None
        records.append(
            ToolCallRecord(
                id=call.get("id") or f"tool_{stamp}_{index}",
                name=call.get("name", ""),
                arguments=json.dumps(call.get("args") or {}, default=str),
                result=json.dumps(outcome, default=str) if outcome is not None else None,
            )
        )
    return records


class NonStreamingOrchestrator:
    """Run one-shot generations; see :class:`StreamingOrchestrator` for the shared rules."""

    def __init__(self, deps: Collaborators) -> None:
        self._deps = deps
        self._logger = get_logger("orchestration.non_streaming")

    async def generate(self, request: GenerationRequest) -> GenerationOutcome:
        """Generate, persist one assistant message and return the outcome.

        Raises:
            ConfigurationError: Unknown provider or no API key.
            CreditExhaustedError / SpendingLimitError: Pre-flight credit check failed.
        """
        request = resolve_request(request, self._deps.registry)
        ctx = GenerationContext(
            conversation_id=request.conversation_id,
            provider=request.provider or "",
            model=request.model or "",
            user_id=request.user_id,
            temperature=float(request.temperature if request.temperature is not None else 1.0),
        )
        seconds = timeout_for_provider(ctx.provider)
        log_event(self._logger, "generation.start", log_context(ctx), streaming=False, timeout_seconds=seconds)
        timer = DeadlineTimer(
            ctx.token,
            seconds,
            lambda: GenerationTimeoutError(seconds, provider=ctx.provider, model=ctx.model),
        )
        async with timer:
            try:
                prepared = await prepare_generation(self._deps, request, ctx)
            except _PREFLIGHT_ERRORS as e:
                ctx.transition(GenerationState.ERRORED)
                normalized_log_event(
                    self._logger,
                    "generation.error",
                    log_context(ctx),
                    phase="preflight",
                    error_code=error_code_of(e),
                    emitted=False,
                    level=logging.WARNING,
                    error=str(e),
                )
                raise
            except Exception as e:  # noqa: BLE001 - recorded as the assistant turn
                return await record_failure(self._deps, ctx, request, e, self._logger)
            try:
                return await self._run(ctx, request, prepared)
            except Exception as e:  # noqa: BLE001 - recorded as the assistant turn
                return await record_failure(self._deps, ctx, request, e, self._logger)

    async def _run(
        self, ctx: GenerationContext, request: GenerationRequest, prepared: PreparedGeneration
    ) -> GenerationOutcome:
        ctx.started_at = time.monotonic()
        result = await run_or_abort(
            prepared.built.handle.generate(
                prepared.messages,
                temperature=ctx.temperature,
                tools=prepared.tools,
                provider_options=prepared.built.provider_options,
                max_steps=self._deps.settings.max_steps,
                cancel_token=ctx.token,
                tool_router=prepared.router,
            ),
            ctx.token,
        )
        elapsed_ms = ctx.elapsed_ms()
        self._apply_usage(ctx, request, result)

        text = (result.text or "").strip()
        reasoning = (result.reasoning or "").strip()
        if not text and reasoning:
            text, reasoning = reasoning, ""
        content = text or EMPTY_RESPONSE_FALLBACK
        tool_calls = tool_call_records(result)
        metrics = GenerationMetrics(
            provider=ctx.provider,
            model=ctx.model,
            tokens_used=ctx.usage.total_tokens or ctx.usage.completion_tokens,
            prompt_tokens=ctx.usage.prompt_tokens or None,
            completion_tokens=ctx.usage.completion_tokens or None,
            generation_time_ms=elapsed_ms,
            tokens_per_second=tokens_per_second(ctx.usage.completion_tokens, elapsed_ms),
            temperature=ctx.temperature,
        )

        await deduct_usage(self._deps, ctx, self._logger)

        ctx.message_id = await self._deps.conversations.create_message(
            ctx.conversation_id,
            ConversationMessage(
                role="assistant",
                content=content,
                branch_id=request.branch_id,
                thinking=reasoning or None,
                tool_calls=tool_calls or None,
                generation_metrics=metrics,
            ),
        )
        await release_generation(self._deps.conversations, ctx, self._logger)
        ctx.transition(GenerationState.COMPLETED)
        normalized_log_event(
            self._logger,
            "generation.complete",
            log_context(ctx),
            phase="complete",
            emitted=True,
            tokens=metrics.to_dict(),
        )
        return GenerationOutcome(
            using_user_key=ctx.using_user_key,
            message_id=ctx.message_id,
            content=content,
            thinking=reasoning or None,
            tool_calls=tool_calls,
            generation_metrics=metrics,
        )

    def _apply_usage(self, ctx: GenerationContext, request: GenerationRequest, result: GenerateResult) -> None:
        """Provider-reported usage when present, else a character-count estimate."""
        usage = result.usage
        if usage is not None and (usage.prompt_tokens or usage.completion_tokens):
            ctx.usage.prompt_tokens = usage.prompt_tokens or 0
            ctx.usage.completion_tokens = usage.completion_tokens or 0
            ctx.usage.total_tokens = usage.total_tokens or 0
            return
        chars_per_token = self._deps.settings.chars_per_token
        ctx.usage.prompt_tokens = estimate_input_tokens(request.messages, chars_per_token)
        ctx.usage.completion_tokens = estimate_tokens(result.text or "", chars_per_token)
        ctx.usage.total_tokens = 0


__all__ = ["NonStreamingOrchestrator", "tool_call_records"]
