"""Streaming generation orchestrator.

Drives one assistant turn through the generation state machine, persisting
the accumulated message after every stream event so a concurrent reader
always sees monotonically growing content.

Cancellation has two layers. The in-process :class:`CancellationToken`
(aborted by the deadline timer or an in-process stop request) interrupts a
pending provider await immediately. The persisted per-conversation flag is
the cross-request signal; it is read before every event is pulled, so a stop
lands within one event interval.

Every exit path clears the deadline timer, the generation-in-progress marker
and the persisted flag. Failures after the placeholder exists are written
into the conversation as the assistant's visible error content; only
configuration and credit pre-flight failures propagate to the caller.
"""
from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from ..base.cancellation import DeadlineTimer
from ..base.errors import (
    ConfigurationError,
    CreditExhaustedError,
    GenerationTimeoutError,
    InBandStreamError,
    SpendingLimitError,
    UserCancelledError,
)
from ..base.logging import get_logger, log_event, normalized_log_event
from ..base.models import (
    ConversationMessage,
    GenerationMetrics,
    GenerationOutcome,
    GenerationRequest,
    ToolCallRecord,
    tokens_per_second,
)
from ..base.streaming import (
    Finish,
    ModelStream,
    ReasoningDelta,
    ReasoningFinish,
    ReasoningText,
    StreamErrorEvent,
    StreamEvent,
    TextDelta,
    ToolCall,
    ToolResult,
    apply_token_usage,
)
from ..base.timeouts import timeout_for_provider
from ..base.tools import THINKING_TOOL_NAME
from ..config.defaults import EMPTY_RESPONSE_FALLBACK, STOPPED_BY_USER_TEXT
from ..usage import estimate_tokens
from .accounting import deduct_usage
from .aborts import next_event_or_abort
from .failure import error_code_of, record_failure, release_generation
from .preparation import (
    Collaborators,
    PreparedGeneration,
    log_context,
    prepare_generation,
    resolve_request,
)
from .state import GenerationContext, GenerationState

EventListener = Callable[[StreamEvent], Awaitable[None]]

_PREFLIGHT_ERRORS = (ConfigurationError, CreditExhaustedError, SpendingLimitError)


def render_tool_output(result: Any) -> str:
    """String results verbatim; anything else as indented JSON."""
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, ensure_ascii=False, default=str)


def _error_text(error: Any) -> str:
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(error) if error else "Unknown streaming error occurred"


class StreamingOrchestrator:
    """Run streaming generations against the wired collaborators.

    Parameters:
        deps: Stores, registry, credit gate and tool router.
        throttle_seconds: Pause between event iterations; defaults to the
            configured value. Tests pass ``0``.
    """

    def __init__(self, deps: Collaborators, *, throttle_seconds: Optional[float] = None) -> None:
        self._deps = deps
        self._conversations = deps.conversations
        self._throttle = deps.settings.stream_throttle_seconds if throttle_seconds is None else throttle_seconds
        self._active: Dict[str, GenerationContext] = {}
        self._logger = get_logger("orchestration.streaming")

    async def generate(
        self, request: GenerationRequest, *, listener: Optional[EventListener] = None
    ) -> GenerationOutcome:
        """Run one streaming generation to a terminal state.

        ``listener`` is awaited with every event after it has been applied
        and persisted (the NDJSON endpoint forwards them).

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
        log_event(self._logger, "generation.start", log_context(ctx), streaming=True, timeout_seconds=seconds)
        timer = DeadlineTimer(
            ctx.token,
            seconds,
            lambda: GenerationTimeoutError(seconds, provider=ctx.provider, model=ctx.model),
        )
        self._active[ctx.conversation_id] = ctx
        try:
            async with timer:
                await self._conversations.clear_cancellation_flag(ctx.conversation_id)
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
                    await self._create_placeholder(ctx, request)
                    return await self._stream(ctx, request, prepared, listener)
                except Exception as e:  # noqa: BLE001 - recorded as the assistant turn
                    return await record_failure(self._deps, ctx, request, e, self._logger)
        finally:
            if self._active.get(ctx.conversation_id) is ctx:
                del self._active[ctx.conversation_id]

    def abort_in_process(self, conversation_id: str, reason: str = "User cancelled generation") -> bool:
        """Abort the running generation for ``conversation_id`` in this process.

        Returns whether a generation was running here. The persisted flag is
        still the authoritative signal for other processes.
        """
        ctx = self._active.get(conversation_id)
        if ctx is None:
            return False
        ctx.token.cancel(reason, error=UserCancelledError(reason, provider=ctx.provider, model=ctx.model))
        return True

    # ---- phases ------------------------------------------------------------
    async def _create_placeholder(self, ctx: GenerationContext, request: GenerationRequest) -> None:
        placeholder = ConversationMessage(role="assistant", content="", branch_id=request.branch_id)
        ctx.message_id = await self._conversations.create_message(ctx.conversation_id, placeholder)
        await self._conversations.set_generation_state(ctx.conversation_id, True, ctx.message_id)
        await self._conversations.update_message(ctx.message_id, is_streaming=True)
        ctx.transition(GenerationState.MESSAGE_PLACEHOLDER_CREATED)
        log_event(self._logger, "generation.state", log_context(ctx), state=ctx.state.value)

    async def _stream(
        self,
        ctx: GenerationContext,
        request: GenerationRequest,
        prepared: PreparedGeneration,
        listener: Optional[EventListener],
    ) -> GenerationOutcome:
        ctx.transition(GenerationState.STREAMING)
        log_event(self._logger, "generation.state", log_context(ctx), state=ctx.state.value)
        ctx.started_at = time.monotonic()
        stream = prepared.built.handle.stream(
            prepared.messages,
            temperature=ctx.temperature,
            tools=prepared.tools,
            provider_options=prepared.built.provider_options,
            max_steps=self._deps.settings.max_steps,
            cancel_token=ctx.token,
            tool_router=prepared.router,
        )
        iterator = stream.__aiter__()
        try:
            while True:
                if await self._conversations.get_cancellation_flag(ctx.conversation_id):
                    ctx.token.cancel(
                        "User cancelled generation",
                        error=UserCancelledError("User cancelled generation", provider=ctx.provider, model=ctx.model),
                    )
                    return await self._finish_cancelled(ctx)
                try:
                    has_event, event = await next_event_or_abort(iterator, ctx.token)
                except UserCancelledError:
                    return await self._finish_cancelled(ctx)
                if not has_event:
                    break
                ctx.usage.emitted += 1
                if ctx.usage.time_to_first_token_ms is None and isinstance(event, (TextDelta, ReasoningDelta)):
                    ctx.usage.time_to_first_token_ms = float(ctx.elapsed_ms())
                await self._apply(ctx, request, prepared, event)
                if listener is not None:
                    await listener(event)
                if self._throttle > 0:
                    await asyncio.sleep(self._throttle)
        finally:
            await self._close_stream(stream)

        if ctx.in_band_error is not None:
            raise InBandStreamError(
                _error_text(ctx.in_band_error) or "Stream encountered an error",
                provider=ctx.provider,
                model=ctx.model,
            ) from (ctx.in_band_error if isinstance(ctx.in_band_error, BaseException) else None)
        return await self._finish_completed(ctx, stream)

    # ---- event handling ----------------------------------------------------
    async def _persist(self, ctx: GenerationContext, **fields: Any) -> None:
        if ctx.message_id is not None:
            await self._conversations.update_message(ctx.message_id, **fields)

    async def _apply(
        self,
        ctx: GenerationContext,
        request: GenerationRequest,
        prepared: PreparedGeneration,
        event: StreamEvent,
    ) -> None:
        if isinstance(event, TextDelta):
            if event.text:
                ctx.content += event.text
                ctx.usage.completion_tokens += estimate_tokens(event.text, self._deps.settings.chars_per_token)
            await self._persist(ctx, content=ctx.content, thinking=ctx.reasoning or None)
        elif isinstance(event, (ReasoningDelta, ReasoningText)):
            if event.text:
                ctx.reasoning += event.text
                await self._persist(ctx, content=ctx.content, thinking=ctx.reasoning)
        elif isinstance(event, ReasoningFinish):
            if event.text is not None:
                ctx.reasoning = event.text
            if ctx.reasoning:
                await self._persist(ctx, content=ctx.content, thinking=ctx.reasoning)
        elif isinstance(event, ToolCall):
            if event.tool_name == THINKING_TOOL_NAME:
                return
            call_id = event.tool_call_id or f"tool_{int(time.time() * 1000)}"
            ctx.tool_calls.append(
                ToolCallRecord(id=call_id, name=event.tool_name, arguments=json.dumps(event.args, default=str))
            )
            await self._persist(ctx, content=ctx.content, tool_calls=list(ctx.tool_calls))
        elif isinstance(event, ToolResult):
            await self._apply_tool_result(ctx, request, prepared, event)
        elif isinstance(event, StreamErrorEvent):
            if ctx.in_band_error is None:
                ctx.in_band_error = event.error
            log_event(
                self._logger,
                "generation.stream_error",
                log_context(ctx),
                level=logging.WARNING,
                error=_error_text(event.error),
            )
            await self._persist(
                ctx,
                content=ctx.content or f"Error: {_error_text(event.error)}",
                thinking=ctx.reasoning or None,
                is_error=True,
            )
        elif isinstance(event, Finish) and event.usage is not None:
            apply_token_usage(
                ctx.usage,
                prompt=event.usage.prompt_tokens,
                completion=event.usage.completion_tokens,
                total=event.usage.total_tokens,
            )

    async def _apply_tool_result(
        self,
        ctx: GenerationContext,
        request: GenerationRequest,
        prepared: PreparedGeneration,
        event: ToolResult,
    ) -> None:
        if event.tool_name == THINKING_TOOL_NAME:
            ctx.reasoning += "\n" + render_tool_output(event.result)
            await self._persist(ctx, content=ctx.content, thinking=ctx.reasoning)
            return
        call = ctx.find_tool_call(event.tool_call_id) if event.tool_call_id else None
        if call is not None:
            call.result = json.dumps(event.result, default=str)
            await self._persist(ctx, content=ctx.content, tool_calls=list(ctx.tool_calls))
        if prepared.preferences.show_tool_outputs:
            await self._conversations.create_message(
                ctx.conversation_id,
                ConversationMessage(
                    role="tool",
                    content=render_tool_output(event.result),
                    branch_id=request.branch_id,
                    tool_call_id=event.tool_call_id,
                ),
            )

    # ---- terminal states ---------------------------------------------------
    async def _finish_cancelled(self, ctx: GenerationContext) -> GenerationOutcome:
        content = ctx.content or STOPPED_BY_USER_TEXT
        metrics = GenerationMetrics(
            provider=ctx.provider,
            model=ctx.model,
            generation_time_ms=ctx.elapsed_ms(),
            temperature=ctx.temperature,
        )
        await self._persist(
            ctx,
            content=content,
            thinking=ctx.reasoning or None,
            tool_calls=list(ctx.tool_calls) or None,
            generation_metrics=metrics,
            is_streaming=False,
        )
        await release_generation(self._conversations, ctx, self._logger)
        ctx.transition(GenerationState.CANCELLED)
        log_event(self._logger, "generation.cancelled", log_context(ctx), generation_time_ms=metrics.generation_time_ms)
        return GenerationOutcome(
            using_user_key=ctx.using_user_key,
            message_id=ctx.message_id,
            content=content,
            thinking=ctx.reasoning or None,
            tool_calls=list(ctx.tool_calls),
            generation_metrics=metrics,
            cancelled=True,
        )

    async def _resolve_final(self, ctx: GenerationContext, stream: ModelStream) -> Tuple[str, str]:
        try:
            text = (await stream.final_text() or "").strip()
            reasoning = (await stream.final_reasoning() or "").strip()
        except Exception as e:  # noqa: BLE001 - fall back to the accumulated stream state
            log_event(
                self._logger,
                "generation.final_fallback",
                log_context(ctx),
                level=logging.WARNING,
                error=str(e),
            )
            text, reasoning = "", ""
        return text or ctx.content.strip(), reasoning or ctx.reasoning.strip()

    async def _finish_completed(self, ctx: GenerationContext, stream: ModelStream) -> GenerationOutcome:
        elapsed_ms = ctx.elapsed_ms()
        text, reasoning = await self._resolve_final(ctx, stream)
        if not text and reasoning:
            text, reasoning = reasoning, ""
        content = text or EMPTY_RESPONSE_FALLBACK
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
        await self._persist(
            ctx,
            content=content,
            thinking=reasoning or None,
            tool_calls=list(ctx.tool_calls) or None,
            generation_metrics=metrics,
            is_streaming=False,
        )
        await release_generation(self._conversations, ctx, self._logger)
        ctx.transition(GenerationState.COMPLETED)
        normalized_log_event(
            self._logger,
            "generation.complete",
            log_context(ctx),
            phase="complete",
            emitted=True,
            tokens=metrics.to_dict(),
            events=ctx.usage.emitted,
            time_to_first_token_ms=ctx.usage.time_to_first_token_ms,
        )
        await deduct_usage(self._deps, ctx, self._logger)
        return GenerationOutcome(
            using_user_key=ctx.using_user_key,
            message_id=ctx.message_id,
            content=content,
            thinking=reasoning or None,
            tool_calls=list(ctx.tool_calls),
            generation_metrics=metrics,
        )

    async def _close_stream(self, stream: ModelStream) -> None:
        aclose = getattr(stream, "aclose", None)
        if aclose is None:
            return
        try:
            await aclose()
        except Exception as e:  # noqa: BLE001 - cleanup only
            log_event(self._logger, "generation.stream_close_failed", level=logging.DEBUG, error=str(e))


__all__ = ["StreamingOrchestrator", "EventListener", "render_tool_output"]
