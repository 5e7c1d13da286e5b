"""Error-path handling shared by both orchestrators.

A failure after pre-flight becomes a coherent assistant turn: the classified
message is written into the placeholder (or a new message when there is no
placeholder, or updating it fails), the generation marker and persisted
cancellation flag are cleared, and an error outcome is returned.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..base.errors import classify_exception, describe_generation_failure
from ..base.interfaces import ConversationStore
from ..base.logging import log_event, normalized_log_event
from ..base.models import ConversationMessage, GenerationMetrics, GenerationOutcome, GenerationRequest
from .preparation import Collaborators, log_context
from .state import GenerationContext, GenerationState


def error_code_of(error: BaseException) -> str:
    """Normalized error code value for logging."""
    return classify_exception(error).value


async def release_generation(
    conversations: ConversationStore, ctx: GenerationContext, logger: logging.Logger
) -> None:
    """Clear the generation marker and the persisted flag; failures are logged only."""
    try:
        await conversations.set_generation_state(ctx.conversation_id, False)
    except Exception as e:  # noqa: BLE001 - cleanup only
        log_event(logger, "generation.cleanup_failed", log_context(ctx), level=logging.WARNING, step="state", error=str(e))
    try:
        await conversations.clear_cancellation_flag(ctx.conversation_id)
    except Exception as e:  # noqa: BLE001 - cleanup only
        log_event(logger, "generation.cleanup_failed", log_context(ctx), level=logging.WARNING, step="flag", error=str(e))


async def write_error_message(
    conversations: ConversationStore,
    ctx: GenerationContext,
    request: GenerationRequest,
    text: str,
    logger: logging.Logger,
) -> str:
    """Persist ``text`` as the errored assistant turn and return its message id."""
    metrics = GenerationMetrics(provider=ctx.provider, model=ctx.model, generation_time_ms=0)
    message_id: Optional[str] = ctx.message_id
    if message_id is not None:
        try:
            await conversations.update_message(
                message_id, content=text, generation_metrics=metrics, is_error=True, is_streaming=False
            )
            return message_id
        except Exception as e:  # noqa: BLE001 - fall back to a new message
            log_event(logger, "generation.error_update_failed", log_context(ctx), level=logging.WARNING, error=str(e))
    return await conversations.create_message(
        ctx.conversation_id,
        ConversationMessage(
            role="assistant",
            content=text,
            branch_id=request.branch_id,
            generation_metrics=metrics,
            is_error=True,
        ),
    )


async def record_failure(
    deps: Collaborators,
    ctx: GenerationContext,
    request: GenerationRequest,
    error: BaseException,
    logger: logging.Logger,
) -> GenerationOutcome:
    """Classify ``error``, record it in the conversation and return the error outcome."""
    text = describe_generation_failure(error, ctx.provider, ctx.model, ctx.using_user_key)
    if not ctx.token.cancelled:
        ctx.token.cancel("generation failed")
    normalized_log_event(
        logger,
        "generation.error",
        log_context(ctx),
        phase=ctx.state.value,
        error_code=error_code_of(error),
        emitted=bool(ctx.content),
        level=logging.ERROR,
        error=str(error),
        error_type=type(error).__name__,
    )
    message_id = await write_error_message(deps.conversations, ctx, request, text, logger)
    ctx.message_id = message_id
    await release_generation(deps.conversations, ctx, logger)
    if not ctx.state.terminal:
        ctx.transition(GenerationState.ERRORED)
    return GenerationOutcome(using_user_key=ctx.using_user_key, message_id=message_id, error=text)


__all__ = ["error_code_of", "record_failure", "release_generation", "write_error_message"]
