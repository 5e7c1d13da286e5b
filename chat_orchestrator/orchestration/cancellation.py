"""Stop requests for running generations.

A stop sets the persisted per-conversation flag, which any process running
the generation observes before its next event. When the generation runs in
this process the in-process token is aborted too, so a pending provider
await is interrupted without waiting for the next event.
"""
from __future__ import annotations

from typing import Optional

from ..base.interfaces import ConversationStore
from ..base.logging import LogContext, get_logger, log_event
from .streaming import StreamingOrchestrator

_logger = get_logger("orchestration.cancellation")


async def request_cancellation(
    conversations: ConversationStore,
    conversation_id: str,
    orchestrator: Optional[StreamingOrchestrator] = None,
) -> bool:
    """Ask the generation for ``conversation_id`` to stop.

    Returns whether a generation was aborted in this process. The flag is
    set either way; a stop with nothing running is harmless because each
    generation clears the flag when it starts and when it finishes.
    """
    await conversations.set_cancellation_flag(conversation_id)
    aborted = orchestrator.abort_in_process(conversation_id) if orchestrator is not None else False
    log_event(
        _logger,
        "generation.cancel_requested",
        LogContext(conversation_id=conversation_id),
        in_process=aborted,
    )
    return aborted


__all__ = ["request_cancellation"]
