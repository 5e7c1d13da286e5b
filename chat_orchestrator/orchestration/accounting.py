"""Post-generation credit deduction for built-in-key generations."""
from __future__ import annotations

import logging

from ..base.logging import log_event
from .preparation import Collaborators, log_context
from .state import GenerationContext


async def deduct_usage(deps: Collaborators, ctx: GenerationContext, logger: logging.Logger) -> None:
    """Charge actual usage; skipped for own-key or zero-usage generations.

    A failed deduction is logged as ``credits.deduct_failed`` and swallowed:
    the generation already completed and its message is persisted.
    """
    if ctx.using_user_key:
        return
    prompt = ctx.usage.prompt_tokens or 0
    completion = ctx.usage.completion_tokens or 0
    if prompt <= 0 and completion <= 0:
        return
    try:
        await deps.credit_gate.deduct(ctx.user_id, ctx.model, prompt, completion)
    except Exception as e:  # noqa: BLE001 - never fails a completed generation
        log_event(logger, "credits.deduct_failed", log_context(ctx), level=logging.WARNING, error=str(e))


__all__ = ["deduct_usage"]
