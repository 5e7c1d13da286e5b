"""
NDJSON streaming for the generate endpoint.

Purpose
-------
Run a streaming generation in a background task and forward every applied
stream event to the client as one JSON line, followed by a single terminal
``result`` line carrying the generation outcome.

Pre-flight semantics
--------------------
- The response is not started until the first event arrives or the
  generation finishes, so configuration and credit failures still surface
  as HTTP 400/402 instead of an in-band line.
- Failures after streaming started are already persisted into the
  conversation by the orchestrator; the terminal ``result`` line carries the
  same user-facing error text.

Disconnects
-----------
If the client goes away before the generation finishes, the generation is
stopped through the regular cancellation path (persisted flag plus
in-process abort), so the partial content is kept as a cancelled turn.
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator, Dict, Optional

from fastapi.responses import StreamingResponse

from chat_orchestrator.base.errors import OrchestrationError
from chat_orchestrator.base.logging import LogContext, get_logger, log_event
from chat_orchestrator.base.models import GenerationOutcome, GenerationRequest
from chat_orchestrator.base.streaming import StreamEvent, event_to_dict
from chat_orchestrator.orchestration import request_cancellation
from chat_orchestrator.service.app_parts.app_core import ServiceState, _http_error

_logger = get_logger("service.chat_stream")


def _line(payload: Dict[str, Any]) -> bytes:
    return (json.dumps(payload, ensure_ascii=False, default=str) + "\n").encode("utf-8")


def _result_payload(outcome: GenerationOutcome) -> Dict[str, Any]:
    return {"type": "result", "finish": True, **outcome.to_dict()}


async def stream_generation(state: ServiceState, request: GenerationRequest) -> StreamingResponse:
    """Start ``request`` and return an NDJSON response over its events.

    Raises:
        HTTPException: 400 for configuration failures, 402 for credit
            failures raised before any event was produced.
    """
    queue: "asyncio.Queue[Optional[Dict[str, Any]]]" = asyncio.Queue()

    async def listener(event: StreamEvent) -> None:
        await queue.put(event_to_dict(event))

    task = asyncio.create_task(state.streaming.generate(request, listener=listener))
    task.add_done_callback(lambda _: queue.put_nowait(None))

    first = await queue.get()
    if first is None:
        error = task.exception()
        if isinstance(error, OrchestrationError):
            raise _http_error(error) from error
        if error is not None:
            raise error

    async def iter_ndjson() -> AsyncIterator[bytes]:
        """Yield buffered events, then the terminal result line.

        Invariants:
            - Exactly one line with ``finish=True`` closes the stream.
            - An exception escaping the generation task becomes a terminal
              ``error`` line.
        """
        item = first
        try:
            while item is not None:
                yield _line(item)
                item = await queue.get()
            try:
                outcome = task.result()
            except Exception as exc:  # noqa: BLE001 - reported in-band once streaming started
                log_event(
                    _logger,
                    "service.stream_failed",
                    LogContext(conversation_id=request.conversation_id),
                    error=str(exc),
                )
                yield _line({"type": "error", "finish": True, "error": str(exc)})
                return
            yield _line(_result_payload(outcome))
        finally:
            if not task.done():
                await request_cancellation(
                    state.deps.conversations, request.conversation_id, state.streaming
                )
                await asyncio.gather(task, return_exceptions=True)

    return StreamingResponse(iter_ndjson(), media_type="application/x-ndjson")


__all__ = ["stream_generation"]
