"""Scripted collaborators for orchestrator tests.

Purpose:
    Drive the orchestrators end to end without network access. The scripted
    handle subclasses :class:`BaseModelHandle`, so the real tool loop,
    usage aggregation and two-phase stream resolution run unchanged; only
    the SDK step is replaced by a list of pre-recorded events.

Exports:
    - Step: one scripted model call.
    - ScriptedHandle: model handle replaying steps.
    - RawStream / RawHandle: handle whose stream is a fixed event list with
      overridable final values (for in-band errors and resolution failures).
    - FlagOnStartStore: conversation store that raises the persisted stop
      flag as soon as the placeholder is marked in progress.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from chat_orchestrator.base.cancellation import CancellationToken
from chat_orchestrator.base.interfaces import GenerateResult
from chat_orchestrator.base.memory import InMemoryConversationStore
from chat_orchestrator.base.models import ConversationMessage, GenerationRequest, UsageRecord
from chat_orchestrator.base.streaming import StreamEvent, TextDelta, TokenUsage
from chat_orchestrator.base.tools import ToolRouter, ToolSpec
from chat_orchestrator.providers.handles.base import (
    BaseModelHandle,
    CallOptions,
    PendingToolCall,
    StepOutcome,
)


@dataclass
class Step:
    """One scripted model call.

    ``text`` defaults to the concatenated text deltas. ``hang`` blocks
    forever after the events, which only a cancellation can interrupt.
    """

    events: List[StreamEvent] = field(default_factory=list)
    text: Optional[str] = None
    reasoning: str = ""
    tool_calls: List[PendingToolCall] = field(default_factory=list)
    usage: Optional[TokenUsage] = None
    hang: bool = False
    raise_error: Optional[BaseException] = None


class ScriptedHandle(BaseModelHandle):
    """Model handle replaying :class:`Step` objects in order."""

    def __init__(self, provider: str, model: str, steps: Sequence[Step]) -> None:
        super().__init__(provider, model)
        self._steps = list(steps)
        self._index = 0
        self.prepared: List[Dict[str, Any]] = []
        self.options: Optional[CallOptions] = None
        self.started = False
        self.tool_rounds: List[List[Tuple[str, Any]]] = []

    def _prepare(self, messages: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        self.prepared = [dict(m) for m in messages]
        return list(self.prepared)

    async def _stream_step(self, conversation: Any, call: CallOptions, outcome: StepOutcome):
        self.started = True
        self.options = call
        step = self._steps[min(self._index, len(self._steps) - 1)]
        self._index += 1
        for event in step.events:
            await asyncio.sleep(0)
            yield event
        if step.raise_error is not None:
            raise step.raise_error
        if step.hang:
            await asyncio.Event().wait()
        outcome.text = step.text if step.text is not None else "".join(
            e.text for e in step.events if isinstance(e, TextDelta)
        )
        outcome.reasoning = step.reasoning
        outcome.tool_calls = list(step.tool_calls)
        outcome.usage = step.usage

    def _append_tool_round(
        self, conversation: Any, outcome: StepOutcome, results: List[Tuple[PendingToolCall, Any]]
    ) -> None:
        self.tool_rounds.append([(pending.name, payload) for pending, payload in results])
        conversation.append({"role": "tool", "content": [payload for _, payload in results]})


class RawStream:
    """A stream over fixed events with scripted final values."""

    def __init__(
        self,
        events: Sequence[StreamEvent],
        *,
        final_text: str = "",
        final_reasoning: str = "",
        resolve_error: Optional[BaseException] = None,
    ) -> None:
        self._events = list(events)
        self._final_text = final_text
        self._final_reasoning = final_reasoning
        self._resolve_error = resolve_error
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for event in self._events:
            await asyncio.sleep(0)
            yield event

    async def final_text(self) -> str:
        if self._resolve_error is not None:
            raise self._resolve_error
        return self._final_text

    async def final_reasoning(self) -> str:
        if self._resolve_error is not None:
            raise self._resolve_error
        return self._final_reasoning

    async def aclose(self) -> None:
        self.closed = True


class RawHandle:
    """Handle returning a prepared :class:`RawStream` (and a fixed generate result)."""

    def __init__(self, provider: str, model: str, stream: RawStream, result: Optional[GenerateResult] = None) -> None:
        self.provider = provider
        self.model = model
        self._stream = stream
        self._result = result or GenerateResult()
        self.messages: List[Dict[str, Any]] = []

    def stream(
        self,
        messages: Sequence[Dict[str, Any]],
        *,
        temperature: float,
        tools: Sequence[ToolSpec] = (),
        provider_options: Optional[Dict[str, Any]] = None,
        max_steps: int = 1,
        cancel_token: Optional[CancellationToken] = None,
        tool_router: Optional[ToolRouter] = None,
    ) -> RawStream:
        self.messages = list(messages)
        return self._stream

    async def generate(
        self,
        messages: Sequence[Dict[str, Any]],
        *,
        temperature: float,
        tools: Sequence[ToolSpec] = (),
        provider_options: Optional[Dict[str, Any]] = None,
        max_steps: int = 1,
        cancel_token: Optional[CancellationToken] = None,
        tool_router: Optional[ToolRouter] = None,
    ) -> GenerateResult:
        self.messages = list(messages)
        return self._result


class FlagOnStartStore(InMemoryConversationStore):
    """Raises the stop flag the moment a generation is marked in progress."""

    async def set_generation_state(
        self, conversation_id: str, in_progress: bool, message_id: Optional[str] = None
    ) -> None:
        await super().set_generation_state(conversation_id, in_progress, message_id)
        if in_progress:
            await self.set_cancellation_flag(conversation_id)


class RecordingStore(InMemoryConversationStore):
    """Records the content of every update so tests can check accumulation."""

    def __init__(self) -> None:
        super().__init__()
        self.content_updates: List[str] = []

    async def update_message(self, message_id: str, **fields: Any) -> None:
        if "content" in fields and isinstance(fields["content"], str):
            self.content_updates.append(fields["content"])
        await super().update_message(message_id, **fields)


class FailingUpdateStore(InMemoryConversationStore):
    """Rejects updates that mark a message as an error."""

    async def update_message(self, message_id: str, **fields: Any) -> None:
        if fields.get("is_error"):
            raise RuntimeError("store unavailable")
        await super().update_message(message_id, **fields)


def make_request(text: str = "Hello there", **overrides: Any) -> GenerationRequest:
    """A single-user-message request for ``openai/gpt-4o`` on ``conv-1``."""
    fields: Dict[str, Any] = {
        "conversation_id": "conv-1",
        "messages": [ConversationMessage(role="user", content=text)],
        "provider": "openai",
        "model": "gpt-4o",
    }
    fields.update(overrides)
    return GenerationRequest(**fields)


def make_usage_record(**changes: Any) -> UsageRecord:
    """A free-plan record for user ``default`` that resets in ten days."""
    record = UsageRecord(
        user_id="default",
        plan="free",
        credits_used=0,
        credits_limit=100,
        dollars_spent=0.0,
        max_spending_dollars=1.0,
        searches_used=0,
        reset_at=datetime.now(timezone.utc) + timedelta(days=10),
    )
    return record.evolve(**changes)


__all__ = [
    "make_request",
    "make_usage_record",
    "Step",
    "ScriptedHandle",
    "RawStream",
    "RawHandle",
    "FlagOnStartStore",
    "RecordingStore",
    "FailingUpdateStore",
]
