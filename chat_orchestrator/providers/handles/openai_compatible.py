"""OpenAI-compatible chat-completions handle.

Serves every provider that speaks the OpenAI Chat Completions wire format:
openai itself plus groq, deepseek, openrouter, grok (xAI), cohere and mistral
through their compatibility endpoints. The provider differences handled here
are small:

- ``reasoning_effort`` is sent only when the registry supplied
  ``reasoningEffort``; reasoning models reject ``temperature``, so it is
  omitted in that case.
- Reasoning deltas arrive as ``reasoning_content`` (deepseek) or
  ``reasoning`` (openrouter) on the delta object.
- OpenRouter reports upstream failures as an ``error`` object inside an
  otherwise normal chunk; it is surfaced as an in-band error event.
"""

from __future__ import annotations

import json
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

from ...base.errors import ErrorCode, ProviderError
from ...base.http import get_async_client
from ...base.middleware import MiddlewareChain
from ...base.streaming import ReasoningDelta, StreamErrorEvent, StreamEvent, TextDelta, TokenUsage
from .base import BaseModelHandle, CallOptions, PendingToolCall, StepOutcome, parse_tool_args


def _part_to_openai(part: Dict[str, Any]) -> Dict[str, Any]:
    kind = part.get("type")
    if kind == "image":
        return {"type": "image_url", "image_url": {"url": part.get("image")}}
    if kind == "file":
        mime = part.get("mimeType") or ""
        if mime.startswith("image/"):
            return {"type": "image_url", "image_url": {"url": part.get("data")}}
        # Chat Completions only accepts inline file bytes; reference the URL instead.
        return {"type": "text", "text": f"[Attached file ({mime or 'unknown type'}): {part.get('data')}]"}
    return {"type": "text", "text": part.get("text") or ""}


def to_openai_messages(messages: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Convert neutral messages to Chat Completions messages."""
    out: List[Dict[str, Any]] = []
    for m in messages:
        content = m.get("content", "")
        if isinstance(content, list):
            if m.get("role") == "user":
                content = [_part_to_openai(p) for p in content]
            else:
                content = " ".join(p.get("text") or "" for p in content if p.get("type") == "text")
        out.append({"role": m.get("role", "user"), "content": content})
    return out


def tool_to_openai(spec: Any) -> Dict[str, Any]:
    return {
        "type": "function",
        "function": {"name": spec.name, "description": spec.description, "parameters": spec.parameters},
    }


def _usage_of(raw: Any) -> Optional[TokenUsage]:
    if raw is None:
        return None
    return TokenUsage(
        prompt_tokens=getattr(raw, "prompt_tokens", None),
        completion_tokens=getattr(raw, "completion_tokens", None),
        total_tokens=getattr(raw, "total_tokens", None),
    )


class OpenAICompatibleHandle(BaseModelHandle):
    """Handle backed by ``openai.AsyncOpenAI`` pointed at ``base_url``."""

    def __init__(
        self,
        provider: str,
        model: str,
        *,
        api_key: str,
        base_url: Optional[str] = None,
        middleware: Optional[MiddlewareChain] = None,
        client: Any = None,
    ) -> None:
        super().__init__(provider, model, middleware=middleware)
        if client is None:
            from openai import AsyncOpenAI

            client = AsyncOpenAI(api_key=api_key, base_url=base_url, http_client=get_async_client())
        self._client = client

    def _prepare(self, messages: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return to_openai_messages(messages)

    def _params(self, conversation: List[Dict[str, Any]], call: CallOptions) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "model": self.model,
            "messages": conversation,
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        effort = call.provider_options.get("reasoningEffort")
        if effort:
            params["reasoning_effort"] = effort
        else:
            params["temperature"] = call.temperature
        if call.tools:
            params["tools"] = [tool_to_openai(t) for t in call.tools]
        return params

    async def _stream_step(
        self, conversation: List[Dict[str, Any]], call: CallOptions, outcome: StepOutcome
    ) -> AsyncIterator[StreamEvent]:
        stream = await self._client.chat.completions.create(**self._params(conversation, call))
        pending: Dict[int, Dict[str, str]] = {}
        try:
            async for chunk in stream:
                usage = _usage_of(getattr(chunk, "usage", None))
                if usage is not None:
                    outcome.usage = usage
                extra = getattr(chunk, "model_extra", None) or {}
                if extra.get("error"):
                    err = extra["error"]
                    message = err.get("message", str(err)) if isinstance(err, dict) else str(err)
                    yield StreamErrorEvent(
                        ProviderError(code=ErrorCode.UNKNOWN, message=message, provider=self.provider, model=self.model)
                    )
                if not chunk.choices:
                    continue
                choice = chunk.choices[0]
                delta = choice.delta
                if delta is not None:
                    if delta.content:
                        outcome.text += delta.content
                        yield TextDelta(delta.content)
                    reasoning = getattr(delta, "reasoning_content", None) or getattr(delta, "reasoning", None)
                    if reasoning:
                        outcome.reasoning += reasoning
                        yield ReasoningDelta(reasoning)
                    for tc in delta.tool_calls or []:
                        slot = pending.setdefault(tc.index, {"id": "", "name": "", "args": ""})
                        if tc.id:
                            slot["id"] = tc.id
                        if tc.function is not None:
                            slot["name"] += tc.function.name or ""
                            slot["args"] += tc.function.arguments or ""
                if choice.finish_reason:
                    outcome.finish_reason = choice.finish_reason
        finally:
            await stream.close()
        outcome.tool_calls = [
            PendingToolCall(
                id=slot["id"] or f"call_{index}",
                name=slot["name"],
                args=parse_tool_args(slot["args"]),
                raw_args=slot["args"] or "{}",
            )
            for index, slot in sorted(pending.items())
        ]

    def _append_tool_round(
        self,
        conversation: List[Dict[str, Any]],
        outcome: StepOutcome,
        results: List[Tuple[PendingToolCall, Any]],
    ) -> None:
        conversation.append(
            {
                "role": "assistant",
                "content": outcome.text or None,
                "tool_calls": [
                    {"id": c.id, "type": "function", "function": {"name": c.name, "arguments": c.raw_args}}
                    for c in outcome.tool_calls
                ],
            }
        )
        for call, payload in results:
            content = payload if isinstance(payload, str) else json.dumps(payload)
            conversation.append({"role": "tool", "tool_call_id": call.id, "content": content})


__all__ = ["OpenAICompatibleHandle", "to_openai_messages", "tool_to_openai"]
