"""Anthropic Messages API handle.

Uses ``anthropic.AsyncAnthropic().messages.stream``. System messages are
lifted into the ``system`` parameter. Extended thinking is enabled from the
registry's ``thinking`` option; thinking blocks (with their signatures) are
echoed back verbatim in tool rounds, as the API requires.
"""

from __future__ import annotations

import json
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

from ...base.http import get_async_client
from ...base.middleware import MiddlewareChain
from ...base.streaming import ReasoningDelta, StreamEvent, TextDelta, TokenUsage
from ...config.defaults import ANTHROPIC_MAX_OUTPUT_TOKENS
from .base import BaseModelHandle, CallOptions, PendingToolCall, StepOutcome, parse_tool_args


def _part_to_anthropic(part: Dict[str, Any]) -> Dict[str, Any]:
    kind = part.get("type")
    if kind == "image":
        return {"type": "image", "source": {"type": "url", "url": part.get("image")}}
    if kind == "file":
        mime = part.get("mimeType") or ""
        url = part.get("data")
        if mime.startswith("image/"):
            return {"type": "image", "source": {"type": "url", "url": url}}
        if mime == "application/pdf":
            return {"type": "document", "source": {"type": "url", "url": url}}
        return {"type": "text", "text": f"[Attached file ({mime or 'unknown type'}): {url}]"}
    return {"type": "text", "text": part.get("text") or ""}


def to_anthropic_messages(messages: Sequence[Dict[str, Any]]) -> Tuple[Optional[str], List[Dict[str, Any]]]:
    """Split out system text and convert the remaining turns."""
    system_parts: List[str] = []
    out: List[Dict[str, Any]] = []
    for m in messages:
        role = m.get("role")
        content = m.get("content", "")
        if role == "system":
            text = content if isinstance(content, str) else " ".join(p.get("text") or "" for p in content)
            system_parts.append(text)
            continue
        if isinstance(content, list):
            content = [_part_to_anthropic(p) for p in content]
        out.append({"role": "assistant" if role == "assistant" else "user", "content": content})
    return ("\n\n".join(system_parts) or None), out


class AnthropicHandle(BaseModelHandle):
    """Handle backed by ``anthropic.AsyncAnthropic``."""

    def __init__(
        self,
        model: str,
        *,
        api_key: str,
        base_url: Optional[str] = None,
        client: Any = None,
    ) -> None:
        super().__init__("anthropic", model)
        if client is None:
            from anthropic import AsyncAnthropic

            client = AsyncAnthropic(api_key=api_key, base_url=base_url, http_client=get_async_client())
        self._client = client

    def _prepare(self, messages: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        system, turns = to_anthropic_messages(messages)
        return {"system": system, "messages": turns}

    def _params(self, conversation: Dict[str, Any], call: CallOptions) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "model": self.model,
            "messages": conversation["messages"],
            "max_tokens": ANTHROPIC_MAX_OUTPUT_TOKENS,
        }
        if conversation["system"]:
            params["system"] = conversation["system"]
        thinking = call.provider_options.get("thinking")
        if thinking:
            budget = int(thinking.get("budgetTokens") or 0)
            params["thinking"] = {"type": "enabled", "budget_tokens": budget}
            # max_tokens must exceed the thinking budget; temperature must stay at its default.
            params["max_tokens"] = budget + ANTHROPIC_MAX_OUTPUT_TOKENS
        else:
            params["temperature"] = call.temperature
        if call.tools:
            params["tools"] = [
                {"name": t.name, "description": t.description, "input_schema": t.parameters} for t in call.tools
            ]
        return params

    async def _stream_step(
        self, conversation: Dict[str, Any], call: CallOptions, outcome: StepOutcome
    ) -> AsyncIterator[StreamEvent]:
        async with self._client.messages.stream(**self._params(conversation, call)) as stream:
            async for event in stream:
                if event.type != "content_block_delta":
                    continue
                delta = event.delta
                if delta.type == "text_delta":
                    outcome.text += delta.text
                    yield TextDelta(delta.text)
                elif delta.type == "thinking_delta":
                    outcome.reasoning += delta.thinking
                    yield ReasoningDelta(delta.thinking)
            final = await stream.get_final_message()
        outcome.native = final.content
        outcome.finish_reason = final.stop_reason
        usage = final.usage
        if usage is not None:
            prompt = usage.input_tokens
            completion = usage.output_tokens
            outcome.usage = TokenUsage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=prompt + completion)
        outcome.tool_calls = [
            PendingToolCall(id=block.id, name=block.name, args=parse_tool_args(block.input), raw_args=json.dumps(block.input))
            for block in final.content
            if block.type == "tool_use"
        ]

    def _append_tool_round(
        self,
        conversation: Dict[str, Any],
        outcome: StepOutcome,
        results: List[Tuple[PendingToolCall, Any]],
    ) -> None:
        conversation["messages"].append(
            {"role": "assistant", "content": [block.model_dump(exclude_none=True) for block in outcome.native or []]}
        )
        conversation["messages"].append(
            {
                "role": "user",
                "content": [
                    {
                        "type": "tool_result",
                        "tool_use_id": call.id,
                        "content": payload if isinstance(payload, str) else json.dumps(payload),
                    }
                    for call, payload in results
                ],
            }
        )


__all__ = ["AnthropicHandle", "to_anthropic_messages"]
