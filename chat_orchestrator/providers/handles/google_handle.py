"""Google Gemini handle (``google-genai`` SDK).

Uses ``genai.Client().aio.models.generate_content_stream`` with dict-shaped
contents and config. Thought parts (``part.thought``) are emitted as
reasoning when ``thinkingConfig.includeThoughts`` is on. Automatic function
calling is disabled so the shared tool loop stays in charge.

Blocked prompts and safety/recitation stops do not raise in the SDK; they
are surfaced as in-band error events whose text names the block reason.
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

from ...base.errors import ErrorCode, ProviderError
from ...base.streaming import ReasoningDelta, StreamErrorEvent, StreamEvent, TextDelta, TokenUsage
from .base import BaseModelHandle, CallOptions, PendingToolCall, StepOutcome, parse_tool_args

_BLOCKING_FINISH_REASONS = frozenset(
    {"SAFETY", "RECITATION", "BLOCKLIST", "PROHIBITED_CONTENT", "SPII", "IMAGE_SAFETY"}
)


def _enum_name(value: Any) -> Optional[str]:
    if value is None:
        return None
    return getattr(value, "name", None) or str(value)


def _part_to_gemini(part: Dict[str, Any]) -> Dict[str, Any]:
    kind = part.get("type")
    if kind == "image":
        return {"file_data": {"file_uri": part.get("image"), "mime_type": "image/jpeg"}}
    if kind == "file":
        return {"file_data": {"file_uri": part.get("data"), "mime_type": part.get("mimeType") or "application/octet-stream"}}
    return {"text": part.get("text") or ""}


def to_gemini_contents(messages: Sequence[Dict[str, Any]]) -> Tuple[Optional[str], List[Dict[str, Any]]]:
    """Return ``(system_instruction, contents)``; assistant turns use role ``model``."""
    system_parts: List[str] = []
    contents: List[Dict[str, Any]] = []
    for m in messages:
        role = m.get("role")
        content = m.get("content", "")
        if role == "system":
            system_parts.append(content if isinstance(content, str) else " ".join(p.get("text") or "" for p in content))
            continue
        parts = [{"text": content}] if isinstance(content, str) else [_part_to_gemini(p) for p in content]
        contents.append({"role": "model" if role == "assistant" else "user", "parts": parts})
    return ("\n\n".join(system_parts) or None), contents


def _blocked_message(reason: str) -> str:
    if reason in ("SAFETY", "RECITATION"):
        return f"Gemini stopped generation: {reason}"
    return f"Gemini stopped generation: BLOCKED_REASON {reason}"


class GoogleHandle(BaseModelHandle):
    """Handle backed by ``google.genai.Client``."""

    def __init__(
        self,
        model: str,
        *,
        api_key: str,
        base_url: Optional[str] = None,
        client: Any = None,
    ) -> None:
        super().__init__("google", model)
        if client is None:
            from google import genai

            http_options = {"base_url": base_url} if base_url else None
            client = genai.Client(api_key=api_key, http_options=http_options)
        self._client = client

    def _prepare(self, messages: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        system, contents = to_gemini_contents(messages)
        return {"system": system, "contents": contents}

    def _config(self, conversation: Dict[str, Any], call: CallOptions) -> Dict[str, Any]:
        config: Dict[str, Any] = {
            "temperature": call.temperature,
            "automatic_function_calling": {"disable": True},
        }
        if conversation["system"]:
            config["system_instruction"] = conversation["system"]
        thinking = call.provider_options.get("thinkingConfig")
        if thinking:
            config["thinking_config"] = {
                "include_thoughts": bool(thinking.get("includeThoughts", True)),
                "thinking_budget": thinking.get("thinkingBudget"),
            }
        if call.tools:
            config["tools"] = [
                {
                    "function_declarations": [
                        {"name": t.name, "description": t.description, "parameters": t.parameters}
                        for t in call.tools
                    ]
                }
            ]
        return config

    def _blocked(self, reason: str) -> StreamErrorEvent:
        return StreamErrorEvent(
            ProviderError(
                code=ErrorCode.CONTENT_FILTER,
                message=_blocked_message(reason),
                provider=self.provider,
                model=self.model,
            )
        )

    async def _stream_step(
        self, conversation: Dict[str, Any], call: CallOptions, outcome: StepOutcome
    ) -> AsyncIterator[StreamEvent]:
        stream = await self._client.aio.models.generate_content_stream(
            model=self.model,
            contents=conversation["contents"],
            config=self._config(conversation, call),
        )
        calls: List[PendingToolCall] = []
        async for chunk in stream:
            meta = getattr(chunk, "usage_metadata", None)
            if meta is not None and (meta.prompt_token_count or meta.candidates_token_count):
                outcome.usage = TokenUsage(
                    prompt_tokens=meta.prompt_token_count,
                    completion_tokens=meta.candidates_token_count,
                    total_tokens=meta.total_token_count,
                )
            feedback = getattr(chunk, "prompt_feedback", None)
            block_reason = _enum_name(getattr(feedback, "block_reason", None))
            if block_reason:
                yield self._blocked(block_reason)
            for candidate in chunk.candidates or []:
                content = candidate.content
                for part in (content.parts if content is not None else None) or []:
                    if part.function_call is not None:
                        fc = part.function_call
                        calls.append(
                            PendingToolCall(
                                id=fc.id or f"call_{len(calls)}",
                                name=fc.name,
                                args=parse_tool_args(dict(fc.args or {})),
                            )
                        )
                    elif part.text:
                        if part.thought:
                            outcome.reasoning += part.text
                            yield ReasoningDelta(part.text)
                        else:
                            outcome.text += part.text
                            yield TextDelta(part.text)
                reason = _enum_name(candidate.finish_reason)
                if reason:
                    outcome.finish_reason = reason
                    if reason in _BLOCKING_FINISH_REASONS:
                        yield self._blocked(reason)
        outcome.tool_calls = calls

    def _append_tool_round(
        self,
        conversation: Dict[str, Any],
        outcome: StepOutcome,
        results: List[Tuple[PendingToolCall, Any]],
    ) -> None:
        model_parts: List[Dict[str, Any]] = []
        if outcome.text:
            model_parts.append({"text": outcome.text})
        model_parts.extend({"function_call": {"name": c.name, "args": c.args}} for c in outcome.tool_calls)
        conversation["contents"].append({"role": "model", "parts": model_parts})
        conversation["contents"].append(
            {
                "role": "user",
                "parts": [
                    {"function_response": {"name": c.name, "response": {"result": payload}}}
                    for c, payload in results
                ],
            }
        )


__all__ = ["GoogleHandle", "to_gemini_contents"]
