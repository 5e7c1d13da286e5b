"""Shared model-handle machinery.

``BaseModelHandle`` implements the provider-neutral parts of a handle: the
multi-step tool loop, usage aggregation, middleware application and the
two-phase :class:`~chat_orchestrator.base.streaming.ModelStream` surface.
SDK adapters subclass it and implement three hooks:

- ``_prepare(messages)``: convert neutral ``{role, content}`` dicts into the
  SDK's conversation shape.
- ``_stream_step(conversation, call, outcome)``: run one model call, yield
  text/reasoning/error events, and record the step's final text, requested
  tool calls and usage on ``outcome``.
- ``_append_tool_round(conversation, outcome, results)``: append the
  assistant tool-call turn and the tool results in the SDK's shape.

Tool-role messages in the incoming history are display records written by
the orchestrator; they are not replayed to providers.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

from ...base.cancellation import CancellationToken, CancelledError
from ...base.errors import (
    OrchestrationError,
    ProviderError,
    ResultResolutionError,
    classify_exception,
)
from ...base.interfaces import GenerateResult
from ...base.logging import get_logger
from ...base.middleware import MiddlewareChain
from ...base.streaming import (
    Finish,
    ReasoningDelta,
    ReasoningFinish,
    ReasoningText,
    StreamErrorEvent,
    StreamEvent,
    TokenUsage,
    ToolCall,
    ToolResult,
)
from ...base.tools import ToolRouter, ToolSpec


@dataclass
class PendingToolCall:
    """A tool invocation requested by the model in one step."""

    id: str
    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    raw_args: str = "{}"


@dataclass
class StepOutcome:
    """What one model call produced besides its streamed events."""

    text: str = ""
    reasoning: str = ""
    tool_calls: List[PendingToolCall] = field(default_factory=list)
    usage: Optional[TokenUsage] = None
    finish_reason: Optional[str] = None
    # Provider-native payload some SDKs need echoed back (e.g. thinking blocks).
    native: Any = None


@dataclass
class CallOptions:
    """Per-call parameters shared by every step of one generation."""

    temperature: float
    tools: Sequence[ToolSpec]
    provider_options: Dict[str, Any]
    token: CancellationToken


def parse_tool_args(raw: Any) -> Dict[str, Any]:
    """Decode tool arguments; malformed JSON is passed to the tool as ``{"input": raw}``."""
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return {"input": raw}
    return value if isinstance(value, dict) else {"input": value}


def _add_usage(total: Optional[TokenUsage], step: Optional[TokenUsage]) -> Optional[TokenUsage]:
    if step is None:
        return total
    return step if total is None else total + step


@dataclass
class _RunState:
    last_text: str = ""
    reasoning: str = ""
    finished: bool = False
    failed: Optional[BaseException] = None


class HandleStream:
    """Two-phase stream returned by :meth:`BaseModelHandle.stream`.

    Iterate it once for events; afterwards ``final_text`` and
    ``final_reasoning`` return the resolved values. Asking before the stream
    finished (or after it failed) raises :class:`ResultResolutionError`.
    """

    def __init__(self, source: AsyncIterator[StreamEvent], state: _RunState, middleware: MiddlewareChain) -> None:
        self._state = state
        self._middleware = middleware
        self._source = source
        self._events = middleware.wrap_stream(source) if middleware else source

    def __aiter__(self) -> AsyncIterator[StreamEvent]:
        return self._events

    def _resolved(self) -> Tuple[str, Optional[str]]:
        if self._state.failed is not None:
            raise ResultResolutionError(f"Stream failed before completion: {self._state.failed}")
        if not self._state.finished:
            raise ResultResolutionError("Stream has not finished")
        return self._middleware.transform_final(self._state.last_text, self._state.reasoning or None)

    async def final_text(self) -> str:
        text, _ = self._resolved()
        return text

    async def final_reasoning(self) -> str:
        _, reasoning = self._resolved()
        return reasoning or ""

    async def aclose(self) -> None:
        aclose = getattr(self._events, "aclose", None)
        if aclose is not None:
            await aclose()


class BaseModelHandle:
    """Provider-neutral handle with a tool loop; subclasses wrap one SDK.

    Parameters:
        provider: Provider identifier.
        model: Model identifier.
        middleware: Optional stream middleware (reasoning extraction).
    """

    def __init__(self, provider: str, model: str, *, middleware: Optional[MiddlewareChain] = None) -> None:
        self.provider = provider
        self.model = model
        self.middleware = middleware or MiddlewareChain()
        self._logger = get_logger(f"providers.{provider}")

    # ---- SDK hooks ---------------------------------------------------------
    def _prepare(self, messages: Sequence[Dict[str, Any]]) -> Any:  # pragma: no cover - abstract
        raise NotImplementedError

    def _stream_step(
        self, conversation: Any, call: CallOptions, outcome: StepOutcome
    ) -> AsyncIterator[StreamEvent]:  # pragma: no cover - abstract
        raise NotImplementedError

    def _append_tool_round(
        self, conversation: Any, outcome: StepOutcome, results: List[Tuple[PendingToolCall, Any]]
    ) -> None:  # pragma: no cover - abstract
        raise NotImplementedError

    # ---- Tool loop ---------------------------------------------------------
    async def _run(
        self,
        messages: Sequence[Dict[str, Any]],
        call: CallOptions,
        router: ToolRouter,
        max_steps: int,
        state: _RunState,
    ) -> AsyncIterator[StreamEvent]:
        conversation = self._prepare([m for m in messages if m.get("role") != "tool"])
        usage: Optional[TokenUsage] = None
        finish_reason: Optional[str] = None
        try:
            for _ in range(max(1, max_steps)):
                call.token.raise_if_cancelled()
                outcome = StepOutcome()
                try:
                    async for event in self._stream_step(conversation, call, outcome):
                        call.token.raise_if_cancelled()
                        yield event
                except (OrchestrationError, ProviderError, CancelledError):
                    raise
                except Exception as e:
                    raise self._wrap_sdk_error(e) from e
                state.last_text = outcome.text
                state.reasoning += outcome.reasoning
                usage = _add_usage(usage, outcome.usage)
                finish_reason = outcome.finish_reason
                if not outcome.tool_calls or not call.tools:
                    break
                results: List[Tuple[PendingToolCall, Any]] = []
                for pending in outcome.tool_calls:
                    yield ToolCall(tool_call_id=pending.id, tool_name=pending.name, args=pending.args)
                    result = await router.invoke(pending.name, pending.args)
                    payload = result.as_payload()
                    yield ToolResult(tool_call_id=pending.id, tool_name=pending.name, result=payload)
                    results.append((pending, payload))
                self._append_tool_round(conversation, outcome, results)
        except BaseException as e:
            state.failed = e
            raise
        state.finished = True
        yield Finish(usage=usage, finish_reason=finish_reason)

    def _wrap_sdk_error(self, exc: Exception) -> ProviderError:
        """Normalize an SDK exception, keeping its message text for classification."""
        return ProviderError(
            code=classify_exception(exc),
            message=str(exc) or exc.__class__.__name__,
            provider=self.provider,
            model=self.model,
            raw=exc,
        )

    def _router_for(self, tools: Sequence[ToolSpec], router: Optional[ToolRouter]) -> ToolRouter:
        if router is not None:
            return router
        built = ToolRouter()
        for spec in tools:
            built.register(spec)
        return built

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
    ) -> HandleStream:
        """Start a streaming generation; see :class:`HandleStream`."""
        call = CallOptions(
            temperature=temperature,
            tools=list(tools),
            provider_options=dict(provider_options or {}),
            token=cancel_token or CancellationToken(),
        )
        state = _RunState()
        source = self._run(messages, call, self._router_for(tools, tool_router), max_steps, state)
        return HandleStream(source, state, self.middleware)

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
        """Run the same loop to completion and aggregate the result.

        An in-band error event fails the call with that error's message.
        """
        stream = self.stream(
            messages,
            temperature=temperature,
            tools=tools,
            provider_options=provider_options,
            max_steps=max_steps,
            cancel_token=cancel_token,
            tool_router=tool_router,
        )
        result = GenerateResult()
        reasoning = ""
        in_band: Optional[Any] = None
        async for event in stream:
            if isinstance(event, (ReasoningDelta, ReasoningText)):
                reasoning += event.text
            elif isinstance(event, ReasoningFinish) and event.text:
                reasoning = event.text
            elif isinstance(event, ToolCall):
                result.tool_calls.append({"id": event.tool_call_id, "name": event.tool_name, "args": event.args})
            elif isinstance(event, ToolResult):
                result.tool_results.append(event.result)
            elif isinstance(event, StreamErrorEvent) and in_band is None:
                in_band = event.error
            elif isinstance(event, Finish):
                result.usage = event.usage
        if in_band is not None:
            raise in_band if isinstance(in_band, BaseException) else RuntimeError(str(in_band))
        result.text = await stream.final_text()
        result.reasoning = (await stream.final_reasoning()) or reasoning or None
        return result


__all__ = [
    "BaseModelHandle",
    "CallOptions",
    "HandleStream",
    "PendingToolCall",
    "StepOutcome",
    "parse_tool_args",
]
