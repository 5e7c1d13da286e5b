"""End-to-end tests for the streaming orchestrator.

Each scenario wires a scripted model handle into the in-memory collaborators
and checks what a concurrent reader of the conversation would see: the
assistant message, its flags and metrics, the generation marker and the
user's usage record.
"""
from __future__ import annotations

import asyncio
import json

import pytest

from chat_orchestrator.base.errors import (
    ConfigurationError,
    CreditExhaustedError,
    ResultResolutionError,
    SpendingLimitError,
)
from chat_orchestrator.base.models import UserPreferences
from chat_orchestrator.base.streaming import (
    Finish,
    ReasoningDelta,
    StreamErrorEvent,
    TextDelta,
    TokenUsage,
)
from chat_orchestrator.base.tools import ToolSpec
from chat_orchestrator.config.defaults import EMPTY_RESPONSE_FALLBACK, STOPPED_BY_USER_TEXT
from chat_orchestrator.orchestration import request_cancellation
from chat_orchestrator.providers.handles.base import PendingToolCall
from chat_orchestrator.tests.fakes import (
    FailingUpdateStore,
    FlagOnStartStore,
    RawHandle,
    RawStream,
    RecordingStore,
    ScriptedHandle,
    Step,
    make_request,
    make_usage_record,
)


def _hello_handle() -> ScriptedHandle:
    return ScriptedHandle(
        "openai",
        "gpt-4o",
        [Step(events=[TextDelta("Hel"), TextDelta("lo")], usage=TokenUsage(total_tokens=12))],
    )


# ---------------------------------------------------------------------------
# Completion
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_deltas_accumulate_into_final_message(harness):
    harness.use(_hello_handle())

    outcome = await harness.streaming().generate(make_request())

    assert outcome.ok and not outcome.cancelled  # nosec B101
    assert outcome.content == "Hello"  # nosec B101
    assert outcome.generation_metrics.tokens_used == 12  # nosec B101
    (message,) = await harness.messages()
    assert message.role == "assistant"  # nosec B101
    assert message.content == "Hello"  # nosec B101
    assert message.id == outcome.message_id  # nosec B101
    assert message.generation_metrics.provider == "openai"  # nosec B101
    assert not harness.conversations.is_streaming(message.id)  # nosec B101


@pytest.mark.asyncio
async def test_system_prompt_is_sent_first(harness):
    handle = _hello_handle()
    harness.use(handle)

    await harness.streaming().generate(make_request())

    assert handle.prepared[0]["role"] == "system"  # nosec B101
    assert handle.prepared[1] == {"role": "user", "content": "Hello there"}  # nosec B101
    assert handle.options.temperature == 1.0  # nosec B101


@pytest.mark.asyncio
async def test_persisted_content_grows_monotonically(make_harness):
    store = RecordingStore()
    h = make_harness(conversations=store)
    h.use(ScriptedHandle("openai", "gpt-4o", [Step(events=[TextDelta("a"), TextDelta("b"), TextDelta("c")])]))

    await h.streaming().generate(make_request())

    assert store.content_updates == ["a", "ab", "abc", "abc"]  # nosec B101


@pytest.mark.asyncio
async def test_listener_sees_every_event_in_order(harness):
    harness.use(_hello_handle())
    seen = []

    async def listener(event):
        seen.append(event)

    await harness.streaming().generate(make_request(), listener=listener)

    assert [type(e) for e in seen] == [TextDelta, TextDelta, Finish]  # nosec B101


@pytest.mark.asyncio
async def test_empty_response_gets_fallback_text(harness):
    harness.use(ScriptedHandle("openai", "gpt-4o", [Step(events=[])]))

    outcome = await harness.streaming().generate(make_request())

    assert outcome.content == EMPTY_RESPONSE_FALLBACK  # nosec B101
    (message,) = await harness.messages()
    assert message.content == EMPTY_RESPONSE_FALLBACK  # nosec B101
    assert not message.is_error  # nosec B101


@pytest.mark.asyncio
async def test_reasoning_only_response_is_promoted_to_content(harness):
    harness.use(
        ScriptedHandle(
            "openai",
            "gpt-4o",
            [Step(events=[ReasoningDelta("Only thoughts")], text="", reasoning="Only thoughts")],
        )
    )

    outcome = await harness.streaming().generate(make_request())

    assert outcome.content == "Only thoughts"  # nosec B101
    assert outcome.thinking is None  # nosec B101
    (message,) = await harness.messages()
    assert message.thinking is None  # nosec B101


@pytest.mark.asyncio
async def test_unresolvable_final_text_falls_back_to_accumulated(harness, log_events):
    stream = RawStream(
        [TextDelta("  Hi "), Finish()],
        resolve_error=ResultResolutionError("Stream has not finished"),
    )
    harness.use(RawHandle("openai", "gpt-4o", stream))

    outcome = await harness.streaming().generate(make_request())

    assert outcome.content == "Hi"  # nosec B101
    assert stream.closed  # nosec B101
    assert log_events.events("generation.final_fallback")  # nosec B101


@pytest.mark.asyncio
async def test_non_native_provider_reasoning_tags_are_extracted(harness, monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "gsk-built-in")
    handle = ScriptedHandle(
        "groq",
        "qwen-qwq-32b",
        [Step(events=[TextDelta("<thi"), TextDelta("nk>plan</think>Answer")])],
    )
    harness.use(handle, provider="groq")

    outcome = await harness.streaming().generate(make_request(provider="groq", model="qwen-qwq-32b"))

    assert outcome.content == "Answer"  # nosec B101
    assert outcome.thinking == "plan"  # nosec B101


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_flag_raised_before_first_event_wins(make_harness):
    h = make_harness(conversations=FlagOnStartStore())
    handle = _hello_handle()
    h.use(handle)

    outcome = await h.streaming().generate(make_request())

    assert outcome.cancelled  # nosec B101
    assert outcome.content == STOPPED_BY_USER_TEXT  # nosec B101
    assert not handle.started  # nosec B101
    (message,) = await h.messages()
    assert message.content == STOPPED_BY_USER_TEXT  # nosec B101
    assert message.generation_metrics is not None  # nosec B101
    assert not await h.conversations.get_cancellation_flag("conv-1")  # nosec B101


@pytest.mark.asyncio
async def test_flag_raised_mid_stream_keeps_partial_content(harness):
    harness.use(
        ScriptedHandle("openai", "gpt-4o", [Step(events=[TextDelta("Hel"), TextDelta("lo"), TextDelta("!")])])
    )

    async def stop_after_first(event):
        await harness.conversations.set_cancellation_flag("conv-1")

    outcome = await harness.streaming().generate(make_request(), listener=stop_after_first)

    assert outcome.cancelled  # nosec B101
    assert outcome.content == "Hel"  # nosec B101
    (message,) = await harness.messages()
    assert message.content == "Hel"  # nosec B101
    assert not message.is_error  # nosec B101


@pytest.mark.asyncio
async def test_stale_flag_from_previous_turn_is_cleared(harness):
    harness.use(_hello_handle())
    await harness.conversations.set_cancellation_flag("conv-1")

    outcome = await harness.streaming().generate(make_request())

    assert not outcome.cancelled  # nosec B101
    assert outcome.content == "Hello"  # nosec B101


@pytest.mark.asyncio
async def test_in_process_abort_interrupts_hung_provider(harness):
    harness.use(ScriptedHandle("openai", "gpt-4o", [Step(events=[TextDelta("partial")], hang=True)]))
    orchestrator = harness.streaming()
    first_event = asyncio.Event()

    async def listener(event):
        first_event.set()

    task = asyncio.create_task(orchestrator.generate(make_request(), listener=listener))
    await asyncio.wait_for(first_event.wait(), timeout=5)
    aborted = await request_cancellation(harness.conversations, "conv-1", orchestrator)
    outcome = await asyncio.wait_for(task, timeout=5)

    assert aborted  # nosec B101
    assert outcome.cancelled  # nosec B101
    assert outcome.content == "partial"  # nosec B101
    assert harness.conversations.generation_state["conv-1"] == (False, None)  # nosec B101


@pytest.mark.asyncio
async def test_abort_without_running_generation_reports_false(harness):
    orchestrator = harness.streaming()

    assert not orchestrator.abort_in_process("conv-1")  # nosec B101
    assert not await request_cancellation(harness.conversations, "conv-1", orchestrator)  # nosec B101
    assert await harness.conversations.get_cancellation_flag("conv-1")  # nosec B101


@pytest.mark.asyncio
async def test_deadline_turns_hung_stream_into_timeout_error(harness, monkeypatch):
    monkeypatch.setenv("ORCHESTRATOR_TIMEOUT_SECONDS", "0.05")
    harness.use(ScriptedHandle("openai", "gpt-4o", [Step(events=[TextDelta("slow")], hang=True)]))

    outcome = await asyncio.wait_for(harness.streaming().generate(make_request()), timeout=5)

    assert not outcome.ok  # nosec B101
    assert "timed out" in outcome.error  # nosec B101
    (message,) = await harness.messages()
    assert message.is_error  # nosec B101
    assert message.content == outcome.error  # nosec B101
    assert harness.conversations.generation_state["conv-1"] == (False, None)  # nosec B101


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_in_band_error_event_fails_the_turn(harness, log_events):
    harness.use(
        ScriptedHandle(
            "openai",
            "gpt-4o",
            [Step(events=[TextDelta("Partial"), StreamErrorEvent("upstream exploded"), TextDelta(" more")])],
        )
    )

    outcome = await harness.streaming().generate(make_request())

    assert not outcome.ok  # nosec B101
    assert outcome.error.startswith("Error from openai: upstream exploded")  # nosec B101
    (message,) = await harness.messages()
    assert message.id == outcome.message_id  # nosec B101
    assert message.is_error  # nosec B101
    assert message.content == outcome.error  # nosec B101
    assert log_events.events("generation.stream_error")  # nosec B101


@pytest.mark.asyncio
async def test_provider_rate_limit_is_explained_for_built_in_key(harness):
    harness.use(ScriptedHandle("openai", "gpt-4o", [Step(raise_error=RuntimeError("429 Too Many Requests"))]))

    outcome = await harness.streaming().generate(make_request())

    assert outcome.error == (  # nosec B101
        "Rate limit exceeded for openai. The built-in API key has hit rate limits. "
        "Try adding your own API key in settings for unlimited usage."
    )


@pytest.mark.asyncio
async def test_error_is_written_to_new_message_when_placeholder_update_fails(make_harness):
    h = make_harness(conversations=FailingUpdateStore())
    h.use(ScriptedHandle("openai", "gpt-4o", [Step(raise_error=RuntimeError("429 Too Many Requests"))]))

    outcome = await h.streaming().generate(make_request())

    placeholder, error_message = await h.messages()
    assert not placeholder.is_error  # nosec B101
    assert error_message.is_error  # nosec B101
    assert outcome.message_id == error_message.id  # nosec B101


@pytest.mark.asyncio
async def test_construction_failure_is_recorded_without_placeholder(harness):
    def broken(model, api_key, base_url):
        raise RuntimeError("boom")

    harness.registry.register_provider("openai", broken)

    outcome = await harness.streaming().generate(make_request())

    assert not outcome.ok  # nosec B101
    assert "Failed to create model openai/gpt-4o: boom" in outcome.error  # nosec B101
    (message,) = await harness.messages()
    assert message.is_error  # nosec B101


@pytest.mark.asyncio
async def test_missing_key_raises_configuration_error(harness, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY")
    handle = _hello_handle()
    harness.use(handle)

    with pytest.raises(ConfigurationError, match="No API key available for openai"):
        await harness.streaming().generate(make_request())

    assert await harness.messages() == []  # nosec B101
    assert not handle.started  # nosec B101


@pytest.mark.asyncio
async def test_unknown_provider_raises_configuration_error(harness):
    with pytest.raises(ConfigurationError, match="Unsupported provider: nope"):
        await harness.streaming().generate(make_request(provider="nope", model="any"))


# ---------------------------------------------------------------------------
# Credits
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_exhausted_credits_fail_before_any_write(harness, log_events):
    await harness.usage.compare_and_set("default", None, make_usage_record(credits_used=100))
    handle = _hello_handle()
    harness.use(handle)

    with pytest.raises(CreditExhaustedError):
        await harness.streaming().generate(make_request())

    assert await harness.messages() == []  # nosec B101
    assert not handle.started  # nosec B101
    (event,) = log_events.events("generation.error")
    assert event["phase"] == "preflight"  # nosec B101
    assert event["error_code"] == "insufficient_credits"  # nosec B101


@pytest.mark.asyncio
async def test_spending_ceiling_fails_before_any_write(harness):
    await harness.usage.compare_and_set("default", None, make_usage_record(dollars_spent=0.99))
    harness.use(_hello_handle())

    with pytest.raises(SpendingLimitError):
        await harness.streaming().generate(make_request())

    assert await harness.messages() == []  # nosec B101


@pytest.mark.asyncio
async def test_completed_generation_deducts_credits(harness):
    harness.use(_hello_handle())

    await harness.streaming().generate(make_request())

    record = await harness.usage.get("default")
    assert record.credits_used == 1  # nosec B101
    assert record.dollars_spent > 0  # nosec B101


@pytest.mark.asyncio
async def test_own_key_bypasses_credit_accounting(harness):
    exhausted = make_usage_record(credits_used=100)
    await harness.usage.compare_and_set("default", None, exhausted)
    harness.credentials.set_key("default", "openai", "sk-user")
    harness.use(_hello_handle())

    outcome = await harness.streaming().generate(make_request())

    assert outcome.using_user_key  # nosec B101
    assert outcome.content == "Hello"  # nosec B101
    assert await harness.usage.get("default") == exhausted  # nosec B101


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


def _tool_turn(tool_name: str) -> ScriptedHandle:
    return ScriptedHandle(
        "openai",
        "gpt-4o",
        [
            Step(tool_calls=[PendingToolCall(id="call-1", name=tool_name, args={"q": "x"})]),
            Step(events=[TextDelta("Done")]),
        ],
    )


@pytest.mark.asyncio
async def test_tool_results_are_recorded_and_shown(harness):
    harness.deps.tool_router.register(ToolSpec(name="lookup", description="Look up", handler=lambda p: {"answer": 42}))
    harness.preferences.preferences["default"] = UserPreferences(show_tool_outputs=True)
    handle = _tool_turn("lookup")
    harness.use(handle)

    outcome = await harness.streaming().generate(make_request(enabled_tools=["lookup"]))

    assert outcome.content == "Done"  # nosec B101
    (call,) = outcome.tool_calls
    assert call.id == "call-1" and call.name == "lookup"  # nosec B101
    assert json.loads(call.arguments) == {"q": "x"}  # nosec B101
    assert json.loads(call.result) == {"answer": 42}  # nosec B101
    assert handle.tool_rounds == [[("lookup", {"answer": 42})]]  # nosec B101

    assistant, tool_message = await harness.messages()
    assert assistant.tool_calls[0].result == call.result  # nosec B101
    assert tool_message.role == "tool"  # nosec B101
    assert tool_message.tool_call_id == "call-1"  # nosec B101
    assert tool_message.content == json.dumps({"answer": 42}, indent=2)  # nosec B101


@pytest.mark.asyncio
async def test_tool_outputs_hidden_by_default(harness):
    harness.deps.tool_router.register(ToolSpec(name="lookup", description="Look up", handler=lambda p: "found"))
    harness.use(_tool_turn("lookup"))

    await harness.streaming().generate(make_request(enabled_tools=["lookup"]))

    assert [m.role for m in await harness.messages()] == ["assistant"]  # nosec B101


@pytest.mark.asyncio
async def test_thinking_tool_output_goes_to_reasoning(harness):
    harness.use(_tool_turn("thinking"))

    outcome = await harness.streaming().generate(make_request(enabled_tools=["thinking"]))

    assert outcome.content == "Done"  # nosec B101
    assert "Structured analysis of:" in outcome.thinking  # nosec B101
    assert not outcome.tool_calls  # nosec B101
    (message,) = await harness.messages()
    assert not message.tool_calls  # nosec B101
    assert "Structured analysis of:" in message.thinking  # nosec B101


@pytest.mark.asyncio
async def test_metered_tool_counts_searches_for_built_in_key(harness):
    harness.deps.tool_router.register(
        ToolSpec(name="web_search", description="Search", handler=lambda p: "results", metered=True)
    )
    harness.use(_tool_turn("web_search"))

    await harness.streaming().generate(make_request(enabled_tools=["web_search"]))

    record = await harness.usage.get("default")
    assert record.searches_used == 1  # nosec B101


@pytest.mark.asyncio
async def test_exhausted_search_quota_is_reported_to_the_model(harness):
    await harness.usage.compare_and_set("default", None, make_usage_record(searches_used=10))
    harness.deps.tool_router.register(
        ToolSpec(name="web_search", description="Search", handler=lambda p: "results", metered=True)
    )
    handle = _tool_turn("web_search")
    harness.use(handle)

    outcome = await harness.streaming().generate(make_request(enabled_tools=["web_search"]))

    assert outcome.content == "Done"  # nosec B101
    ((name, payload),) = handle.tool_rounds[0]
    assert payload["code"] == "quota"  # nosec B101


# ---------------------------------------------------------------------------
# Cleanup and logging
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_generation_marker_is_released(harness):
    harness.use(_hello_handle())

    await harness.streaming().generate(make_request())

    assert harness.conversations.generation_state["conv-1"] == (False, None)  # nosec B101
    assert not await harness.conversations.get_cancellation_flag("conv-1")  # nosec B101


@pytest.mark.asyncio
async def test_lifecycle_is_logged(harness, log_events):
    harness.use(_hello_handle())

    await harness.streaming().generate(make_request())

    states = [e["state"] for e in log_events.events("generation.state")]
    assert states == ["credit_checked", "model_ready", "message_placeholder_created", "streaming"]  # nosec B101
    (done,) = log_events.events("generation.complete")
    assert done["structured"] is True  # nosec B101
    assert done["events"] == 3  # nosec B101
    assert done["tokens"]["tokensUsed"] == 12  # nosec B101
    assert done["conversation_id"] == "conv-1"  # nosec B101
