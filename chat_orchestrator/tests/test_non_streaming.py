"""Tests for the non-streaming orchestrator."""
from __future__ import annotations

import asyncio
import json

import pytest

from chat_orchestrator.base.errors import CreditExhaustedError
from chat_orchestrator.base.interfaces import GenerateResult
from chat_orchestrator.base.streaming import StreamErrorEvent, TextDelta, TokenUsage
from chat_orchestrator.config.defaults import EMPTY_RESPONSE_FALLBACK
from chat_orchestrator.orchestration.non_streaming import tool_call_records
from chat_orchestrator.tests.fakes import RawHandle, RawStream, ScriptedHandle, Step, make_request, make_usage_record


def _raw(result: GenerateResult) -> RawHandle:
    return RawHandle("openai", "gpt-4o", RawStream([]), result=result)


@pytest.mark.asyncio
async def test_reported_usage_is_recorded_and_charged(harness):
    harness.use(
        ScriptedHandle(
            "openai",
            "gpt-4o",
            [Step(events=[TextDelta("Hi")], usage=TokenUsage(prompt_tokens=10, completion_tokens=5, total_tokens=15))],
        )
    )

    outcome = await harness.non_streaming().generate(make_request())

    assert outcome.ok  # nosec B101
    assert outcome.content == "Hi"  # nosec B101
    (message,) = await harness.messages()
    assert message.id == outcome.message_id  # nosec B101
    metrics = message.generation_metrics
    assert (metrics.tokens_used, metrics.prompt_tokens, metrics.completion_tokens) == (15, 10, 5)  # nosec B101
    record = await harness.usage.get("default")
    assert record.credits_used == 1  # nosec B101
    assert harness.conversations.generation_state["conv-1"] == (False, None)  # nosec B101


@pytest.mark.asyncio
async def test_usage_is_estimated_when_not_reported(harness):
    harness.use(_raw(GenerateResult(text="Hi")))

    outcome = await harness.non_streaming().generate(make_request("Hello there"))

    metrics = outcome.generation_metrics
    assert metrics.prompt_tokens == 3  # nosec B101
    assert metrics.completion_tokens == 1  # nosec B101
    assert metrics.tokens_used == 1  # nosec B101


@pytest.mark.asyncio
async def test_reasoning_only_result_is_promoted(harness):
    harness.use(_raw(GenerateResult(text="  ", reasoning="thought")))

    outcome = await harness.non_streaming().generate(make_request())

    assert outcome.content == "thought"  # nosec B101
    assert outcome.thinking is None  # nosec B101


@pytest.mark.asyncio
async def test_empty_result_gets_fallback_text(harness):
    harness.use(_raw(GenerateResult()))

    outcome = await harness.non_streaming().generate(make_request())

    assert outcome.content == EMPTY_RESPONSE_FALLBACK  # nosec B101


@pytest.mark.asyncio
async def test_tool_calls_are_paired_with_results(harness):
    result = GenerateResult(
        text="Done",
        tool_calls=[{"id": "c1", "name": "lookup", "args": {"q": 1}}, {"name": "other", "args": {}}],
        tool_results=[{"a": 1}],
    )
    harness.use(_raw(result))

    outcome = await harness.non_streaming().generate(make_request())

    first, second = outcome.tool_calls
    assert first.id == "c1"  # nosec B101
    assert json.loads(first.result) == {"a": 1}  # nosec B101
    assert second.id.startswith("tool_")  # nosec B101
    assert second.result is None  # nosec B101
    (message,) = await harness.messages()
    assert [c.name for c in message.tool_calls] == ["lookup", "other"]  # nosec B101


def test_tool_call_records_default_arguments():
    (record,) = tool_call_records(GenerateResult(tool_calls=[{"id": "x", "name": "n"}]))

    assert record.arguments == "{}"  # nosec B101
    assert record.result is None  # nosec B101


def test_tool_call_records_keep_falsy_results():
    calls = [{"id": str(i), "name": "n"} for i in range(3)]

    records = tool_call_records(GenerateResult(tool_calls=calls, tool_results=["", 0, {}]))

    assert [r.result for r in records] == ['""', "0", "{}"]  # nosec B101


@pytest.mark.asyncio
async def test_in_band_error_creates_error_message(harness):
    harness.use(
        ScriptedHandle("openai", "gpt-4o", [Step(events=[StreamErrorEvent(RuntimeError("upstream exploded"))])])
    )

    outcome = await harness.non_streaming().generate(make_request())

    assert not outcome.ok  # nosec B101
    assert outcome.error.startswith("Error from openai: upstream exploded")  # nosec B101
    (message,) = await harness.messages()
    assert message.is_error  # nosec B101
    assert message.id == outcome.message_id  # nosec B101
    assert await harness.usage.get("default") is None  # nosec B101


@pytest.mark.asyncio
async def test_deadline_aborts_hung_call(harness, monkeypatch):
    monkeypatch.setenv("ORCHESTRATOR_TIMEOUT_SECONDS", "0.05")
    harness.use(ScriptedHandle("openai", "gpt-4o", [Step(hang=True)]))

    outcome = await asyncio.wait_for(harness.non_streaming().generate(make_request()), timeout=5)

    assert "timed out" in outcome.error  # nosec B101
    (message,) = await harness.messages()
    assert message.is_error  # nosec B101


@pytest.mark.asyncio
async def test_credit_preflight_raises(harness):
    await harness.usage.compare_and_set("default", None, make_usage_record(credits_used=100))
    harness.use(_raw(GenerateResult(text="never")))

    with pytest.raises(CreditExhaustedError):
        await harness.non_streaming().generate(make_request())

    assert await harness.messages() == []  # nosec B101
