"""Reasoning extraction over split and unterminated tags."""
from __future__ import annotations

from typing import List

import pytest

from chat_orchestrator.base.middleware import MiddlewareChain, ReasoningExtractionMiddleware
from chat_orchestrator.base.streaming import Finish, ReasoningDelta, ReasoningFinish, StreamEvent, TextDelta


async def _run(middleware, *events: StreamEvent) -> List[StreamEvent]:
    async def source():
        for event in events:
            yield event

    return [e async for e in middleware.wrap_stream(source())]


def _texts(events, kind) -> str:
    return "".join(e.text for e in events if isinstance(e, kind))


@pytest.mark.asyncio
async def test_tag_split_across_deltas():
    out = await _run(ReasoningExtractionMiddleware("think"), TextDelta("<thi"), TextDelta("nk>plan</think>Answer"))

    assert out == [ReasoningDelta("plan"), ReasoningFinish(), TextDelta("Answer")]  # nosec B101


@pytest.mark.asyncio
async def test_unterminated_reasoning_is_closed_at_end():
    out = await _run(ReasoningExtractionMiddleware("thinking"), TextDelta("<thinking>still going"))

    assert out == [ReasoningDelta("still going"), ReasoningFinish()]  # nosec B101


@pytest.mark.asyncio
async def test_possible_tag_prefix_is_released_when_it_is_not_a_tag():
    out = await _run(ReasoningExtractionMiddleware("thinking"), TextDelta("x <"), TextDelta("3"))

    assert _texts(out, TextDelta) == "x <3"  # nosec B101
    assert out[0] == TextDelta("x ")  # nosec B101


@pytest.mark.asyncio
async def test_finish_flushes_held_text_first():
    out = await _run(ReasoningExtractionMiddleware("think"), TextDelta("<thi"), Finish())

    assert out == [TextDelta("<thi"), Finish()]  # nosec B101


@pytest.mark.asyncio
async def test_non_text_events_pass_through():
    out = await _run(ReasoningExtractionMiddleware("think"), ReasoningDelta("native"), TextDelta("plain"))

    assert out == [ReasoningDelta("native"), TextDelta("plain")]  # nosec B101


def test_extract_joins_regions():
    mw = ReasoningExtractionMiddleware("think")

    assert mw.extract("<think>a</think>b<think>c</think>") == ("b", "a\nc")  # nosec B101
    assert mw.extract("no tags") == ("no tags", None)  # nosec B101


def test_transform_final_keeps_native_reasoning():
    chain = MiddlewareChain([ReasoningExtractionMiddleware("think")])

    assert chain.transform_final("<think>x</think>y", None) == ("y", "x")  # nosec B101
    assert chain.transform_final("<think>x</think>y", "native") == ("y", "native")  # nosec B101
    assert MiddlewareChain().transform_final("t", "r") == ("t", "r")  # nosec B101
