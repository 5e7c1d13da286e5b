"""Cancellation token, deadline timer and abort-aware awaiting."""
from __future__ import annotations

import asyncio

import pytest

from chat_orchestrator.base.cancellation import CancellationToken, CancelledError, DeadlineTimer
from chat_orchestrator.base.errors import GenerationTimeoutError, UserCancelledError
from chat_orchestrator.orchestration.aborts import next_event_or_abort, run_or_abort
from chat_orchestrator.orchestration.state import GenerationContext, GenerationState, InvalidTransition


def test_cancel_cascades_to_children_and_first_reason_wins():
    parent = CancellationToken()
    child = parent.child()

    parent.cancel("first")
    parent.cancel("second")

    assert child.cancelled  # nosec B101
    assert parent.reason == "first"  # nosec B101
    assert child.reason == "first"  # nosec B101


def test_child_linked_after_cancel_is_cancelled_immediately():
    parent = CancellationToken()
    parent.cancel("gone")

    assert parent.child().cancelled  # nosec B101


def test_on_cancel_callbacks_run_once():
    token = CancellationToken()
    calls = []
    token.on_cancel(lambda: calls.append("cb"))

    token.cancel()
    token.cancel()
    token.on_cancel(lambda: calls.append("late"))

    assert calls == ["cb", "late"]  # nosec B101


def test_raise_if_cancelled_prefers_attached_error():
    token = CancellationToken()
    token.raise_if_cancelled()

    token.cancel("stop", error=UserCancelledError("stop"))
    with pytest.raises(UserCancelledError):
        token.raise_if_cancelled()

    bare = CancellationToken()
    bare.cancel("plain")
    with pytest.raises(CancelledError, match="Stream aborted: plain"):
        bare.raise_if_cancelled()


@pytest.mark.asyncio
async def test_deadline_timer_aborts_token_with_factory_error():
    token = CancellationToken()
    async with DeadlineTimer(token, 0.01, lambda: GenerationTimeoutError(0.01)) as timer:
        await asyncio.wait_for(token.wait(), timeout=2)

    assert timer.expired  # nosec B101
    assert isinstance(token.error, GenerationTimeoutError)  # nosec B101
    assert token.reason == "Request timeout after 0.01 seconds"  # nosec B101


@pytest.mark.asyncio
async def test_deadline_timer_is_cleared_on_exit():
    token = CancellationToken()
    async with DeadlineTimer(token, 0.05, lambda: GenerationTimeoutError(0.05)) as timer:
        assert timer.active  # nosec B101

    assert not timer.active  # nosec B101
    await asyncio.sleep(0.1)
    assert not token.cancelled  # nosec B101


@pytest.mark.asyncio
async def test_run_or_abort_returns_result():
    async def work():
        return 42

    assert await run_or_abort(work(), CancellationToken()) == 42  # nosec B101


@pytest.mark.asyncio
async def test_run_or_abort_interrupts_pending_await():
    token = CancellationToken()
    finished = asyncio.Event()

    async def hang():
        try:
            await asyncio.Event().wait()
        finally:
            finished.set()

    asyncio.get_running_loop().call_later(0.01, lambda: token.cancel("stop", error=UserCancelledError("stop")))
    with pytest.raises(UserCancelledError):
        await run_or_abort(hang(), token)

    assert finished.is_set()  # nosec B101


@pytest.mark.asyncio
async def test_run_or_abort_with_cancelled_token_never_starts_work():
    token = CancellationToken()
    token.cancel("already")
    started = []

    async def work():
        started.append(True)

    with pytest.raises(CancelledError):
        await run_or_abort(work(), token)

    assert started == []  # nosec B101


@pytest.mark.asyncio
async def test_next_event_or_abort_reports_end_of_stream():
    async def events():
        yield "a"

    iterator = events().__aiter__()
    token = CancellationToken()

    assert await next_event_or_abort(iterator, token) == (True, "a")  # nosec B101
    assert await next_event_or_abort(iterator, token) == (False, None)  # nosec B101


def test_state_machine_rejects_illegal_transitions():
    ctx = GenerationContext(conversation_id="c", provider="openai", model="gpt-4o", temperature=1.0)
    ctx.transition(GenerationState.CREDIT_CHECKED)
    ctx.transition(GenerationState.MODEL_READY)
    ctx.transition(GenerationState.COMPLETED)

    assert ctx.history[0] is GenerationState.INIT  # nosec B101
    assert ctx.state.terminal  # nosec B101
    with pytest.raises(InvalidTransition):
        ctx.transition(GenerationState.ERRORED)


def test_streaming_cannot_be_skipped():
    ctx = GenerationContext(conversation_id="c", provider="openai", model="gpt-4o", temperature=1.0)
    ctx.transition(GenerationState.CREDIT_CHECKED)

    with pytest.raises(InvalidTransition):
        ctx.transition(GenerationState.STREAMING)
