"""Tool router invocation envelopes and metering."""
from __future__ import annotations

import json

import httpx
import pytest

from chat_orchestrator.base.errors import UsageError
from chat_orchestrator.base.tools import (
    CALCULATOR_TOOL_NAME,
    DATETIME_TOOL_NAME,
    THINKING_TOOL_NAME,
    WEB_SEARCH_TOOL_NAME,
    ToolRouter,
    ToolSpec,
    calculate,
    default_tool_router,
    make_web_search_tool,
    structured_analysis,
)


def _router(*specs: ToolSpec) -> ToolRouter:
    router = ToolRouter()
    for spec in specs:
        router.register(spec)
    return router


@pytest.mark.asyncio
async def test_sync_and_async_handlers_are_invoked():
    async def shout(params):
        return params["text"].upper()

    router = _router(
        ToolSpec(name="echo", description="Echo", handler=lambda p: {"echo": p}),
        ToolSpec(name="shout", description="Shout", handler=shout),
    )

    echo = await router.invoke("echo", {"a": 1})
    loud = await router.invoke("shout", {"text": "hi"})

    assert echo.ok and echo.content == {"echo": {"a": 1}}  # nosec B101
    assert loud.as_payload() == "HI"  # nosec B101


@pytest.mark.asyncio
async def test_unknown_tool_is_not_found():
    result = await ToolRouter().invoke("missing")

    assert not result.ok  # nosec B101
    assert result.code == "NOT_FOUND"  # nosec B101
    assert result.as_payload() == {"error": "tool 'missing' not registered", "code": "NOT_FOUND"}  # nosec B101


@pytest.mark.asyncio
async def test_handler_exception_becomes_failed_result():
    def broken(params):
        raise ValueError("bad input")

    result = await _router(ToolSpec(name="broken", description="", handler=broken)).invoke("broken", {})

    assert result.code == "EXCEPTION"  # nosec B101
    assert result.error == "bad input"  # nosec B101


@pytest.mark.asyncio
async def test_meter_runs_only_for_metered_tools():
    charged = []

    async def meter(name):
        charged.append(name)

    base = _router(
        ToolSpec(name="search", description="", handler=lambda p: "hits", metered=True),
        ToolSpec(name="free", description="", handler=lambda p: "ok"),
    )
    router = base.with_meter(meter)

    await router.invoke("search", {})
    await router.invoke("free", {})
    await base.invoke("search", {})

    assert charged == ["search"]  # nosec B101


@pytest.mark.asyncio
async def test_meter_rejection_skips_the_handler():
    ran = []

    async def meter(name):
        raise UsageError("Monthly search limit reached (10).")

    router = _router(
        ToolSpec(name="search", description="", handler=lambda p: ran.append(p), metered=True)
    ).with_meter(meter)

    result = await router.invoke("search", {"q": "x"})

    assert not result.ok  # nosec B101
    assert result.code == "insufficient_credits"  # nosec B101
    assert ran == []  # nosec B101


def test_specs_keep_request_order_and_skip_unknown():
    router = default_tool_router()

    names = [s.name for s in router.specs([DATETIME_TOOL_NAME, "nope", THINKING_TOOL_NAME, DATETIME_TOOL_NAME])]

    assert names == [DATETIME_TOOL_NAME, THINKING_TOOL_NAME]  # nosec B101


def test_structured_analysis_numbers_steps():
    out = structured_analysis({"problem": "sum", "steps": ["add", "check"]})

    assert out.startswith("Structured analysis of: sum\n\nStep 1: add\nStep 2: check\n")  # nosec B101
    assert out.endswith("Ready to provide a comprehensive response based on this reasoning.")  # nosec B101


@pytest.mark.asyncio
async def test_datetime_tool_reports_utc():
    result = await default_tool_router().invoke(DATETIME_TOOL_NAME, {})

    assert result.content["timezone"] == "UTC"  # nosec B101


@pytest.mark.parametrize(
    "expression, expected",
    [
        ("2 + 3 * 4", "Result: 14"),
        ("(1.5 + 2.5) / 4", "Result: 1"),
        ("-7 / 2", "Result: -3.5"),
        ("1 / 0", "Error: Division by zero"),
        ("2 +", "Error: Invalid mathematical expression"),
        ("2 ** 8", "Error: Invalid mathematical expression"),
        ("__import__('os')", "Error: Invalid characters in expression. Only numbers, +, -, *, /, (, ), and . are allowed."),
        ("1+" * 60 + "1", "Error: Expression too long"),
    ],
)
def test_calculator(expression, expected):
    assert calculate({"expression": expression}) == expected  # nosec B101


def test_web_search_is_registered_only_with_a_key(monkeypatch):
    assert WEB_SEARCH_TOOL_NAME not in default_tool_router().names()  # nosec B101
    assert CALCULATOR_TOOL_NAME in default_tool_router().names()  # nosec B101

    monkeypatch.setenv("TAVILY_API_KEY", "your-placeholder-key")
    assert WEB_SEARCH_TOOL_NAME not in default_tool_router().names()  # nosec B101

    monkeypatch.setenv("TAVILY_API_KEY", "tvly-real")
    spec = default_tool_router().get(WEB_SEARCH_TOOL_NAME)
    assert spec is not None and spec.metered  # nosec B101


@pytest.mark.asyncio
async def test_web_search_posts_query_and_renders_hits():
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "answer": "Sunny",
                "results": [{"title": "Forecast", "content": "Clear skies", "url": "https://w.test"}],
            },
        )

    charged = []

    async def meter(name):
        charged.append(name)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        router = _router(make_web_search_tool("tvly-real", client)).with_meter(meter)
        result = await router.invoke(WEB_SEARCH_TOOL_NAME, {"query": "weather"})

    assert result.ok  # nosec B101
    assert result.content == (  # nosec B101
        'Search results for "weather":\n\nForecast: Clear skies (https://w.test)\n\nSummary: Sunny'
    )
    assert sent[0]["query"] == "weather" and sent[0]["api_key"] == "tvly-real"  # nosec B101
    assert charged == [WEB_SEARCH_TOOL_NAME]  # nosec B101


@pytest.mark.asyncio
async def test_web_search_http_error_is_a_failed_result():
    transport = httpx.MockTransport(lambda request: httpx.Response(500))

    async with httpx.AsyncClient(transport=transport) as client:
        result = await _router(make_web_search_tool("tvly-real", client)).invoke(WEB_SEARCH_TOOL_NAME, {"query": "x"})

    assert not result.ok and result.code == "EXCEPTION"  # nosec B101
