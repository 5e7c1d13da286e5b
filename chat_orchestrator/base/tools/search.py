"""Metered web search tool.

``web_search`` posts the query to the configured search API with the pooled
HTTP client and renders the hits as plain text for the model. It is
registered only when a search API key is configured, and each call counts
against the plan's search quota when the generation runs on the built-in key.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional

import httpx

from ...config.defaults import SEARCH_API_KEY_ENV, SEARCH_API_URL, SEARCH_MAX_RESULTS
from ...config.env import is_placeholder
from ..http import get_async_client
from .router import ToolSpec

WEB_SEARCH_TOOL_NAME = "web_search"


def search_api_key() -> Optional[str]:
    """Return the configured search API key, or None when unset or a placeholder."""
    value = (os.getenv(SEARCH_API_KEY_ENV) or "").strip()
    if not value or is_placeholder(value):
        return None
    return value


def render_search_results(query: str, data: Dict[str, Any]) -> str:
    results = data.get("results") or []
    if not results:
        return f'No results found for "{query}"'
    lines = [f"{r.get('title', '')}: {r.get('content', '')} ({r.get('url', '')})" for r in results]
    out = f'Search results for "{query}":\n\n' + "\n\n".join(lines)
    if data.get("answer"):
        out += f"\n\nSummary: {data['answer']}"
    return out


def make_web_search_tool(api_key: str, client: Optional[httpx.AsyncClient] = None) -> ToolSpec:
    """Build the ``web_search`` tool bound to ``api_key``.

    ``client`` defaults to the pooled ``search`` client.
    """

    async def web_search(params: Dict[str, Any]) -> str:
        query = str(params.get("query", "")).strip()
        if not query:
            raise ValueError("query is required")
        http = client or get_async_client("search")
        resp = await http.post(
            SEARCH_API_URL,
            json={
                "api_key": api_key,
                "query": query,
                "search_depth": "basic",
                "include_answer": True,
                "include_images": False,
                "max_results": SEARCH_MAX_RESULTS,
            },
        )
        resp.raise_for_status()
        return render_search_results(query, resp.json())

    return ToolSpec(
        name=WEB_SEARCH_TOOL_NAME,
        description=(
            "Search the web for current, real-time information. Use ONLY for recent news, live data "
            "or facts that change frequently, not for general knowledge."
        ),
        handler=web_search,
        parameters={
            "type": "object",
            "properties": {"query": {"type": "string", "description": "The search query."}},
            "required": ["query"],
        },
        metered=True,
    )


__all__ = [
    "WEB_SEARCH_TOOL_NAME",
    "search_api_key",
    "render_search_results",
    "make_web_search_tool",
]
