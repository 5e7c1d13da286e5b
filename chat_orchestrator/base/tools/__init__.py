"""Tool registry, router and built-in tools."""

from .builtin import (
    CALCULATOR_TOOL,
    CALCULATOR_TOOL_NAME,
    DATETIME_TOOL,
    DATETIME_TOOL_NAME,
    THINKING_TOOL,
    THINKING_TOOL_NAME,
    calculate,
    default_tool_router,
    structured_analysis,
)
from .router import ToolHandler, ToolMeter, ToolRouter, ToolSpec
from .search import WEB_SEARCH_TOOL_NAME, make_web_search_tool, render_search_results, search_api_key

__all__ = [
    "CALCULATOR_TOOL",
    "CALCULATOR_TOOL_NAME",
    "DATETIME_TOOL",
    "DATETIME_TOOL_NAME",
    "THINKING_TOOL",
    "THINKING_TOOL_NAME",
    "WEB_SEARCH_TOOL_NAME",
    "calculate",
    "default_tool_router",
    "make_web_search_tool",
    "render_search_results",
    "search_api_key",
    "structured_analysis",
    "ToolHandler",
    "ToolMeter",
    "ToolRouter",
    "ToolSpec",
]
