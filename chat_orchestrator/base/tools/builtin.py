"""Built-in tools available to every generation.

``thinking`` lets models without native reasoning lay out a structured
analysis; the orchestrators fold its output into the reasoning trace rather
than the tool-call list. ``datetime`` reports the current UTC time and
``calculator`` evaluates plain arithmetic. ``web_search`` (see :mod:`.search`)
is added when a search API key is configured.
"""

from __future__ import annotations

import ast
import operator
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Union

from ...config.defaults import CALCULATOR_MAX_EXPRESSION_LENGTH
from .router import ToolRouter, ToolSpec
from .search import make_web_search_tool, search_api_key

THINKING_TOOL_NAME = "thinking"
DATETIME_TOOL_NAME = "datetime"
CALCULATOR_TOOL_NAME = "calculator"

_THINKING_DONE = "\nStructured analysis complete. Ready to provide a comprehensive response based on this reasoning."


def structured_analysis(params: Dict[str, Any]) -> str:
    """Render a problem and its reasoning steps as a numbered analysis."""
    problem = str(params.get("problem", "")).strip()
    steps: List[Any] = params.get("steps") or []
    if isinstance(steps, str):
        steps = [steps]
    out = f"Structured analysis of: {problem}\n\n"
    for i, step in enumerate(steps, start=1):
        out += f"Step {i}: {step}\n"
    return out + _THINKING_DONE


def current_datetime(params: Dict[str, Any]) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    return {
        "iso": now.isoformat(),
        "date": now.date().isoformat(),
        "time": now.strftime("%H:%M:%S"),
        "timezone": "UTC",
        "weekday": now.strftime("%A"),
    }


_ALLOWED_EXPRESSION_CHARS = set("0123456789+-*/(). ")

_BINARY_OPS: Dict[type, Callable[[Any, Any], Any]] = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
}
_UNARY_OPS: Dict[type, Callable[[Any], Any]] = {ast.UAdd: operator.pos, ast.USub: operator.neg}


def _evaluate(node: ast.AST) -> Union[int, float]:
    if isinstance(node, ast.Expression):
        return _evaluate(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPS:
        return _BINARY_OPS[type(node.op)](_evaluate(node.left), _evaluate(node.right))
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_evaluate(node.operand))
    raise ValueError("unsupported expression")


def calculate(params: Dict[str, Any]) -> str:
    """Evaluate an arithmetic expression of numbers, ``+ - * /`` and parentheses.

    Invalid input is reported in the returned text so the model can correct it.
    """
    expression = str(params.get("expression", ""))
    if any(ch not in _ALLOWED_EXPRESSION_CHARS for ch in expression):
        return "Error: Invalid characters in expression. Only numbers, +, -, *, /, (, ), and . are allowed."
    if len(expression) > CALCULATOR_MAX_EXPRESSION_LENGTH:
        return "Error: Expression too long"
    try:
        value = _evaluate(ast.parse(expression.strip(), mode="eval"))
    except ZeroDivisionError:
        return "Error: Division by zero"
    except (SyntaxError, ValueError):
        return "Error: Invalid mathematical expression"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"Result: {value}"


THINKING_TOOL = ToolSpec(
    name=THINKING_TOOL_NAME,
    description=(
        "Break a complex, multi-step problem into explicit reasoning steps before answering. "
        "Use only when structured analysis genuinely helps."
    ),
    handler=structured_analysis,
    parameters={
        "type": "object",
        "properties": {
            "problem": {"type": "string", "description": "The problem being analyzed."},
            "steps": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Ordered reasoning steps.",
            },
        },
        "required": ["problem", "steps"],
    },
)

DATETIME_TOOL = ToolSpec(
    name=DATETIME_TOOL_NAME,
    description="Return the current date and time in UTC.",
    handler=current_datetime,
)

CALCULATOR_TOOL = ToolSpec(
    name=CALCULATOR_TOOL_NAME,
    description=(
        "Evaluate a multi-step arithmetic expression precisely. Do NOT use for simple math you can "
        "do directly."
    ),
    handler=calculate,
    parameters={
        "type": "object",
        "properties": {
            "expression": {"type": "string", "description": "Numbers combined with + - * / and parentheses."}
        },
        "required": ["expression"],
    },
)


def default_tool_router() -> ToolRouter:
    """Return a router with the built-in tools registered."""
    router = ToolRouter()
    router.register(THINKING_TOOL)
    router.register(DATETIME_TOOL)
    router.register(CALCULATOR_TOOL)
    key = search_api_key()
    if key:
        router.register(make_web_search_tool(key))
    return router


__all__ = [
    "THINKING_TOOL_NAME",
    "DATETIME_TOOL_NAME",
    "CALCULATOR_TOOL_NAME",
    "THINKING_TOOL",
    "DATETIME_TOOL",
    "CALCULATOR_TOOL",
    "structured_analysis",
    "current_datetime",
    "calculate",
    "default_tool_router",
]
