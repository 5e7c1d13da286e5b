"""In-process tool invocation router.

Maps tool names to handlers plus the JSON schema advertised to the model,
and invokes them safely, returning a standard ``ToolResultDTO``. Handlers may
be plain callables or coroutine functions; both receive a single ``dict`` of
arguments.

Metered tools (e.g. web search) consult an optional per-request meter before
running; a meter that raises turns the call into a failed result rather than
aborting the generation.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from ..dto.tool_result import ToolResultDTO
from ..errors import OrchestrationError
from ..logging import get_logger, log_event

ToolHandler = Callable[[Dict[str, Any]], Any]
ToolMeter = Callable[[str], Awaitable[Any]]

_logger = get_logger("tools")


@dataclass(frozen=True)
class ToolSpec:
    """A tool offered to the model.

    Attributes:
        name: Unique tool name (also the name the model calls).
        description: Natural-language description sent to the model.
        parameters: JSON schema of the argument object.
        handler: Callable invoked with the parsed argument dict.
        metered: Whether each invocation counts against the search quota.
    """

    name: str
    description: str
    handler: ToolHandler
    parameters: Dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})
    metered: bool = False


class ToolRouter:
    """Registry-based async tool router.

    Contract:
        - Register tools with ``register(spec)``.
        - Select the tools to offer with ``specs(names)``.
        - Invoke via ``await invoke(name, params)`` and receive ``ToolResultDTO``.
    """

    def __init__(self, *, meter: Optional[ToolMeter] = None) -> None:
        self._tools: Dict[str, ToolSpec] = {}
        self._meter = meter

    def register(self, spec: ToolSpec) -> None:
        self._tools[spec.name] = spec

    def get(self, name: str) -> Optional[ToolSpec]:
        return self._tools.get(name)

    def names(self) -> List[str]:
        return list(self._tools)

    def specs(self, names: Iterable[str]) -> List[ToolSpec]:
        """Return registered specs for ``names`` in request order; unknown names are skipped."""
        out: List[ToolSpec] = []
        seen = set()
        for name in names:
            spec = self._tools.get(name)
            if spec is not None and name not in seen:
                out.append(spec)
                seen.add(name)
        return out

    def with_meter(self, meter: Optional[ToolMeter]) -> "ToolRouter":
        """Return a router sharing this registry but charging ``meter``."""
        clone = ToolRouter(meter=meter)
        clone._tools = self._tools
        return clone

    async def invoke(self, name: str, params: Dict[str, Any] | None = None) -> ToolResultDTO:
        """Invoke a registered tool and wrap the result.

        Args:
            name: Tool name to invoke.
            params: Argument dict passed to the handler.

        Returns:
            ToolResultDTO: Standardized result envelope; handler failures are
            reported with ``ok=False`` instead of raised.
        """
        params = params or {}
        spec = self._tools.get(name)
        if spec is None:
            return ToolResultDTO(name=name, ok=False, code="NOT_FOUND", error=f"tool '{name}' not registered")
        if spec.metered and self._meter is not None:
            try:
                await self._meter(name)
            except OrchestrationError as e:
                log_event(_logger, "tool.metered_rejected", tool=name, error=e.message)
                return ToolResultDTO(name=name, ok=False, code=str(e.error_code.value), error=e.message)
        try:
            result = spec.handler(params)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:  # noqa: BLE001 - tool failures are reported to the model
            log_event(_logger, "tool.failed", tool=name, error=str(e))
            return ToolResultDTO(name=name, ok=False, code="EXCEPTION", error=str(e))
        content = result if isinstance(result, (str, dict)) else str(result)
        return ToolResultDTO(name=name, ok=True, content=content)


def replace_handler(spec: ToolSpec, handler: ToolHandler) -> ToolSpec:
    """Return ``spec`` with a different handler (tests swap in fakes)."""
    return replace(spec, handler=handler)


__all__ = ["ToolSpec", "ToolRouter", "ToolHandler", "ToolMeter", "replace_handler"]
