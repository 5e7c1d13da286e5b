"""Tool call record persisted on an assistant message."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class ToolCallRecord:
    """One tool invocation requested by the model.

    ``arguments`` and ``result`` are JSON strings; ``result`` stays ``None``
    while the tool is running.
    """

    id: str
    name: str
    arguments: str
    result: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["ToolCallRecord"]
