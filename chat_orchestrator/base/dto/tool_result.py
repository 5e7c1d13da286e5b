"""Standard tool result DTO returned by the tool router.

Provider handles rely on this shape to report tool output back to the model
and to emit ``tool-result`` stream events.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field


class ToolResultDTO(BaseModel):
    """Result envelope for a tool invocation.

    Attributes:
        name: The tool name that was invoked.
        ok: True when the tool executed successfully, False otherwise.
        content: Result payload (text or JSON-like dict).
        code: Error code string when ``ok`` is False.
        error: Human-readable error string when ``ok`` is False.
        metadata: Free-form metadata for tracing/auditing.
    """

    name: str
    ok: bool
    content: Optional[Union[str, Dict[str, Any]]] = None
    code: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    def as_payload(self) -> Any:
        """Return the value handed back to the model and stored on the call."""
        if self.ok:
            return self.content
        return {"error": self.error or "tool failed", "code": self.code}


__all__ = ["ToolResultDTO"]
