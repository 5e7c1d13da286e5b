"""Structured logging context object for generation events.

Defines :class:`LogContext`, a dataclass carrying the fields shared by every
log line of one generation (provider, model, conversation and message ids)
plus free-form extras. ``to_dict`` merges ``extra`` and prunes ``None``.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional


@dataclass
class LogContext:
    """Structured context for generation logging events."""

    provider: Optional[str] = None
    model: Optional[str] = None
    conversation_id: Optional[str] = None
    message_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        extra = data.pop("extra", {}) or {}
        data.update({k: v for k, v in extra.items() if v is not None})
        return {k: v for k, v in data.items() if v is not None}


__all__ = ["LogContext"]
