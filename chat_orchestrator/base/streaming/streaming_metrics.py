"""Streaming metrics collected while a generation consumes its stream."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class StreamMetrics:
    """Counters for one consumed stream.

    ``completion_tokens`` starts as a running estimate from text deltas and
    is overwritten by provider-reported usage when a ``finish`` event carries
    non-zero values.
    """

    emitted: int = 0
    time_to_first_token_ms: Optional[float] = None
    total_duration_ms: Optional[float] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    tokens: Optional[Dict[str, Any]] = None


def build_token_usage(prompt: Optional[int], completion: Optional[int], total: Optional[int] = None) -> Dict[str, Optional[int]]:
    """Return a canonical token usage mapping."""
    derived_total = total
    if derived_total is None and (prompt is not None and completion is not None):
        derived_total = prompt + completion
    return {"prompt": prompt, "completion": completion, "total": derived_total}


def apply_token_usage(metrics: StreamMetrics, *, prompt: Optional[int], completion: Optional[int], total: Optional[int] = None) -> None:
    """Overwrite token fields with reported values; zero/None values are ignored."""
    if prompt:
        metrics.prompt_tokens = prompt
    if completion:
        metrics.completion_tokens = completion
    if total:
        metrics.total_tokens = total
    metrics.tokens = build_token_usage(metrics.prompt_tokens, metrics.completion_tokens, metrics.total_tokens)


__all__ = ["StreamMetrics", "apply_token_usage", "build_token_usage"]
