"""
Generation metrics attached to a finalized assistant message.

Created once per generation and immutable afterwards. ``to_dict`` emits the
camelCase wire shape and drops unset counters.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class GenerationMetrics:
    """Usage and timing for one generation.

    Attributes:
        provider: Provider identifier.
        model: Model identifier.
        generation_time_ms: Wall time from generation start to stream end.
        tokens_used: Total tokens reported by the provider (completion
            tokens when no total is reported).
        prompt_tokens: Input tokens, when known.
        completion_tokens: Output tokens, when known.
        tokens_per_second: Completion tokens divided by generation seconds,
            rounded to two decimals; ``0`` when either side is zero.
        temperature: Sampling temperature used.
    """

    provider: str
    model: str
    generation_time_ms: int = 0
    tokens_used: Optional[int] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    tokens_per_second: Optional[float] = None
    temperature: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        raw = {
            "provider": self.provider,
            "model": self.model,
            "tokensUsed": self.tokens_used,
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
            "generationTimeMs": self.generation_time_ms,
            "tokensPerSecond": self.tokens_per_second,
            "temperature": self.temperature,
        }
        return {k: v for k, v in raw.items() if v is not None}


def tokens_per_second(completion_tokens: int, generation_ms: float) -> float:
    """Return completion throughput, guarded against zero time or tokens."""
    if completion_tokens <= 0 or generation_ms <= 0:
        return 0.0
    return round(completion_tokens / (generation_ms / 1000.0), 2)


__all__ = ["GenerationMetrics", "tokens_per_second"]
