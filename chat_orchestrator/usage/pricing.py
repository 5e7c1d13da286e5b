"""Token pricing and credit conversion.

Catalog prices are dollars per 1M tokens; the gate works per 1K. Credits are
whole cents rounded up, so partial-cent costs never under-charge.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from ..base.models import ModelCapabilities
from ..config.defaults import (
    CHARS_PER_TOKEN,
    CREDITS_PER_DOLLAR,
    FALLBACK_PRICE_PER_1K_INPUT,
    FALLBACK_PRICE_PER_1K_OUTPUT,
)


@dataclass(frozen=True)
class PricePer1K:
    """Dollar price per 1K input/output tokens."""

    input: float
    output: float


def price_per_1k(capabilities: Optional[ModelCapabilities]) -> PricePer1K:
    """Per-1K price for a model, or the fallback rate when unpriced."""
    pricing = capabilities.pricing if capabilities is not None else None
    if pricing is None:
        return PricePer1K(FALLBACK_PRICE_PER_1K_INPUT, FALLBACK_PRICE_PER_1K_OUTPUT)
    return PricePer1K(pricing.input / 1000.0, pricing.output / 1000.0)


def cost_dollars(price: PricePer1K, input_tokens: int, output_tokens: int) -> float:
    return (input_tokens / 1000.0) * price.input + (output_tokens / 1000.0) * price.output


def credits_for(dollars: float) -> int:
    """Convert dollars to credits, rounding up.

    The product is rounded to 9 places first so float noise (``0.07 * 100``)
    does not add a spurious credit.
    """
    return math.ceil(round(dollars * CREDITS_PER_DOLLAR, 9))


def estimate_tokens(text: str, chars_per_token: int = CHARS_PER_TOKEN) -> int:
    """Rough token estimate: ``ceil(len(text) / chars_per_token)``."""
    if not text:
        return 0
    return math.ceil(len(text) / chars_per_token)


__all__ = ["PricePer1K", "price_per_1k", "cost_dollars", "credits_for", "estimate_tokens"]
