"""Credit gate and token pricing."""

from .credit_gate import CreditCheck, CreditGate, DeductionResult
from .pricing import PricePer1K, cost_dollars, credits_for, estimate_tokens, price_per_1k

__all__ = [
    "CreditCheck",
    "CreditGate",
    "DeductionResult",
    "PricePer1K",
    "cost_dollars",
    "credits_for",
    "estimate_tokens",
    "price_per_1k",
]
