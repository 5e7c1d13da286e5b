"""
Per-user usage record.

Holds the monthly credit/spending/search counters for one user. The credit
gate is the only writer; resets happen lazily when an operation observes an
elapsed ``reset_at``.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict


@dataclass(frozen=True)
class UsageRecord:
    """Usage counters for the current period.

    Invariant: ``credits_used <= credits_limit`` and
    ``dollars_spent <= max_spending_dollars`` after every deduction.
    """

    user_id: str
    plan: str
    credits_used: int
    credits_limit: int
    dollars_spent: float
    max_spending_dollars: float
    searches_used: int
    reset_at: datetime

    @property
    def available_credits(self) -> int:
        return self.credits_limit - self.credits_used

    def evolve(self, **changes: Any) -> "UsageRecord":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "userId": self.user_id,
            "plan": self.plan,
            "creditsUsed": self.credits_used,
            "creditsLimit": self.credits_limit,
            "dollarsSpent": self.dollars_spent,
            "maxSpendingDollars": self.max_spending_dollars,
            "searchesUsed": self.searches_used,
            "resetDate": self.reset_at.isoformat(),
        }


__all__ = ["UsageRecord"]
