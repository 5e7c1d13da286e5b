"""Credit/usage gate.

Decides whether a built-in-key request may proceed and records what it
consumed. Callers using their own provider key never reach this module.

Every operation starts by applying the lazy monthly reset: if the record's
reset timestamp has passed, usage counters drop to zero, limits are
refreshed from the plan, and the timestamp moves forward in 30-day steps.
``check_available`` and ``get_usage`` compute that reset virtually and never
write. Mutations go through ``UsageStore.compare_and_set`` and are retried on
contention, so a deduction is all-or-nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from ..base.errors import ErrorCode, PersistenceError, UsageError
from ..base.interfaces import ModelCatalog, UsageStore
from ..base.logging import LogContext, get_logger, log_event
from ..base.models import UsageRecord
from ..config.defaults import DEFAULT_PLAN, PLAN_LIMITS, USAGE_RESET_PERIOD_DAYS
from .pricing import cost_dollars, credits_for, price_per_1k

Clock = Callable[[], datetime]

_RESET_PERIOD = timedelta(days=USAGE_RESET_PERIOD_DAYS)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CreditCheck:
    """Outcome of the read-only pre-flight check."""

    has_credits: bool
    required_credits: int
    available_credits: int
    would_exceed_spending: bool
    estimated_dollars: float = 0.0


@dataclass(frozen=True)
class DeductionResult:
    credits_deducted: int
    dollars_spent: float
    remaining_credits: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "creditsDeducted": self.credits_deducted,
            "dollarsSpent": self.dollars_spent,
            "remainingCredits": self.remaining_credits,
        }


def _plan_limits(plan: str) -> Dict[str, float]:
    return PLAN_LIMITS.get(plan) or PLAN_LIMITS[DEFAULT_PLAN]


class CreditGate:
    """Per-user credit accounting over a :class:`UsageStore`.

    Parameters:
        store: Usage record persistence.
        catalog: Model metadata supplying pricing.
        clock: Returns the current aware UTC time (tests pin it).
        max_retries: Compare-and-set attempts before giving up.
    """

    def __init__(
        self,
        store: UsageStore,
        catalog: ModelCatalog,
        *,
        clock: Optional[Clock] = None,
        max_retries: int = 5,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._clock = clock or _utcnow
        self._max_retries = max_retries
        self._logger = get_logger("usage.credit_gate")

    # ---- record helpers ----------------------------------------------------
    def new_record(self, user_id: str, now: datetime) -> UsageRecord:
        limits = _plan_limits(DEFAULT_PLAN)
        return UsageRecord(
            user_id=user_id,
            plan=DEFAULT_PLAN,
            credits_used=0,
            credits_limit=int(limits["credits"]),
            dollars_spent=0.0,
            max_spending_dollars=float(limits["max_spending_dollars"]),
            searches_used=0,
            reset_at=now + _RESET_PERIOD,
        )

    def apply_reset(self, record: UsageRecord, now: datetime) -> Tuple[UsageRecord, bool]:
        """Return ``(record, was_reset)`` with the lazy monthly reset applied."""
        if now < record.reset_at:
            return record, False
        next_reset = record.reset_at + _RESET_PERIOD
        while next_reset <= now:
            next_reset += _RESET_PERIOD
        limits = _plan_limits(record.plan)
        return (
            record.evolve(
                credits_used=0,
                dollars_spent=0.0,
                searches_used=0,
                credits_limit=int(limits["credits"]),
                max_spending_dollars=float(limits["max_spending_dollars"]),
                reset_at=next_reset,
            ),
            True,
        )

    async def _current(self, user_id: str) -> Tuple[Optional[UsageRecord], UsageRecord, bool, datetime]:
        stored = await self._store.get(user_id)
        now = self._clock()
        if stored is None:
            return None, self.new_record(user_id, now), False, now
        record, was_reset = self.apply_reset(stored, now)
        return stored, record, was_reset, now

    def _cost(self, model: str, input_tokens: int, output_tokens: int) -> Tuple[float, int]:
        dollars = cost_dollars(price_per_1k(self._catalog.get_model_info(model)), input_tokens, output_tokens)
        return dollars, credits_for(dollars)

    # ---- operations --------------------------------------------------------
    async def check_available(
        self, user_id: str, model: str, estimated_input_tokens: int, estimated_output_tokens: int
    ) -> CreditCheck:
        """Read-only check of whether the estimated usage fits the plan."""
        _, record, _, _ = await self._current(user_id)
        dollars, required = self._cost(model, estimated_input_tokens, estimated_output_tokens)
        available = record.available_credits
        return CreditCheck(
            has_credits=available >= required,
            required_credits=required,
            available_credits=available,
            would_exceed_spending=record.dollars_spent + dollars > record.max_spending_dollars,
            estimated_dollars=dollars,
        )

    async def deduct(self, user_id: str, model: str, input_tokens: int, output_tokens: int) -> DeductionResult:
        """Charge actual usage; both ceilings are re-validated atomically.

        Raises:
            UsageError: When either ceiling would be crossed. Nothing is written.
            PersistenceError: When the record stays contended past ``max_retries``.
        """
        dollars, credits = self._cost(model, input_tokens, output_tokens)
        for _ in range(self._max_retries):
            stored, record, was_reset, _ = await self._current(user_id)
            available = record.available_credits
            if credits > available:
                raise UsageError(f"Insufficient credits. Required: {credits}, Available: {available}")
            if record.dollars_spent + dollars > record.max_spending_dollars:
                raise UsageError(
                    f"Would exceed monthly spending limit of ${record.max_spending_dollars:g}",
                    error_code=ErrorCode.SPENDING_LIMIT,
                )
            updated = record.evolve(
                credits_used=record.credits_used + credits,
                dollars_spent=record.dollars_spent + dollars,
            )
            if await self._store.compare_and_set(user_id, stored, updated):
                ctx = LogContext(model=model, extra={"user_id": user_id})
                if was_reset:
                    log_event(self._logger, "credits.reset", ctx, next_reset=updated.reset_at.isoformat())
                log_event(
                    self._logger,
                    "credits.deduct",
                    ctx,
                    credits=credits,
                    dollars=round(dollars, 6),
                    remaining=updated.available_credits,
                )
                return DeductionResult(
                    credits_deducted=credits,
                    dollars_spent=dollars,
                    remaining_credits=updated.available_credits,
                )
        raise PersistenceError(f"Usage record for {user_id} is contended; deduction abandoned")

    async def increment_searches(self, user_id: str, count: int = 1) -> int:
        """Count ``count`` searches against the plan limit; returns searches used.

        Raises:
            UsageError: When the limit is already reached.
        """
        for _ in range(self._max_retries):
            stored, record, _, _ = await self._current(user_id)
            limit = int(_plan_limits(record.plan)["searches"])
            if record.searches_used + count > limit:
                raise UsageError(
                    f"Monthly search limit reached ({limit}). Upgrade your plan for more searches.",
                    error_code=ErrorCode.QUOTA,
                )
            updated = record.evolve(searches_used=record.searches_used + count)
            if await self._store.compare_and_set(user_id, stored, updated):
                return updated.searches_used
        raise PersistenceError(f"Usage record for {user_id} is contended; search not counted")

    async def get_usage(self, user_id: str) -> Dict[str, Any]:
        """Reset-applied snapshot (not written) with remaining credits and searches."""
        _, record, _, _ = await self._current(user_id)
        out = record.to_dict()
        out["remainingCredits"] = record.available_credits
        out["searchesLimit"] = int(_plan_limits(record.plan)["searches"])
        return out


__all__ = ["CreditGate", "CreditCheck", "DeductionResult"]
