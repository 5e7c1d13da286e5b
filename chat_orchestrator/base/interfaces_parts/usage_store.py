"""UsageStore Protocol (single-class module)."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from ..models import UsageRecord


@runtime_checkable
class UsageStore(Protocol):
    """Persistence for per-user usage records.

    ``compare_and_set`` is the only write: it stores ``new`` when the current
    record equals ``expected`` (``None`` meaning "no record yet") and returns
    whether it did. The credit gate retries on contention.
    """

    async def get(self, user_id: str) -> Optional[UsageRecord]:  # pragma: no cover - interface
        ...

    async def compare_and_set(
        self, user_id: str, expected: Optional[UsageRecord], new: UsageRecord
    ) -> bool:  # pragma: no cover - interface
        ...


__all__ = ["UsageStore"]
