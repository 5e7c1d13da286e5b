"""PreferencesStore Protocol (single-class module)."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from ..models import UserPreferences


@runtime_checkable
class PreferencesStore(Protocol):
    """Read-only access to user preferences and free-form instructions."""

    async def get_user_preferences(self, user_id: str) -> Optional[UserPreferences]:  # pragma: no cover - interface
        ...

    async def get_user_instructions(self, user_id: str) -> Optional[str]:  # pragma: no cover - interface
        ...


__all__ = ["PreferencesStore"]
