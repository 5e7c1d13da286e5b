"""CredentialsStore Protocol (single-class module)."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class CredentialsStore(Protocol):
    """Lookup of caller-supplied provider API keys."""

    async def get_api_key_for_provider(self, user_id: str, provider: str) -> Optional[str]:  # pragma: no cover - interface
        """Return the user's own key for ``provider`` or ``None``."""
        ...


__all__ = ["CredentialsStore"]
