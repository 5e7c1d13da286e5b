"""AttachmentStore Protocol (single-class module)."""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, runtime_checkable


@runtime_checkable
class AttachmentStore(Protocol):
    """Resolution of opaque storage identifiers into fetchable URLs.

    Both methods may return ``None`` for unknown identifiers and may raise on
    transport failure; the message normalizer treats both as "unresolved".
    """

    async def resolve_public_url(self, storage_id: str) -> Optional[str]:  # pragma: no cover - interface
        ...

    async def get_attachment_metadata(self, storage_id: str) -> Optional[Dict[str, Any]]:  # pragma: no cover - interface
        """Return metadata with at least ``contentType`` (may be ``None``)."""
        ...


__all__ = ["AttachmentStore"]
