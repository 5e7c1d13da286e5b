"""ConversationStore Protocol (single-class module).

Persistence boundary for conversation messages, the per-conversation
cancellation flag and the generation-in-progress marker.
"""

from __future__ import annotations

from typing import Any, List, Optional, Protocol, runtime_checkable

from ..models import ConversationMessage


@runtime_checkable
class ConversationStore(Protocol):
    """Async store consulted and mutated by the orchestrators.

    Implementations must make each call atomic on its own; the orchestrator
    never needs multi-call transactions. Concurrent streaming updates to the
    same message are last-writer-wins.
    """

    async def create_message(self, conversation_id: str, message: ConversationMessage) -> str:  # pragma: no cover - interface
        """Persist ``message`` and return its new identifier."""
        ...

    async def update_message(self, message_id: str, **fields: Any) -> None:  # pragma: no cover - interface
        """Patch an existing message.

        Accepted fields: ``content``, ``thinking``, ``tool_calls``,
        ``generation_metrics``, ``is_error`` and ``is_streaming``. Raises
        when the id is unknown.
        """
        ...

    async def list_messages(self, conversation_id: str) -> List[ConversationMessage]:  # pragma: no cover - interface
        ...

    async def get_cancellation_flag(self, conversation_id: str) -> bool:  # pragma: no cover - interface
        ...

    async def set_cancellation_flag(self, conversation_id: str) -> None:  # pragma: no cover - interface
        ...

    async def clear_cancellation_flag(self, conversation_id: str) -> None:  # pragma: no cover - interface
        ...

    async def set_generation_state(
        self, conversation_id: str, in_progress: bool, message_id: Optional[str] = None
    ) -> None:  # pragma: no cover - interface
        """Mark whether a generation is running and which message it writes."""
        ...


__all__ = ["ConversationStore"]
