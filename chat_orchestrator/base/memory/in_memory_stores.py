"""In-memory implementations of the collaborator stores.

Reference implementations for development, tests and the demo HTTP service.
They run on a single event loop; every method completes without awaiting
anything, so each call is atomic with respect to other coroutines.
"""

from __future__ import annotations

import copy
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Tuple
from uuid import uuid4

from ..errors import PersistenceError
from ..models import ConversationMessage, UsageRecord, UserPreferences

_UPDATABLE_FIELDS = frozenset(
    {"content", "thinking", "tool_calls", "generation_metrics", "is_error", "is_streaming"}
)


class InMemoryConversationStore:
    """Conversation store keeping messages, flags and generation state in dicts.

    Returned messages are copies; callers cannot mutate stored state.
    """

    def __init__(self) -> None:
        self._messages: Dict[str, ConversationMessage] = {}
        self._order: Dict[str, List[str]] = {}
        self._streaming: Dict[str, bool] = {}
        self._cancel_flags: Dict[str, bool] = {}
        self.generation_state: Dict[str, Tuple[bool, Optional[str]]] = {}

    async def create_message(self, conversation_id: str, message: ConversationMessage) -> str:
        message_id = uuid4().hex
        stored = replace(copy.deepcopy(message), id=message_id, conversation_id=conversation_id)
        self._messages[message_id] = stored
        self._order.setdefault(conversation_id, []).append(message_id)
        return message_id

    async def update_message(self, message_id: str, **fields: Any) -> None:
        stored = self._messages.get(message_id)
        if stored is None:
            raise PersistenceError(f"Message {message_id} not found")
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise PersistenceError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        if "is_streaming" in fields:
            self._streaming[message_id] = bool(fields.pop("is_streaming"))
        self._messages[message_id] = replace(stored, **copy.deepcopy(fields))

    async def get_message(self, message_id: str) -> Optional[ConversationMessage]:
        stored = self._messages.get(message_id)
        return copy.deepcopy(stored) if stored is not None else None

    def is_streaming(self, message_id: str) -> bool:
        return self._streaming.get(message_id, False)

    async def list_messages(self, conversation_id: str) -> List[ConversationMessage]:
        return [copy.deepcopy(self._messages[i]) for i in self._order.get(conversation_id, [])]

    async def get_cancellation_flag(self, conversation_id: str) -> bool:
        return self._cancel_flags.get(conversation_id, False)

    async def set_cancellation_flag(self, conversation_id: str) -> None:
        self._cancel_flags[conversation_id] = True

    async def clear_cancellation_flag(self, conversation_id: str) -> None:
        self._cancel_flags.pop(conversation_id, None)

    async def set_generation_state(
        self, conversation_id: str, in_progress: bool, message_id: Optional[str] = None
    ) -> None:
        self.generation_state[conversation_id] = (in_progress, message_id if in_progress else None)


class InMemoryPreferencesStore:
    """Preferences and instructions keyed by user id."""

    def __init__(
        self,
        preferences: Optional[Mapping[str, UserPreferences]] = None,
        instructions: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.preferences: Dict[str, UserPreferences] = dict(preferences or {})
        self.instructions: Dict[str, str] = dict(instructions or {})

    async def get_user_preferences(self, user_id: str) -> Optional[UserPreferences]:
        return self.preferences.get(user_id)

    async def get_user_instructions(self, user_id: str) -> Optional[str]:
        return self.instructions.get(user_id)


class InMemoryCredentialsStore:
    """User-supplied API keys keyed by ``(user_id, provider)``."""

    def __init__(self, keys: Optional[Mapping[Tuple[str, str], str]] = None) -> None:
        self.keys: Dict[Tuple[str, str], str] = dict(keys or {})

    def set_key(self, user_id: str, provider: str, key: str) -> None:
        self.keys[(user_id, provider)] = key

    async def get_api_key_for_provider(self, user_id: str, provider: str) -> Optional[str]:
        return self.keys.get((user_id, provider))


class InMemoryAttachmentStore:
    """Attachment URLs and metadata keyed by storage id."""

    def __init__(
        self,
        urls: Optional[Mapping[str, str]] = None,
        metadata: Optional[Mapping[str, Dict[str, Any]]] = None,
    ) -> None:
        self.urls: Dict[str, str] = dict(urls or {})
        self.metadata: Dict[str, Dict[str, Any]] = dict(metadata or {})

    def put(self, storage_id: str, url: str, content_type: Optional[str] = None) -> None:
        self.urls[storage_id] = url
        self.metadata[storage_id] = {"contentType": content_type}

    async def resolve_public_url(self, storage_id: str) -> Optional[str]:
        return self.urls.get(storage_id)

    async def get_attachment_metadata(self, storage_id: str) -> Optional[Dict[str, Any]]:
        meta = self.metadata.get(storage_id)
        return dict(meta) if meta is not None else None


class InMemoryUsageStore:
    """Usage records keyed by user id with compare-and-set writes."""

    def __init__(self, records: Optional[Mapping[str, UsageRecord]] = None) -> None:
        self._records: Dict[str, UsageRecord] = dict(records or {})

    async def get(self, user_id: str) -> Optional[UsageRecord]:
        return self._records.get(user_id)

    async def compare_and_set(self, user_id: str, expected: Optional[UsageRecord], new: UsageRecord) -> bool:
        if self._records.get(user_id) != expected:
            return False
        self._records[user_id] = new
        return True


__all__ = [
    "InMemoryConversationStore",
    "InMemoryPreferencesStore",
    "InMemoryCredentialsStore",
    "InMemoryAttachmentStore",
    "InMemoryUsageStore",
]
