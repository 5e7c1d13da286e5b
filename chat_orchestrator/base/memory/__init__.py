"""In-memory collaborator implementations and the static model catalog."""

from .in_memory_stores import (
    InMemoryAttachmentStore,
    InMemoryConversationStore,
    InMemoryCredentialsStore,
    InMemoryPreferencesStore,
    InMemoryUsageStore,
)
from .static_model_catalog import KNOWN_MODELS, StaticModelCatalog, fallback_model_info

__all__ = [
    "InMemoryAttachmentStore",
    "InMemoryConversationStore",
    "InMemoryCredentialsStore",
    "InMemoryPreferencesStore",
    "InMemoryUsageStore",
    "KNOWN_MODELS",
    "StaticModelCatalog",
    "fallback_model_info",
]
