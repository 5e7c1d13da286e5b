"""Interfaces parts package.

One protocol per module; ``chat_orchestrator.base.interfaces`` is the
stable import path.
"""

from .attachment_store import AttachmentStore
from .conversation_store import ConversationStore
from .credentials_store import CredentialsStore
from .model_catalog import ModelCatalog
from .model_handle import GenerateResult, ModelHandle
from .preferences_store import PreferencesStore
from .usage_store import UsageStore

__all__ = [
    "AttachmentStore",
    "ConversationStore",
    "CredentialsStore",
    "ModelCatalog",
    "GenerateResult",
    "ModelHandle",
    "PreferencesStore",
    "UsageStore",
]
