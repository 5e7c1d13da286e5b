"""Collaborator interfaces facade.

Re-exports the protocols the orchestrators depend on. Concrete in-memory
implementations live in ``chat_orchestrator.base.memory``.
"""

from .interfaces_parts import (
    AttachmentStore,
    ConversationStore,
    CredentialsStore,
    GenerateResult,
    ModelCatalog,
    ModelHandle,
    PreferencesStore,
    UsageStore,
)

__all__ = [
    "AttachmentStore",
    "ConversationStore",
    "CredentialsStore",
    "GenerateResult",
    "ModelCatalog",
    "ModelHandle",
    "PreferencesStore",
    "UsageStore",
]
