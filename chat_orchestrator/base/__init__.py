"""
Orchestrator Base Package

Provider-agnostic contracts shared by the orchestration, provider and service
layers:
- Interfaces: collaborator protocols (stores, catalog, model handles)
- Models: conversation, request, outcome and usage dataclasses
- Streaming: typed stream events and metrics
- Errors: normalized codes, the orchestration error taxonomy and
  user-facing error classification
- Cancellation: in-process tokens and deadline timers

Submodules are imported directly (``chat_orchestrator.base.models`` ...);
this package only re-exports the most common names.
"""

from .cancellation import CancellationToken, CancelledError, DeadlineTimer
from .errors import ErrorCode, OrchestrationError, ProviderError
from .logging import get_logger, log_event, normalized_log_event

__all__ = [
    "CancellationToken",
    "CancelledError",
    "DeadlineTimer",
    "ErrorCode",
    "OrchestrationError",
    "ProviderError",
    "get_logger",
    "log_event",
    "normalized_log_event",
]
