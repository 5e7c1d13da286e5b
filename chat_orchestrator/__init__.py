"""chat_orchestrator package

Streaming generation orchestrator for a multi-provider AI chat backend.

Public API (re-exported):
    - Version: ``__version__``
    - Orchestrators: :class:`StreamingOrchestrator`,
      :class:`NonStreamingOrchestrator` and their :class:`Collaborators`
    - Requests and outcomes: :class:`GenerationRequest`,
      :class:`GenerationOutcome`
    - Cancellation: :func:`request_cancellation`
    - Errors: :class:`OrchestrationError`, :class:`ErrorCode`

The HTTP surface lives in ``chat_orchestrator.service`` and is not imported
here, so library users do not pull in FastAPI.
"""

from .base.errors import ErrorCode, OrchestrationError
from .base.models import GenerationOutcome, GenerationRequest
from .orchestration import (
    Collaborators,
    NonStreamingOrchestrator,
    StreamingOrchestrator,
    request_cancellation,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Collaborators",
    "ErrorCode",
    "GenerationOutcome",
    "GenerationRequest",
    "NonStreamingOrchestrator",
    "OrchestrationError",
    "StreamingOrchestrator",
    "request_cancellation",
]
