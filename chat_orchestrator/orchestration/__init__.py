"""Generation orchestration.

Wires the stores, provider registry, credit gate and tool router into the
streaming and non-streaming generation flows.
"""

from .cancellation import request_cancellation
from .non_streaming import NonStreamingOrchestrator
from .preparation import Collaborators, PreparedGeneration
from .state import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATES,
    GenerationContext,
    GenerationState,
    InvalidTransition,
)
from .streaming import EventListener, StreamingOrchestrator

__all__ = [
    "ALLOWED_TRANSITIONS",
    "Collaborators",
    "EventListener",
    "GenerationContext",
    "GenerationState",
    "InvalidTransition",
    "NonStreamingOrchestrator",
    "PreparedGeneration",
    "StreamingOrchestrator",
    "TERMINAL_STATES",
    "request_cancellation",
]
