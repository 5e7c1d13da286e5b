"""Generation state machine.

Every generation walks ``INIT -> CREDIT_CHECKED -> MODEL_READY ->
MESSAGE_PLACEHOLDER_CREATED -> STREAMING`` and ends in exactly one terminal
state. The non-streaming path collapses the last two steps and moves from
``MODEL_READY`` straight to a terminal state.

``GenerationContext`` is the per-generation state object: it owns the
cancellation token, the placeholder message id, the accumulated stream
state and the transition history, so every exit path can reach them.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from ..base.cancellation import CancellationToken
from ..base.models import ToolCallRecord
from ..base.streaming import StreamMetrics


class GenerationState(str, Enum):
    INIT = "init"
    CREDIT_CHECKED = "credit_checked"
    MODEL_READY = "model_ready"
    MESSAGE_PLACEHOLDER_CREATED = "message_placeholder_created"
    STREAMING = "streaming"
    CANCELLED = "cancelled"
    ERRORED = "errored"
    COMPLETED = "completed"

    @property
    def terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES: FrozenSet[GenerationState] = frozenset(
    {GenerationState.CANCELLED, GenerationState.ERRORED, GenerationState.COMPLETED}
)

_S = GenerationState

ALLOWED_TRANSITIONS: Dict[GenerationState, FrozenSet[GenerationState]] = {
    _S.INIT: frozenset({_S.CREDIT_CHECKED, _S.ERRORED}),
    _S.CREDIT_CHECKED: frozenset({_S.MODEL_READY, _S.ERRORED}),
    # COMPLETED directly from MODEL_READY is the non-streaming path.
    _S.MODEL_READY: frozenset({_S.MESSAGE_PLACEHOLDER_CREATED, _S.COMPLETED, _S.ERRORED}),
    _S.MESSAGE_PLACEHOLDER_CREATED: frozenset({_S.STREAMING, _S.ERRORED}),
    _S.STREAMING: frozenset({_S.CANCELLED, _S.ERRORED, _S.COMPLETED}),
    _S.CANCELLED: frozenset(),
    _S.ERRORED: frozenset(),
    _S.COMPLETED: frozenset(),
}


class InvalidTransition(RuntimeError):
    """Raised when a generation attempts a transition the state machine forbids."""

    def __init__(self, current: GenerationState, target: GenerationState) -> None:
        super().__init__(f"Illegal generation transition {current.value} -> {target.value}")
        self.current = current
        self.target = target


@dataclass
class GenerationContext:
    """Mutable state of one generation.

    Attributes:
        conversation_id: Target conversation.
        provider: Resolved provider identifier.
        model: Resolved model identifier.
        temperature: Sampling temperature.
        user_id: Owner of the usage record charged for this generation.
        token: In-process cancellation token for this generation.
        state: Current state.
        history: Every state entered, in order (starts with ``INIT``).
        message_id: Placeholder id once created.
        using_user_key: Whether caller-supplied credentials are in use.
        content: Accumulated visible text.
        reasoning: Accumulated reasoning trace.
        tool_calls: Tool-call records in arrival order.
        usage: Token counters and event timing; completion tokens start as
            an estimate and provider usage overrides them.
        in_band_error: First error event seen in the stream.
        started_at: ``time.monotonic()`` at generation start.
    """

    conversation_id: str
    provider: str
    model: str
    temperature: float
    user_id: str = "default"
    token: CancellationToken = field(default_factory=CancellationToken)
    state: GenerationState = GenerationState.INIT
    history: List[GenerationState] = field(default_factory=lambda: [GenerationState.INIT])
    message_id: Optional[str] = None
    using_user_key: bool = False
    content: str = ""
    reasoning: str = ""
    tool_calls: List[ToolCallRecord] = field(default_factory=list)
    usage: StreamMetrics = field(default_factory=lambda: StreamMetrics(prompt_tokens=0, completion_tokens=0, total_tokens=0))
    in_band_error: Any = None
    started_at: float = field(default_factory=time.monotonic)

    def transition(self, target: GenerationState) -> None:
        """Move to ``target`` or raise :class:`InvalidTransition`."""
        if target not in ALLOWED_TRANSITIONS[self.state]:
            raise InvalidTransition(self.state, target)
        self.state = target
        self.history.append(target)

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)

    def find_tool_call(self, tool_call_id: str) -> Optional[ToolCallRecord]:
        for call in self.tool_calls:
            if call.id == tool_call_id:
                return call
        return None


__all__ = [
    "ALLOWED_TRANSITIONS",
    "GenerationContext",
    "GenerationState",
    "InvalidTransition",
    "TERMINAL_STATES",
]
