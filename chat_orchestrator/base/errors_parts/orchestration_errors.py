"""
Orchestration error taxonomy.

Each failure boundary of a generation raises one of these types. They share the
``OrchestrationError`` base so callers can separate orchestration failures
from programming errors, and each carries a normalized ``error_code`` consumed
by :func:`classify_exception` and the structured log events.

Propagation summary
-------------------
- ``ConfigurationError``, ``CreditExhaustedError`` and ``SpendingLimitError``
  fail before any provider call and before a placeholder message exists; they
  surface directly to the caller.
- ``ModelConstructionError`` wraps adapter build failures.
- ``GenerationTimeoutError`` and ``UserCancelledError`` share the in-process
  cancellation mechanism and differ only in the attached message.
- ``InBandStreamError`` is raised after a stream that emitted an error event
  finishes.
- ``ResultResolutionError`` is recoverable: the orchestrator falls back to the
  accumulated stream state.
- ``PersistenceError`` is fatal for message saves and non-fatal for credit
  deduction.
"""
from __future__ import annotations

from typing import Optional

from .error_code import ErrorCode


class OrchestrationError(Exception):
    """Base class for every failure raised by the orchestration layer."""

    error_code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(self, message: str, *, provider: Optional[str] = None, model: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.model = model


class ConfigurationError(OrchestrationError):
    """Unknown provider/model or missing credentials."""

    error_code = ErrorCode.CONFIGURATION


class CreditExhaustedError(OrchestrationError):
    """The pre-flight estimate needs more credits than the user has left."""

    error_code = ErrorCode.INSUFFICIENT_CREDITS

    def __init__(self, required_credits: int, available_credits: int) -> None:
        super().__init__(
            f"Insufficient credits. Required: {required_credits}, Available: {available_credits}. "
            "Add your own API keys in settings for unlimited usage."
        )
        self.required_credits = required_credits
        self.available_credits = available_credits


class SpendingLimitError(OrchestrationError):
    """The pre-flight estimate would push spending past the monthly ceiling."""

    error_code = ErrorCode.SPENDING_LIMIT

    def __init__(self) -> None:
        super().__init__(
            "This request would exceed your monthly spending limit. "
            "Add your own API keys in settings for unlimited usage."
        )


class ModelConstructionError(OrchestrationError):
    """A provider adapter could not build a model handle."""

    error_code = ErrorCode.CONFIGURATION

    def __init__(self, provider: str, model: str, cause: Optional[BaseException] = None) -> None:
        detail = str(cause) if cause is not None else "Unknown error"
        super().__init__(
            f"Failed to create model {provider}/{model}: {detail}",
            provider=provider,
            model=model,
        )


# Name used by the collaborator contracts.
ProviderConstructionError = ModelConstructionError


class GenerationTimeoutError(OrchestrationError):
    """The generation exceeded its wall-clock budget."""

    error_code = ErrorCode.TIMEOUT

    def __init__(self, seconds: float, *, provider: Optional[str] = None, model: Optional[str] = None) -> None:
        super().__init__(f"Request timeout after {seconds:g} seconds", provider=provider, model=model)
        self.seconds = seconds


class UserCancelledError(OrchestrationError):
    """The in-process token was aborted for a reason other than the deadline."""

    error_code = ErrorCode.CANCELLED


class InBandStreamError(OrchestrationError):
    """The provider emitted an error event inside an otherwise healthy stream."""

    error_code = ErrorCode.UNKNOWN


class ResultResolutionError(OrchestrationError):
    """Fetching the final resolved text/reasoning after the stream failed."""

    error_code = ErrorCode.UNKNOWN


class PersistenceError(OrchestrationError):
    """A conversation/usage store write failed."""

    error_code = ErrorCode.PERSISTENCE


class UsageError(OrchestrationError):
    """A usage mutation would cross a plan ceiling; state is left unchanged."""

    error_code = ErrorCode.INSUFFICIENT_CREDITS

    def __init__(self, message: str, *, error_code: ErrorCode = ErrorCode.INSUFFICIENT_CREDITS) -> None:
        super().__init__(message)
        self.error_code = error_code


__all__ = [
    "OrchestrationError",
    "ConfigurationError",
    "CreditExhaustedError",
    "SpendingLimitError",
    "ModelConstructionError",
    "ProviderConstructionError",
    "GenerationTimeoutError",
    "UserCancelledError",
    "InBandStreamError",
    "ResultResolutionError",
    "PersistenceError",
    "UsageError",
]
