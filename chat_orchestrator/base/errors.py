"""Unified error taxonomy public surface.

This module re-exports the implementations under
``chat_orchestrator.base.errors_parts`` to keep a stable import path:

- ``ErrorCode`` / ``ProviderError`` / ``classify_exception`` normalize SDK
  failures for logging.
- The ``OrchestrationError`` hierarchy marks each failure boundary of a
  generation.
- ``classify`` / ``describe_generation_failure`` produce the user-facing text
  persisted into the conversation.
"""

from .errors_parts.error_code import ErrorCode
from .errors_parts.provider_error import ProviderError
from .errors_parts.classification import classify_exception
from .errors_parts.orchestration_errors import (
    ConfigurationError,
    CreditExhaustedError,
    GenerationTimeoutError,
    InBandStreamError,
    ModelConstructionError,
    OrchestrationError,
    PersistenceError,
    ProviderConstructionError,
    ResultResolutionError,
    SpendingLimitError,
    UsageError,
    UserCancelledError,
)
from .errors_parts.user_messages import classify, describe_generation_failure

__all__ = [
    "ErrorCode",
    "ProviderError",
    "classify_exception",
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
    "classify",
    "describe_generation_failure",
]
