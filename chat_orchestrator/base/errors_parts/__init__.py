"""Errors parts package public surface.

Re-exports individual error taxonomy components for optional direct imports.
Prefer importing from ``chat_orchestrator.base.errors`` for the stable surface.
"""

from .error_code import ErrorCode
from .provider_error import ProviderError
from .classification import classify_exception
from .orchestration_errors import (
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
from .user_messages import classify, describe_generation_failure

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
