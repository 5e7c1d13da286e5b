"""
Normalized error codes (taxonomy).

Defines the ``ErrorCode`` enumeration used across provider handles, the
orchestrators and structured logging. Values are lowercase snake_case and are
considered a stable contract for logs and the HTTP surface.
"""
from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Enumerated normalized error codes representing failure categories."""

    AUTH = "auth"
    FORBIDDEN = "forbidden"
    RATE_LIMIT = "rate_limit"
    QUOTA = "quota"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    NETWORK = "network"
    NOT_FOUND = "not_found"
    CONTENT_FILTER = "content_filter"
    EMPTY_RESPONSE = "empty_response"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    SPENDING_LIMIT = "spending_limit"
    PERSISTENCE = "persistence"
    SERVER_ERROR = "server_error"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


__all__ = ["ErrorCode"]
