"""
Error classification helpers mapping exceptions to normalized ErrorCode values.

Implements HTTP status extraction, status-to-code mapping and message-based
heuristics as a fallback for SDKs that do not expose a status.
"""
from __future__ import annotations

import asyncio
from typing import Dict, Optional

from .error_code import ErrorCode
from .provider_error import ProviderError


def _extract_status(exc: object) -> Optional[int]:
    """Attempt to extract an HTTP status code from a provider exception.

    Supported attribute shapes (checked in order):
    - ``exc.status_code``
    - ``exc.status``
    - ``exc.code`` (google-genai ``APIError``)
    - ``exc.response.status_code``
    Returns ``None`` if no valid status can be found.
    """
    for attr in ("status_code", "status", "code"):
        val = getattr(exc, attr, None)
        if isinstance(val, int) and 100 <= val < 600:
            return val
    resp = getattr(exc, "response", None)
    if resp is not None:
        sc = getattr(resp, "status_code", None)
        if isinstance(sc, int) and 100 <= sc < 600:
            return sc
    return None


_HTTP_STATUS_MAP: Dict[int, ErrorCode] = {
    400: ErrorCode.VALIDATION,
    401: ErrorCode.AUTH,
    402: ErrorCode.QUOTA,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    408: ErrorCode.TIMEOUT,
    422: ErrorCode.VALIDATION,
    429: ErrorCode.RATE_LIMIT,
    500: ErrorCode.SERVER_ERROR,
    502: ErrorCode.UNAVAILABLE,
    503: ErrorCode.UNAVAILABLE,
    504: ErrorCode.TIMEOUT,
}


_PATTERN_GROUPS = (
    (ErrorCode.TIMEOUT, ("timeout", "timed out")),
    (ErrorCode.CANCELLED, ("aborted", "cancelled")),
    (ErrorCode.AUTH, ("unauthorized", "api key", "authentication")),
    (ErrorCode.FORBIDDEN, ("forbidden", "permission")),
    (ErrorCode.RATE_LIMIT, ("rate limit", "too many requests")),
    (ErrorCode.QUOTA, ("quota", "billing")),
    (ErrorCode.NETWORK, ("econnreset", "network", "connection")),
    (ErrorCode.CONTENT_FILTER, ("safety", "content_filter", "content policy", "moderation", "recitation")),
    (ErrorCode.EMPTY_RESPONSE, ("no content generated", "empty response")),
    (ErrorCode.NOT_FOUND, ("not found", "does not exist")),
    (ErrorCode.UNAVAILABLE, ("unavailable", "overloaded")),
    (ErrorCode.VALIDATION, ("invalid", "malformed")),
)


def _heuristic_from_message(msg: str) -> Optional[ErrorCode]:
    """Substring heuristic mapping for exceptions without an HTTP status."""
    for code, patterns in _PATTERN_GROUPS:
        if any(p in msg for p in patterns):
            return code
    return None


def classify_exception(exc: BaseException) -> ErrorCode:
    """Classify an exception into a normalized :class:`ErrorCode`.

    Precedence:
        1. ``ProviderError`` (and other errors carrying a ``code`` ErrorCode) passthrough.
        2. Timeout exceptions (sync/async).
        3. Cancellation exceptions.
        4. HTTP status mapping.
        5. Substring heuristics.
        6. ``UNKNOWN`` fallback.
    """
    if isinstance(exc, ProviderError):
        return exc.code
    code = getattr(exc, "error_code", None)
    if isinstance(code, ErrorCode):
        return code
    if isinstance(exc, (TimeoutError, asyncio.TimeoutError)):
        return ErrorCode.TIMEOUT
    if isinstance(exc, asyncio.CancelledError):
        return ErrorCode.CANCELLED
    status = _extract_status(exc)
    if status is not None and status in _HTTP_STATUS_MAP:
        return _HTTP_STATUS_MAP[status]
    heuristic = _heuristic_from_message(str(exc).lower())
    return heuristic if heuristic is not None else ErrorCode.UNKNOWN


__all__ = [
    "classify_exception",
    "_extract_status",
    "_HTTP_STATUS_MAP",
]
