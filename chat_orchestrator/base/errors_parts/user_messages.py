"""
User-facing error messages.

``classify`` turns a low-level provider or transport failure into a
plain-language message naming the provider and a concrete remedy. Rules are
checked in a fixed priority order and the first match wins, which settles
substrings that could match more than one category.

``describe_generation_failure`` is the orchestrator-level wrapper: it gives
deadline expiry and in-process aborts their own phrasing before delegating to
``classify``.
"""
from __future__ import annotations

from typing import Callable, List, Optional, Tuple

_BUILT_IN_KEY_HINT = " Consider adding your own API keys in settings for better reliability."


def _message_of(raw_error: object) -> Tuple[str, str]:
    """Return ``(message, string_form)`` for any raised value."""
    if isinstance(raw_error, BaseException):
        message = getattr(raw_error, "message", None)
        if not isinstance(message, str):
            message = str(raw_error)
        return message, str(raw_error)
    return "Unknown error", str(raw_error)


def _any(message: str, *needles: str) -> bool:
    return any(n in message for n in needles)


def _key_branch(using_user_key: bool, own: str, built_in: str) -> str:
    return own if using_user_key else built_in


def _timeout(message: str, text: str, provider: str, _own: bool) -> Optional[str]:
    if "timeout" not in message and "timeout" not in text:
        return None
    if provider == "google":
        return (
            "Google Gemini model timed out after 10 minutes. This can happen with complex requests, "
            "especially with Gemini 2.5 Pro. Try simplifying your request, using a different Gemini "
            "model (like Gemini 1.5 Pro), or retry the request."
        )
    return (
        f"Connection timeout with {provider}. The service may be temporarily unavailable or the "
        "request is taking too long. Please try again in a moment."
    )


def _aborted(message: str, _text: str, _provider: str, _own: bool) -> Optional[str]:
    if _any(message, "aborted", "cancelled"):
        return "Request was cancelled or aborted. This can happen due to timeouts or user cancellation."
    return None


def _auth(message: str, _text: str, provider: str, own: bool) -> Optional[str]:
    if not _any(message, "401", "Unauthorized"):
        return None
    return f"Authentication failed with {provider}. " + _key_branch(
        own,
        "Please check your API key in settings.",
        "The built-in API key may be invalid. Try adding your own API key in settings.",
    )


def _forbidden(message: str, _text: str, provider: str, own: bool) -> Optional[str]:
    if not _any(message, "403", "Forbidden"):
        return None
    return f"Access denied by {provider}. " + _key_branch(
        own,
        "Your API key may not have the required permissions.",
        "The built-in API key may have insufficient permissions. Try adding your own API key in settings.",
    )


def _rate_limit(message: str, _text: str, provider: str, own: bool) -> Optional[str]:
    if not _any(message, "429", "rate limit"):
        return None
    return f"Rate limit exceeded for {provider}. " + _key_branch(
        own,
        "Please wait a moment before trying again.",
        "The built-in API key has hit rate limits. Try adding your own API key in settings for unlimited usage.",
    )


def _quota(message: str, _text: str, provider: str, own: bool) -> Optional[str]:
    if not _any(message, "quota", "billing"):
        return None
    return f"Quota or billing issue with {provider}. " + _key_branch(
        own,
        "Please check your account billing and quota limits.",
        "The built-in API key may have reached its quota. Try adding your own API key in settings.",
    )


def _network(message: str, _text: str, provider: str, _own: bool) -> Optional[str]:
    if _any(message, "ECONNRESET", "network", "connection"):
        return (
            f"Network connection issue with {provider}. The service may be temporarily unavailable. "
            "Please try again in a moment."
        )
    return None


def _model_not_found(message: str, _text: str, provider: str, _own: bool) -> Optional[str]:
    if "model" in message and "not found" in message:
        return f"The requested model is not available on {provider}. Please try a different model or provider."
    return None


def _google_safety(message: str) -> Optional[str]:
    if _any(message, "SAFETY", "safety"):
        return (
            "Google Gemini blocked the request due to safety filters. "
            "Try rephrasing your request or using a different model."
        )
    if _any(message, "RECITATION", "recitation"):
        return (
            "Google Gemini blocked the request due to potential copyright concerns. "
            "Try rephrasing your request."
        )
    if "BLOCKED_REASON" in message:
        return (
            "Google Gemini blocked the request. This could be due to safety filters, content policies, "
            "or other restrictions. Try rephrasing your request."
        )
    return None


def _anthropic_safety(message: str) -> Optional[str]:
    if _any(message, "content_filter", "content filter"):
        return (
            "Anthropic Claude blocked the request due to content policy violations. "
            "Try rephrasing your request."
        )
    return None


def _openai_safety(message: str) -> Optional[str]:
    if _any(message, "content_policy", "content policy"):
        return "OpenAI blocked the request due to content policy violations. Try rephrasing your request."
    if "moderation" in message:
        return (
            "OpenAI moderation system flagged your request. "
            "Try rephrasing to avoid potentially harmful content."
        )
    return None


_SAFETY_RULES = {
    "google": _google_safety,
    "anthropic": _anthropic_safety,
    "openai": _openai_safety,
}


def _provider_safety(message: str, _text: str, provider: str, _own: bool) -> Optional[str]:
    rule = _SAFETY_RULES.get(provider)
    return rule(message) if rule is not None else None


def _empty(message: str, _text: str, provider: str, _own: bool) -> Optional[str]:
    if _any(message, "No content generated", "empty response"):
        return (
            f"{provider} didn't generate any content. This can happen if the request was blocked by "
            "safety filters or if there was an internal issue. Try rephrasing your request or using a "
            "different model."
        )
    return None


_Rule = Callable[[str, str, str, bool], Optional[str]]

# Priority order; first match wins.
RULES: List[_Rule] = [
    _timeout,
    _aborted,
    _auth,
    _forbidden,
    _rate_limit,
    _quota,
    _network,
    _model_not_found,
    _provider_safety,
    _empty,
]


def classify(raw_error: object, provider: str, using_user_key: bool) -> str:
    """Map a raw provider/transport error to a user-facing message.

    Parameters
    ----------
    raw_error: object
        The raised value. Non-exception values are treated as
        ``"Unknown error"`` for message matching.
    provider: str
        Provider identifier named in the message.
    using_user_key: bool
        Whether the caller supplied their own credentials; selects the remedy.

    Returns
    -------
    str
        A plain-language message. The last-resort fallback echoes the raw
        message with added context.
    """
    message, text = _message_of(raw_error)
    for rule in RULES:
        found = rule(message, text, provider, using_user_key)
        if found is not None:
            return found
    hint = "" if using_user_key else _BUILT_IN_KEY_HINT
    return f"Error from {provider}: {message}{hint}"


def describe_generation_failure(error: BaseException, provider: str, model: str, using_user_key: bool) -> str:
    """Return the message persisted for a failed generation.

    Deadline expiry and in-process aborts get orchestrator-specific wording;
    everything else goes through :func:`classify`.
    """
    message, _ = _message_of(error)
    if "timeout" in message:
        return (
            f"The {provider} model ({model}) timed out. This can happen with complex requests or when "
            "the model is under heavy load. Please try again or consider using a different model."
        )
    if "aborted" in message:
        return f"Request was cancelled: {message}"
    return classify(error, provider, using_user_key)


__all__ = ["classify", "describe_generation_failure", "RULES"]
