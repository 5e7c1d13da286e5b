from __future__ import annotations

import asyncio
import types

import pytest

from chat_orchestrator.base.errors import (
    CreditExhaustedError,
    ErrorCode,
    GenerationTimeoutError,
    ProviderError,
    UsageError,
    UserCancelledError,
    classify,
    classify_exception,
    describe_generation_failure,
)

HINT = " Consider adding your own API keys in settings for better reliability."


def test_rate_limit_remedy_depends_on_key_origin():
    built_in = classify(Exception("HTTP 429 Too Many Requests"), "openai", False)
    own = classify(Exception("HTTP 429 Too Many Requests"), "openai", True)

    assert built_in.startswith("Rate limit exceeded for openai. The built-in API key")  # nosec B101
    assert own == "Rate limit exceeded for openai. Please wait a moment before trying again."  # nosec B101


def test_timeout_outranks_other_matches():
    out = classify(Exception("timeout after 429 from upstream"), "groq", False)

    assert out.startswith("Connection timeout with groq.")  # nosec B101


def test_google_timeout_has_its_own_wording():
    assert classify(TimeoutError("read timeout"), "google", True).startswith(  # nosec B101
        "Google Gemini model timed out after 10 minutes."
    )


@pytest.mark.parametrize(
    "raw, provider, prefix",
    [
        ("401 Unauthorized", "anthropic", "Authentication failed with anthropic."),
        ("403 Forbidden", "mistral", "Access denied by mistral."),
        ("billing hard limit", "openai", "Quota or billing issue with openai."),
        ("ECONNRESET", "deepseek", "Network connection issue with deepseek."),
        ("model foo not found", "groq", "The requested model is not available on groq."),
        ("finish reason SAFETY", "google", "Google Gemini blocked the request due to safety filters."),
        ("RECITATION", "google", "Google Gemini blocked the request due to potential copyright"),
        ("BLOCKED_REASON_OTHER", "google", "Google Gemini blocked the request."),
        ("content_filter triggered", "anthropic", "Anthropic Claude blocked the request"),
        ("moderation flagged", "openai", "OpenAI moderation system flagged your request."),
        ("No content generated", "cohere", "cohere didn't generate any content."),
        ("request aborted", "openai", "Request was cancelled or aborted."),
    ],
)
def test_rule_table(raw, provider, prefix):
    assert classify(Exception(raw), provider, True).startswith(prefix)  # nosec B101


def test_safety_rules_are_provider_specific():
    assert classify(Exception("safety"), "groq", True) == "Error from groq: safety"  # nosec B101


def test_fallback_echoes_message_with_hint_for_built_in_key():
    assert classify(Exception("weird"), "grok", False) == "Error from grok: weird" + HINT  # nosec B101
    assert classify(Exception("weird"), "grok", True) == "Error from grok: weird"  # nosec B101


def test_non_exception_values_use_unknown_error():
    assert classify("boom", "openai", True) == "Error from openai: Unknown error"  # nosec B101


def test_provider_error_message_is_matched():
    err = ProviderError(code=ErrorCode.UNKNOWN, message="429 slow down", provider="openrouter")

    assert classify(err, "openrouter", True).startswith("Rate limit exceeded for openrouter.")  # nosec B101


def test_generation_timeout_names_provider_and_model():
    out = describe_generation_failure(GenerationTimeoutError(300), "openai", "gpt-4o", False)

    assert out.startswith("The openai model (gpt-4o) timed out.")  # nosec B101


def test_user_abort_keeps_reason():
    out = describe_generation_failure(UserCancelledError("Stream aborted: Cancelled by user"), "openai", "m", False)

    assert out == "Request was cancelled: Stream aborted: Cancelled by user"  # nosec B101


def test_describe_delegates_to_classify():
    assert describe_generation_failure(Exception("weird"), "groq", "m", True) == "Error from groq: weird"  # nosec B101


def test_classify_exception_passthrough_and_error_codes():
    assert classify_exception(ProviderError(code=ErrorCode.AUTH, message="x", provider="p")) is ErrorCode.AUTH  # nosec B101
    assert classify_exception(CreditExhaustedError(10, 1)) is ErrorCode.INSUFFICIENT_CREDITS  # nosec B101
    assert classify_exception(UsageError("limit", error_code=ErrorCode.QUOTA)) is ErrorCode.QUOTA  # nosec B101
    assert classify_exception(asyncio.TimeoutError()) is ErrorCode.TIMEOUT  # nosec B101
    assert classify_exception(asyncio.CancelledError()) is ErrorCode.CANCELLED  # nosec B101


def test_classify_exception_status_shapes():
    assert classify_exception(types.SimpleNamespace(status_code=404)) is ErrorCode.NOT_FOUND  # nosec B101
    assert classify_exception(types.SimpleNamespace(code=429)) is ErrorCode.RATE_LIMIT  # nosec B101
    resp = types.SimpleNamespace(response=types.SimpleNamespace(status_code=503))
    assert classify_exception(resp) is ErrorCode.UNAVAILABLE  # nosec B101


def test_classify_exception_heuristics():
    assert classify_exception(Exception("rate limit exceeded")) is ErrorCode.RATE_LIMIT  # nosec B101
    assert classify_exception(Exception("blocked for safety")) is ErrorCode.CONTENT_FILTER  # nosec B101
    assert classify_exception(Exception("random")) is ErrorCode.UNKNOWN  # nosec B101
