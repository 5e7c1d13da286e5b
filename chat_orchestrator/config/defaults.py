"""chat_orchestrator.config.defaults
=================================

Central place for small, stable default values used across the orchestrator
package and the lightweight service layer. These defaults can be overridden
via environment variables or external configuration, but provide sensible
fallbacks for local development and tests.

Module Purpose
--------------
- Provide a single import location for default constants (no I/O).
- Keep orchestration and service layers free of magic literals.

This module avoids importing from other orchestrator packages to prevent
circular dependencies. Only plain constants live here.
"""

from __future__ import annotations

from typing import Dict, List

# ---- Providers ----

SUPPORTED_PROVIDERS: List[str] = [
    "openai",
    "google",
    "anthropic",
    "openrouter",
    "groq",
    "deepseek",
    "grok",
    "cohere",
    "mistral",
]

# Provider used when a request does not name one.
DEFAULT_PROVIDER = "openai"

PROVIDER_BASE_URLS: Dict[str, str] = {
    "openai": "https://api.openai.com/v1",
    "google": "https://generativelanguage.googleapis.com/",
    "anthropic": "https://api.anthropic.com",
    "openrouter": "https://openrouter.ai/api/v1",
    "groq": "https://api.groq.com/openai/v1",
    "deepseek": "https://api.deepseek.com/v1",
    "grok": "https://api.x.ai/v1",
    # Cohere's OpenAI-compatible surface; the native v1 API speaks a different schema.
    "cohere": "https://api.cohere.ai/compatibility/v1",
    "mistral": "https://api.mistral.ai/v1",
}

# Ordered model lists; the first entry is the provider's default model.
PROVIDER_MODELS: Dict[str, List[str]] = {
    "openai": [
        "o3-mini",
        "o4-mini",
        "o3",
        "o1",
        "gpt-4.1",
        "gpt-4.1-mini",
        "gpt-4.1-nano",
        "gpt-4o",
        "gpt-4o-mini",
    ],
    "google": [
        "gemini-2.5-pro",
        "gemini-2.5-flash-preview-05-20",
        "gemini-2.5-flash-lite-preview-06-17",
        "gemini-2.0-flash",
        "gemini-2.0-flash-lite",
        "gemini-1.5-pro",
        "gemini-1.5-flash",
    ],
    "anthropic": [
        "claude-sonnet-4-0",
        "claude-opus-4-0",
        "claude-3-7-sonnet-latest",
        "claude-3-5-sonnet-latest",
        "claude-3-5-haiku-latest",
        "claude-3-opus-latest",
    ],
    "openrouter": [
        "deepseek/deepseek-chat-v3-0324:free",
        "deepseek/deepseek-r1-0528:free",
        "deepseek/deepseek-r1:free",
        "microsoft/phi-4-reasoning-plus:free",
        "qwen/qwen3-30b-a3b:free",
        "anthropic/claude-3.5-sonnet",
        "openai/gpt-4o",
        "meta-llama/llama-3.1-405b-instruct",
    ],
    "groq": [
        "deepseek-r1-distill-llama-70b",
        "llama-3.3-70b-versatile",
        "qwen-qwq-32b",
        "qwen/qwen3-32b",
        "meta-llama/llama-4-scout-17b-16e-instruct",
        "llama-3.1-8b-instant",
    ],
    "deepseek": ["deepseek-chat", "deepseek-reasoner"],
    "grok": ["grok-3-beta", "grok-3-mini-beta", "grok-2-vision-1212", "grok-beta"],
    "cohere": ["command-a-03-2025", "command-r7b-12-2024", "command-r-plus", "command-r"],
    "mistral": [
        "magistral-medium-2506",
        "magistral-small-2506",
        "mistral-medium-2505",
        "mistral-small-2503",
        "pixtral-12b-2409",
        "mistral-large-latest",
        "codestral-latest",
    ],
}

# Used when a provider has no configured model list.
FALLBACK_MODEL = "gemini-2.5-flash-preview-05-20"

# Providers whose native API exposes structured thinking controls.
NATIVE_THINKING_PROVIDERS = ("openai", "anthropic", "google")


# ---- Generation ----

DEFAULT_TEMPERATURE = 1.0
# Upper bound on model -> tool -> model round trips per generation.
DEFAULT_MAX_STEPS = 25

# Seconds before the in-process abort fires.
DEFAULT_TIMEOUT_SECONDS = 300.0
SLOW_PROVIDER_TIMEOUT_SECONDS = 600.0
SLOW_PROVIDERS = ("google",)

# Pause between stream event iterations; a throughput knob, not a contract.
STREAM_THROTTLE_SECONDS = 0.01

# Pre-flight estimation.
CHARS_PER_TOKEN = 4
ESTIMATED_OUTPUT_TOKENS = 2000

# Thinking defaults per provider family.
DEFAULT_REASONING_EFFORT = "medium"
REASONING_EFFORT_LEVELS = ("low", "medium", "high")
DEFAULT_ANTHROPIC_THINKING_BUDGET = 15000
DEFAULT_GOOGLE_THINKING_BUDGET = 2048
# Anthropic requires max_tokens above the thinking budget.
ANTHROPIC_MAX_OUTPUT_TOKENS = 8192


# ---- Usage / credits ----

# 1 credit = $0.01
CREDITS_PER_DOLLAR = 100
USAGE_RESET_PERIOD_DAYS = 30
DEFAULT_PLAN = "free"

PLAN_LIMITS: Dict[str, Dict[str, float]] = {
    "free": {"credits": 100, "searches": 10, "max_spending_dollars": 1.0},
    "pro": {"credits": 500, "searches": 200, "max_spending_dollars": 8.0},
    "ultra": {"credits": 2500, "searches": 1000, "max_spending_dollars": 20.0},
}

# Dollars per 1K tokens when the catalog has no pricing for a model.
FALLBACK_PRICE_PER_1K_INPUT = 0.001
FALLBACK_PRICE_PER_1K_OUTPUT = 0.003


# ---- Fixed user-facing text ----

EMPTY_RESPONSE_FALLBACK = (
    "I apologize, but I couldn't generate a response. The model may have returned "
    "empty content or encountered an issue during generation."
)
STOPPED_BY_USER_TEXT = "Generation was stopped by user."
USER_INSTRUCTIONS_LABEL = "\n\nAdditional user instructions:\n"

DEFAULT_SYSTEM_PROMPT = (
    "You are Orchestra, a highly capable and versatile AI assistant designed to help users "
    "with a wide range of tasks and conversations. You can engage in natural dialogue, answer "
    "questions, provide explanations, help with creative writing, coding, analysis, "
    "problem-solving, and much more.\n\n"
    "## Core Capabilities\n"
    "- **General Conversation**: You can chat naturally about any topic, tell jokes, share "
    "stories, provide entertainment, and engage in casual conversation without needing any tools\n"
    "- **Knowledge & Information**: You have extensive knowledge across many domains and can "
    "answer questions directly from your training\n"
    "- **Creative Tasks**: Writing, brainstorming, creative problem-solving, storytelling, and "
    "artistic guidance\n"
    "- **Technical Help**: Coding, debugging, system administration, technical explanations\n"
    "- **Analysis & Reasoning**: Breaking down complex problems, logical reasoning, "
    "decision-making support\n\n"
    "## Tool Usage Guidelines\n"
    "You have access to specialized tools, but use them strategically:\n"
    "- **Only use tools when you genuinely need real-time/current information or specialized "
    "capabilities**\n"
    "- **Don't use tools for things you can answer directly** (like jokes, explanations, general "
    "knowledge, creative tasks)\n"
    "- **Thinking**: For genuinely complex, multi-step problems that benefit from structured analysis\n"
    "- **Date & time**: When the answer depends on the current date or time\n\n"
    "## Communication Style\n"
    "- Be natural, friendly, and conversational\n"
    "- Adapt your tone to match the user's style and needs\n"
    "- Provide clear, helpful responses\n"
    "- Ask follow-up questions when clarification would be helpful\n"
    "- Be concise but thorough\n\n"
    "Remember: You're a capable AI assistant who can handle most requests directly. Tools are "
    "there to enhance your capabilities when needed, not replace your core conversational and "
    "analytical abilities."
)


# ---- Attachments ----

# Opaque storage identifiers are lowercase alphanumerics of at least 28 chars.
STORAGE_ID_PATTERN = r"^[a-z0-9]{28,}$"
DEFAULT_FILE_MIME_TYPE = "application/octet-stream"
DEFAULT_AUDIO_MIME_TYPE = "audio/mpeg"
DEFAULT_VIDEO_MIME_TYPE = "video/mp4"


# ---- Service / HTTP layer ----

# Comma-separated list of allowed origins for the dev server.
SERVICE_CORS_DEFAULT_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173"

# ---- Tools ----

SEARCH_API_URL = "https://api.tavily.com/search"
SEARCH_API_KEY_ENV = "TAVILY_API_KEY"
SEARCH_MAX_RESULTS = 5
CALCULATOR_MAX_EXPRESSION_LENGTH = 100


__all__ = [
    # Providers
    "SUPPORTED_PROVIDERS",
    "DEFAULT_PROVIDER",
    "PROVIDER_BASE_URLS",
    "PROVIDER_MODELS",
    "FALLBACK_MODEL",
    "NATIVE_THINKING_PROVIDERS",
    # Generation
    "DEFAULT_TEMPERATURE",
    "DEFAULT_MAX_STEPS",
    "DEFAULT_TIMEOUT_SECONDS",
    "SLOW_PROVIDER_TIMEOUT_SECONDS",
    "SLOW_PROVIDERS",
    "STREAM_THROTTLE_SECONDS",
    "CHARS_PER_TOKEN",
    "ESTIMATED_OUTPUT_TOKENS",
    "DEFAULT_REASONING_EFFORT",
    "REASONING_EFFORT_LEVELS",
    "DEFAULT_ANTHROPIC_THINKING_BUDGET",
    "DEFAULT_GOOGLE_THINKING_BUDGET",
    "ANTHROPIC_MAX_OUTPUT_TOKENS",
    # Usage
    "CREDITS_PER_DOLLAR",
    "USAGE_RESET_PERIOD_DAYS",
    "DEFAULT_PLAN",
    "PLAN_LIMITS",
    "FALLBACK_PRICE_PER_1K_INPUT",
    "FALLBACK_PRICE_PER_1K_OUTPUT",
    # Text
    "EMPTY_RESPONSE_FALLBACK",
    "STOPPED_BY_USER_TEXT",
    "USER_INSTRUCTIONS_LABEL",
    "DEFAULT_SYSTEM_PROMPT",
    # Attachments
    "STORAGE_ID_PATTERN",
    "DEFAULT_FILE_MIME_TYPE",
    "DEFAULT_AUDIO_MIME_TYPE",
    "DEFAULT_VIDEO_MIME_TYPE",
    # Service
    "SERVICE_CORS_DEFAULT_ORIGINS",
    # Tools
    "SEARCH_API_URL",
    "SEARCH_API_KEY_ENV",
    "SEARCH_MAX_RESULTS",
    "CALCULATOR_MAX_EXPRESSION_LENGTH",
]
