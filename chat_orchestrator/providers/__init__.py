"""Provider adapter registry, thinking configuration and model handles."""

from .registry import BuiltModel, ProviderConstructor, ProviderRegistry, builtin_constructors
from .thinking import has_native_thinking, reasoning_tag, thinking_options

__all__ = [
    "BuiltModel",
    "ProviderConstructor",
    "ProviderRegistry",
    "builtin_constructors",
    "has_native_thinking",
    "reasoning_tag",
    "thinking_options",
]
