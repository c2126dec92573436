"""LLM provider implementations."""

from .base import BaseLLMProvider, LLMProviderConfig
from .anthropic import AnthropicProvider
from .openai import OpenAIProvider

__all__ = [
    "BaseLLMProvider",
    "LLMProviderConfig",
    "AnthropicProvider",
    "OpenAIProvider",
]
