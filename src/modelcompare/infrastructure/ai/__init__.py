"""LLM provider adapters."""

from modelcompare.infrastructure.ai.anthropic_adapter import AnthropicAdapter
from modelcompare.infrastructure.ai.base import ProviderAdapter
from modelcompare.infrastructure.ai.gemini_adapter import GeminiAdapter
from modelcompare.infrastructure.ai.openai_adapter import OpenAIChatAdapter

__all__ = [
    "AnthropicAdapter",
    "GeminiAdapter",
    "OpenAIChatAdapter",
    "ProviderAdapter",
]
