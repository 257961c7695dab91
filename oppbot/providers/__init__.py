"""LLM provider abstraction module."""

from oppbot.providers.base import LLMProvider, LLMResponse
from oppbot.providers.litellm_provider import LiteLLMProvider

__all__ = ["LLMProvider", "LLMResponse", "LiteLLMProvider"]
