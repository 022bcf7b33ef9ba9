"""LLM provider abstraction module."""

from ask.providers.base import LLMProvider, LLMResponse
from ask.providers.litellm_provider import LiteLLMProvider

__all__ = ["LLMProvider", "LLMResponse", "LiteLLMProvider"]
