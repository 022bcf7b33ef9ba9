"""LiteLLM provider implementation for multi-provider support."""

import asyncio
from typing import Any

import litellm
from litellm import acompletion
from loguru import logger

from ask.errors import ProviderCallError
from ask.providers.base import LLMProvider, LLMResponse

_CACHE_CONTROL_KEY = "cache_control"
_CHAT_COMPLETIONS_SUFFIX = "/chat/completions"


class LiteLLMProvider(LLMProvider):
    """
    LLM provider using LiteLLM.

    Works with OpenAI by default, with any OpenAI-compatible endpoint when
    ``api_base`` is set, and with the other providers LiteLLM knows through
    prefixed model names (e.g. ``anthropic/claude-sonnet-4-5``).
    Transient failures are retried here so callers see one outcome.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        default_model: str = "gpt-4o",
        timeout: float = 60.0,
        max_retries: int = 3,
        retry_backoff: float = 1.0,
    ):
        super().__init__(api_key or None, self._normalize_api_base(api_base))
        self.default_model = default_model
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_backoff = retry_backoff

        # Disable LiteLLM logging noise
        litellm.suppress_debug_info = True
        # Drop unsupported parameters for providers
        litellm.drop_params = True

    @staticmethod
    def _normalize_api_base(api_base: str | None) -> str | None:
        """Accept full ``.../chat/completions`` endpoint URLs as well as base URLs."""
        if not api_base:
            return None
        base = api_base.rstrip("/")
        if base.endswith(_CHAT_COMPLETIONS_SUFFIX):
            base = base[: -len(_CHAT_COMPLETIONS_SUFFIX)]
        return base

    def _resolve_model(self, model: str) -> str:
        """Route bare model names on a custom endpoint through the OpenAI-compatible adapter."""
        if self.api_base and "/" not in model:
            return f"openai/{model}"
        return model

    def supports_prompt_caching(self) -> bool:
        target = f"{self.default_model} {self.api_base or ''}".lower()
        return "claude" in target or "anthropic" in target

    def _apply_cache_control(self, messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """
        Return copies of messages with cache hints in provider form.

        Only a hint on the leading system message is honoured: its content is
        wrapped as one text block carrying ``cache_control``. Hints anywhere
        else, or on providers without prompt caching, are dropped.
        """
        caching = self.supports_prompt_caching()
        out: list[dict[str, Any]] = []
        for idx, msg in enumerate(messages):
            hint = msg.get(_CACHE_CONTROL_KEY)
            clean = {k: v for k, v in msg.items() if k != _CACHE_CONTROL_KEY}
            if hint and caching and idx == 0 and clean.get("role") == "system":
                clean["content"] = [{"type": "text", "text": clean["content"], "cache_control": hint}]
            out.append(clean)
        return out

    async def chat(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """
        Send a chat completion request via LiteLLM.

        Args:
            messages: List of message dicts with 'role' and 'content'.
            model: Model identifier (e.g., 'gpt-4o').
            max_tokens: Maximum tokens in response.
            temperature: Sampling temperature.

        Returns:
            LLMResponse with the reply text.

        Raises:
            ProviderCallError: when every attempt failed.
        """
        kwargs: dict[str, Any] = {
            "model": self._resolve_model(model or self.default_model),
            "messages": self._apply_cache_control(messages),
            "max_tokens": max_tokens,
            "temperature": temperature,
            "timeout": self.timeout,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base

        last_error: Exception | None = None
        for attempt in range(self.max_retries):
            if attempt:
                delay = self.retry_backoff * attempt * attempt
                logger.debug(f"Retrying LLM call in {delay:.1f}s (attempt {attempt + 1}/{self.max_retries})")
                await asyncio.sleep(delay)
            try:
                response = await acompletion(**kwargs)
                return self._parse_response(response)
            except Exception as e:
                last_error = e
                logger.debug(f"LLM call attempt {attempt + 1}/{self.max_retries} failed: {e}")

        raise ProviderCallError(
            f"failed after {self.max_retries} attempts: {last_error}"
        ) from last_error

    def _parse_response(self, response: Any) -> LLMResponse:
        """Parse LiteLLM response into our standard format."""
        choices = getattr(response, "choices", None)
        if not choices:
            raise ProviderCallError("no response choices returned")

        choice = choices[0]
        content = choice.message.content
        if content is None:
            raise ProviderCallError("response contained no message content")

        usage = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return LLMResponse(
            content=content,
            finish_reason=choice.finish_reason or "stop",
            usage=usage,
        )

    def get_default_model(self) -> str:
        """Get the default model."""
        return self.default_model
