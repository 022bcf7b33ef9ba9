"""Tests for the LiteLLM provider wrapper."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from ask.errors import ProviderCallError
from ask.providers.litellm_provider import LiteLLMProvider


def _completion(content="hello", finish_reason="stop", usage=None):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content), finish_reason=finish_reason)],
        usage=usage,
    )


def _provider(**kwargs) -> LiteLLMProvider:
    kwargs.setdefault("api_key", "sk-test")
    kwargs.setdefault("retry_backoff", 0)
    return LiteLLMProvider(**kwargs)


@pytest.mark.asyncio
async def test_chat_returns_content():
    usage = SimpleNamespace(prompt_tokens=10, completion_tokens=2, total_tokens=12)
    mock = AsyncMock(return_value=_completion("hi there", usage=usage))

    with patch("ask.providers.litellm_provider.acompletion", mock):
        response = await _provider().chat([{"role": "user", "content": "hi"}], max_tokens=100, temperature=0.2)

    assert response.content == "hi there"
    assert response.usage["total_tokens"] == 12
    kwargs = mock.await_args.kwargs
    assert kwargs["model"] == "gpt-4o"
    assert kwargs["api_key"] == "sk-test"
    assert kwargs["max_tokens"] == 100
    assert kwargs["temperature"] == 0.2
    assert kwargs["timeout"] == 60.0
    assert "api_base" not in kwargs


@pytest.mark.asyncio
async def test_retries_then_succeeds():
    mock = AsyncMock(side_effect=[RuntimeError("503"), RuntimeError("503"), _completion("ok")])

    with patch("ask.providers.litellm_provider.acompletion", mock):
        response = await _provider().chat([{"role": "user", "content": "hi"}])

    assert response.content == "ok"
    assert mock.await_count == 3


@pytest.mark.asyncio
async def test_gives_up_after_max_retries():
    mock = AsyncMock(side_effect=RuntimeError("connection refused"))

    with patch("ask.providers.litellm_provider.acompletion", mock):
        with pytest.raises(ProviderCallError, match="failed after 3 attempts: connection refused"):
            await _provider().chat([{"role": "user", "content": "hi"}])

    assert mock.await_count == 3


@pytest.mark.asyncio
async def test_backoff_grows_quadratically():
    mock = AsyncMock(side_effect=RuntimeError("boom"))
    sleep = AsyncMock()

    with patch("ask.providers.litellm_provider.acompletion", mock), \
            patch("ask.providers.litellm_provider.asyncio.sleep", sleep):
        with pytest.raises(ProviderCallError):
            await _provider(retry_backoff=1.0).chat([{"role": "user", "content": "hi"}])

    assert [c.args[0] for c in sleep.await_args_list] == [1.0, 4.0]


@pytest.mark.asyncio
async def test_empty_choices_is_an_error():
    mock = AsyncMock(return_value=SimpleNamespace(choices=[], usage=None))

    with patch("ask.providers.litellm_provider.acompletion", mock):
        with pytest.raises(ProviderCallError):
            await _provider(max_retries=1).chat([{"role": "user", "content": "hi"}])


@pytest.mark.asyncio
async def test_missing_content_is_an_error():
    mock = AsyncMock(return_value=_completion(content=None))

    with patch("ask.providers.litellm_provider.acompletion", mock):
        with pytest.raises(ProviderCallError):
            await _provider(max_retries=1).chat([{"role": "user", "content": "hi"}])


@pytest.mark.asyncio
async def test_custom_endpoint_routes_through_openai_adapter():
    mock = AsyncMock(return_value=_completion())
    provider = _provider(api_base="http://localhost:11434/v1/chat/completions", default_model="llama3")

    with patch("ask.providers.litellm_provider.acompletion", mock):
        await provider.chat([{"role": "user", "content": "hi"}])

    kwargs = mock.await_args.kwargs
    assert kwargs["api_base"] == "http://localhost:11434/v1"
    assert kwargs["model"] == "openai/llama3"


def test_prefixed_model_is_left_alone():
    provider = _provider(api_base="http://localhost:4000")

    assert provider._resolve_model("anthropic/claude-sonnet-4-5") == "anthropic/claude-sonnet-4-5"


@pytest.mark.parametrize(
    "model,api_base,expected",
    [
        ("gpt-4o", None, False),
        ("claude-sonnet-4-5", None, True),
        ("anthropic/claude-haiku", None, True),
        ("gpt-4o", "https://api.anthropic.com/v1", True),
    ],
)
def test_supports_prompt_caching(model, api_base, expected):
    assert _provider(default_model=model, api_base=api_base).supports_prompt_caching() is expected


def test_cache_control_wraps_system_content():
    provider = _provider(default_model="claude-sonnet-4-5")
    messages = [
        {"role": "system", "content": "sys", "cache_control": {"type": "ephemeral"}},
        {"role": "user", "content": "hi", "cache_control": {"type": "ephemeral"}},
    ]

    out = provider._apply_cache_control(messages)

    assert out[0]["content"] == [{"type": "text", "text": "sys", "cache_control": {"type": "ephemeral"}}]
    assert "cache_control" not in out[0]
    assert out[1] == {"role": "user", "content": "hi"}
    # Input is not mutated
    assert messages[0]["content"] == "sys"


def test_cache_control_dropped_for_other_providers():
    messages = [{"role": "system", "content": "sys", "cache_control": {"type": "ephemeral"}}]

    out = _provider(default_model="gpt-4o")._apply_cache_control(messages)

    assert out == [{"role": "system", "content": "sys"}]
