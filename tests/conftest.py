"""Shared fixtures for ask tests."""

from datetime import datetime, timedelta
from typing import Any

import pytest

from ask.providers.base import LLMProvider, LLMResponse
from ask.session.store import ConversationStore, Message


class RecordingProvider(LLMProvider):
    """Provider double that records calls and replays canned replies."""

    def __init__(self, replies: list[str] | None = None, error: Exception | None = None) -> None:
        super().__init__(api_key=None, api_base=None)
        self.replies = list(replies or ["ok"])
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def chat(
        self,
        messages: list[dict[str, Any]],
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> LLMResponse:
        self.calls.append(
            {
                "messages": messages,
                "model": model,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
        )
        if self.error is not None:
            raise self.error
        content = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        return LLMResponse(content=content)

    def get_default_model(self) -> str:
        return "test-model"


def make_store(count: int = 0, *, directory: str = "/tmp/project", content: str = "msg") -> ConversationStore:
    """Store with ``count`` alternating user/assistant messages, oldest first."""
    store = ConversationStore(directory=directory)
    start = datetime.now() - timedelta(minutes=count)
    for i in range(count):
        role = "user" if i % 2 == 0 else "assistant"
        store.messages.append(
            Message(role=role, content=f"{content} {i}", timestamp=start + timedelta(minutes=i))
        )
    store.refresh_metadata()
    return store


@pytest.fixture
def provider():
    return RecordingProvider()


@pytest.fixture
def context_dir(tmp_path):
    return tmp_path / "contexts"
