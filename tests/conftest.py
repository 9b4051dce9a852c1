"""Pytest fixtures and shared test configuration.

Fixtures:
    - make_provider_message: Builds a final provider message with given text
    - stub_provider: Call-counting provider streaming "Hello" in two deltas
    - app: Fresh FastAPI app wired to the stub provider
    - async_client: HTTPX client for API testing
"""

from collections.abc import AsyncGenerator, Callable, Sequence

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.api.app import create_app
from src.api.dependencies import get_provider
from src.models.provider import ProviderMessage
from src.models.schemas import CompleteEvent, ConversationMessage, DeltaEvent, StreamEvent


def build_provider_message(text: str | None) -> ProviderMessage:
    content = [] if text is None else [{"type": "text", "text": text}]
    return ProviderMessage.model_validate(
        {
            "id": "msg_test",
            "type": "message",
            "role": "assistant",
            "model": "claude-test",
            "content": content,
            "stop_reason": "end_turn",
            "stop_sequence": None,
            "usage": {"input_tokens": 3, "output_tokens": 2},
        }
    )


class StubProvider:
    """Provider double streaming fixed deltas, optionally failing midway."""

    def __init__(
        self,
        deltas: Sequence[str] = ("Hel", "lo"),
        error: Exception | None = None,
    ) -> None:
        self.deltas = list(deltas)
        self.error = error
        self.calls = 0
        self.received: list[list[ConversationMessage]] = []

    async def stream_chat(self, messages: list[ConversationMessage]) -> AsyncGenerator[StreamEvent]:
        self.calls += 1
        self.received.append(messages)
        for delta in self.deltas:
            yield DeltaEvent(content=delta)
        if self.error is not None:
            raise self.error
        yield CompleteEvent(response=build_provider_message("".join(self.deltas)))


@pytest.fixture
def make_provider_message() -> Callable[[str | None], ProviderMessage]:
    """Return a factory for final provider messages."""
    return build_provider_message


@pytest.fixture
def stub_provider() -> StubProvider:
    return StubProvider()


@pytest.fixture
def app(stub_provider: StubProvider) -> FastAPI:
    """Create an app whose provider dependency is the stub.

    Returns:
        FastAPI app with its own channel registry and metrics.
    """
    application = create_app()
    application.dependency_overrides[get_provider] = lambda: stub_provider
    return application


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
