from collections.abc import AsyncGenerator
from typing import Protocol

from src.models.schemas import ConversationMessage, StreamEvent


class ChatProvider(Protocol):
    """Anything that can stream a chat completion.

    `stream_chat` is an async generator yielding zero or more `DeltaEvent`s
    followed by one `CompleteEvent`. It raises on failure; turning failures
    into error events is the relay's job.
    """

    def stream_chat(self, messages: list[ConversationMessage]) -> AsyncGenerator[StreamEvent]: ...
