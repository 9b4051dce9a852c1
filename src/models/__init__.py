"""Pydantic models for API requests, responses and the streaming wire format.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - ChatMessage: Conversation turn held by the client
    - ChatRequest: Incoming chat request payload
    - StreamEvent: delta / complete / error frames of a response stream
    - ProviderMessage: Final structured message from the model provider
    - HealthResponse: Liveness probe payload
"""

from src.models.provider import ProviderMessage, TextBlock, UnknownBlock
from src.models.schemas import (
    ChannelAck,
    ChatMessage,
    ChatRequest,
    CompleteEvent,
    ConversationMessage,
    DeltaEvent,
    ErrorEvent,
    HealthResponse,
    StreamEvent,
    is_terminal,
    stream_event_adapter,
)

__all__ = [
    "ChannelAck",
    "ChatMessage",
    "ChatRequest",
    "CompleteEvent",
    "ConversationMessage",
    "DeltaEvent",
    "ErrorEvent",
    "HealthResponse",
    "ProviderMessage",
    "StreamEvent",
    "TextBlock",
    "UnknownBlock",
    "is_terminal",
    "stream_event_adapter",
]
