from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from src.models.provider import ProviderMessage

Role = Literal["user", "assistant"]


class ChatMessage(BaseModel):
    """A conversation turn as held by the client.

    Attributes:
        id: Opaque identifier, stable for the lifetime of the message.
        role: Who wrote the message (user or assistant).
        content: Message text; grows while an assistant reply streams in.
        timestamp: Creation time in epoch milliseconds.
    """

    id: str
    role: Role
    content: str
    timestamp: int | None = None


class ConversationMessage(BaseModel):
    """A single message sent to the relay."""

    role: Role
    content: str = Field(..., min_length=1)


class ChatRequest(BaseModel):
    """Request payload for the chat endpoints.

    Attributes:
        messages: Conversation so far, oldest first, ending with the new user turn.
        channel_id: Channel to publish on (channel mode only).
    """

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ConversationMessage]
    channel_id: str | None = Field(None, alias="channelId", min_length=1)


class DeltaEvent(BaseModel):
    """Incremental text fragment."""

    type: Literal["delta"] = "delta"
    content: str


class CompleteEvent(BaseModel):
    """Final structured provider message; always the last event on success."""

    type: Literal["complete"] = "complete"
    response: ProviderMessage


class ErrorEvent(BaseModel):
    """Failure while relaying; always the last event on failure."""

    type: Literal["error"] = "error"
    error: str


StreamEvent = Annotated[DeltaEvent | CompleteEvent | ErrorEvent, Field(discriminator="type")]

stream_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


def is_terminal(event: StreamEvent) -> bool:
    """Return True for events that end a stream."""
    return event.type != "delta"


class ChannelAck(BaseModel):
    """Immediate reply of the channel-mode send endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    channel_id: str = Field(..., alias="channelId")


class HealthResponse(BaseModel):
    """Liveness probe payload.

    Attributes:
        status: Always "ok" when the server answers.
        timestamp: Current server time, ISO-8601.
        version: Application version.
        active_channels: Channels currently held by the registry.
    """

    model_config = ConfigDict(populate_by_name=True)

    status: Literal["ok"] = "ok"
    timestamp: str
    version: str
    active_channels: int = Field(0, alias="activeChannels")
