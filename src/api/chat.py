"""Chat relay endpoints.

Direct mode streams the relayed response on the same HTTP response. Channel
mode acknowledges immediately and publishes the response on a channel that
clients drain through the subscribe endpoint.

Both modes stream newline-delimited JSON StreamEvents.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from src.api.dependencies import get_channel_registry, get_provider
from src.models.schemas import ChannelAck, ChatRequest, ConversationMessage
from src.parsing.ndjson import NDJSON_MEDIA_TYPE
from src.provider.base import ChatProvider
from src.relay.channels import ChannelBusyError, ChannelRegistry
from src.relay.conversation import ConversationError, prepare_conversation
from src.relay.relay import relay_chat, stream_ndjson

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",  # Disable proxy buffering
}


def _prepare(request: ChatRequest) -> list[ConversationMessage]:
    """Sanitize and validate the conversation.

    Raises:
        HTTPException: 400 with the validation message.
    """
    try:
        return prepare_conversation(request.messages)
    except ConversationError as e:
        logger.warning(f"Rejected conversation: {e}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e


def _ndjson_response(body) -> StreamingResponse:
    return StreamingResponse(body, media_type=NDJSON_MEDIA_TYPE, headers=STREAM_HEADERS)


@router.post("")
async def chat(
    request: ChatRequest,
    provider: ChatProvider = Depends(get_provider),
) -> StreamingResponse:
    """Relay a conversation and stream the reply.

    Returns an NDJSON stream of events:
    - {"type": "delta", "content": ...} for each text fragment
    - {"type": "complete", "response": ...} with the provider's final message
    - {"type": "error", "error": ...} if the provider call fails

    Raises:
        400: Malformed request or invalid conversation (no provider call made).
    """
    messages = _prepare(request)
    logger.info(f"Relaying conversation of {len(messages)} messages")
    return _ndjson_response(stream_ndjson(relay_chat(provider, messages)))


@router.post("/channel", response_model=ChannelAck)
async def send_to_channel(
    request: ChatRequest,
    provider: ChatProvider = Depends(get_provider),
    channels: ChannelRegistry = Depends(get_channel_registry),
) -> ChannelAck:
    """Start relaying a conversation onto a channel.

    Returns immediately with the channel id; events are delivered through
    GET /api/chat/channel/{channel_id}.

    Raises:
        400: Malformed request or invalid conversation.
        409: The channel already has a response streaming.
    """
    messages = _prepare(request)
    channel_id = request.channel_id or str(uuid.uuid4())

    try:
        channels.start(channel_id, relay_chat(provider, messages))
    except ChannelBusyError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    logger.info(f"Relaying conversation of {len(messages)} messages on channel {channel_id}")
    return ChannelAck(channel_id=channel_id)


@router.get("/channel/{channel_id}")
async def subscribe_channel(
    channel_id: str,
    channels: ChannelRegistry = Depends(get_channel_registry),
) -> StreamingResponse:
    """Stream every event published on a channel, past and future.

    Subscribing before the send is allowed and waits for the producer. A
    channel that failed recently answers with its error event right away.
    """
    logger.info(f"New subscriber on channel {channel_id}")
    return _ndjson_response(stream_ndjson(channels.subscribe(channel_id)))
