"""Relay from the model provider to a response stream.

Guarantees for every relayed request:
    - exactly one provider streaming call
    - deltas pass through as they arrive
    - exactly one terminal event (complete or error), nothing after it
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import aclosing

from src.models.schemas import ConversationMessage, ErrorEvent, StreamEvent, is_terminal
from src.parsing.ndjson import encode_event
from src.provider.base import ChatProvider

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Failed to generate response"


def _error_message(error: Exception) -> str:
    return str(error) or DEFAULT_ERROR_MESSAGE


async def relay_chat(
    provider: ChatProvider,
    messages: list[ConversationMessage],
) -> AsyncGenerator[StreamEvent]:
    """Relay one provider stream.

    Args:
        provider: Provider to call.
        messages: Validated conversation.

    Yields:
        Delta events, then one complete or error event.
    """
    deltas = 0
    try:
        async with aclosing(provider.stream_chat(messages)) as stream:
            async for event in stream:
                if is_terminal(event):
                    logger.info(f"Relay finished with {event.type} after {deltas} deltas")
                    yield event
                    return
                deltas += 1
                yield event
    except Exception as e:
        logger.exception("Provider stream failed")
        yield ErrorEvent(error=_error_message(e))
        return

    logger.warning(f"Provider stream ended after {deltas} deltas without a final message")
    yield ErrorEvent(error="Provider stream ended without a final message")


async def stream_ndjson(events: AsyncGenerator[StreamEvent]) -> AsyncGenerator[bytes]:
    """Encode relayed events as NDJSON frames.

    An event that cannot be encoded is replaced by an error frame, which
    ends the stream.
    """
    async with aclosing(events):
        async for event in events:
            try:
                frame = encode_event(event)
            except Exception as e:
                logger.exception(f"Failed to encode {event.type} event")
                yield encode_event(ErrorEvent(error=_error_message(e)))
                return
            yield frame
            if is_terminal(event):
                return
