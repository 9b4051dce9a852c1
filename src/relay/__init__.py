"""Relay between the chat API and the model provider.

Responsibilities:
    - Conversation sanitization and validation before any provider call
    - Relaying provider deltas and the final message as stream events
    - Converting provider failures into a single error event
    - Channel mode: broadcasting a relayed stream to independent subscribers
"""

from src.relay.channels import Channel, ChannelBusyError, ChannelRegistry
from src.relay.conversation import (
    ConversationError,
    prepare_conversation,
    sanitize_messages,
    validate_conversation,
)
from src.relay.relay import relay_chat, stream_ndjson

__all__ = [
    "Channel",
    "ChannelBusyError",
    "ChannelRegistry",
    "ConversationError",
    "prepare_conversation",
    "relay_chat",
    "sanitize_messages",
    "stream_ndjson",
    "validate_conversation",
]
