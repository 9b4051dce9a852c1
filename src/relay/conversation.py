"""Conversation sanitization and validation.

Runs before any provider call so that requests which already break the
provider's conversational contract are rejected without being billed.
"""

from collections.abc import Sequence

from src.models.schemas import ConversationMessage

MAX_MESSAGE_LENGTH = 10_000
MAX_CONVERSATION_MESSAGES = 100


class ConversationError(ValueError):
    """Raised when a conversation cannot be sent to the provider."""


def sanitize_messages(messages: Sequence[ConversationMessage]) -> list[ConversationMessage]:
    """Clean up a conversation before validation.

    Trims content, drops messages that are blank after trimming, and collapses
    each run of consecutive same-role messages down to its last message.
    Applying it twice gives the same result as applying it once.
    """
    trimmed = [
        ConversationMessage(role=m.role, content=m.content.strip())
        for m in messages
        if m.content.strip()
    ]
    return [
        m
        for i, m in enumerate(trimmed)
        if i == len(trimmed) - 1 or m.role != trimmed[i + 1].role
    ]


def validate_conversation(messages: list[ConversationMessage]) -> list[ConversationMessage]:
    """Check a sanitized conversation.

    Raises:
        ConversationError: If the conversation is empty, does not end with a
            user message, contains an oversized message, or is too long.
    """
    if not messages:
        raise ConversationError("No valid messages found")

    if messages[-1].role != "user":
        raise ConversationError("Conversation must end with a user message")

    for message in messages:
        if len(message.content) > MAX_MESSAGE_LENGTH:
            raise ConversationError("Message too long (max 10,000 characters)")

    if len(messages) > MAX_CONVERSATION_MESSAGES:
        raise ConversationError("Conversation too long (max 100 messages)")

    return messages


def prepare_conversation(messages: Sequence[ConversationMessage]) -> list[ConversationMessage]:
    """Sanitize then validate."""
    return validate_conversation(sanitize_messages(messages))
