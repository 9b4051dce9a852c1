"""Ordered conversation history mirrored to a key-value storage.

The storage collaborator is any mutable mapping: NiceGUI's per-browser
`app.storage.user` in the UI, a plain dict in tests. The whole list is written
back after every mutation.
"""

import logging
from collections.abc import Iterator, MutableMapping
from typing import Any

from pydantic import TypeAdapter, ValidationError

from src.models.schemas import ChatMessage

logger = logging.getLogger(__name__)

STORAGE_KEY = "chat-messages"

_messages_adapter = TypeAdapter(list[ChatMessage])


class MessageStore:
    """Conversation turns in order, persisted on every change."""

    def __init__(self, storage: MutableMapping[str, Any], key: str = STORAGE_KEY) -> None:
        self._storage = storage
        self._key = key
        self._messages: list[ChatMessage] = self._load()

    def _load(self) -> list[ChatMessage]:
        raw = self._storage.get(self._key)
        if raw is None:
            return []
        try:
            if isinstance(raw, str | bytes):
                return _messages_adapter.validate_json(raw)
            return _messages_adapter.validate_python(raw)
        except ValidationError as e:
            logger.warning(f"Discarding unreadable saved conversation: {e.error_count()} errors")
            return []

    def _save(self) -> None:
        self._storage[self._key] = _messages_adapter.dump_json(self._messages).decode()

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(list(self._messages))

    @property
    def messages(self) -> list[ChatMessage]:
        """Snapshot of the conversation; mutate through the store only."""
        return [m.model_copy() for m in self._messages]

    def get(self, message_id: str) -> ChatMessage | None:
        for message in self._messages:
            if message.id == message_id:
                return message.model_copy()
        return None

    def _find(self, message_id: str) -> ChatMessage:
        for message in self._messages:
            if message.id == message_id:
                return message
        raise KeyError(message_id)

    def append(self, *messages: ChatMessage) -> None:
        self._messages.extend(messages)
        self._save()

    def append_content(self, message_id: str, text: str) -> None:
        """Concatenate streamed text onto a message."""
        message = self._find(message_id)
        message.content += text
        self._save()

    def replace_content(self, message_id: str, content: str) -> None:
        message = self._find(message_id)
        message.content = content
        self._save()

    def remove(self, message_id: str) -> None:
        self._messages = [m for m in self._messages if m.id != message_id]
        self._save()

    def clear(self) -> None:
        """Drop every message and the persisted copy."""
        self._messages = []
        self._storage.pop(self._key, None)
