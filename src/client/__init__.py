"""Chat client logic behind the web UI.

Responsibilities:
    - Conversation history with write-through persistence
    - Sending conversations to the relay and folding streamed events in
    - Cancellation, request timeout and error annotation
    - Periodic API liveness probing

Has no UI dependencies; the NiceGUI page only renders its state.
"""

from src.client.session import (
    HEALTH_CHECK_INTERVAL,
    ChatRequestError,
    ChatSessionController,
    SessionState,
)
from src.client.store import STORAGE_KEY, MessageStore

__all__ = [
    "HEALTH_CHECK_INTERVAL",
    "STORAGE_KEY",
    "ChatRequestError",
    "ChatSessionController",
    "MessageStore",
    "SessionState",
]
