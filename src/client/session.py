"""Chat session controller.

Ties user input, the message store, the streaming chat request and UI state
together. One request may be in flight at a time; a send while streaming is
ignored, never queued.

State per request: idle -> streaming -> idle | error.
"""

import asyncio
import logging
import time
import uuid
from collections.abc import Callable, MutableMapping
from contextlib import aclosing
from enum import Enum
from typing import Any

import httpx

from src.client.store import MessageStore
from src.models.schemas import ChatMessage, CompleteEvent, DeltaEvent, ErrorEvent
from src.parsing.ndjson import NDJSON_MEDIA_TYPE, decode_stream

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"
HEALTH_PATH = "/api/health"
HEALTH_CHECK_INTERVAL = 30.0
REQUEST_TIMEOUT = 120.0


class SessionState(str, Enum):
    """Controller states."""

    IDLE = "idle"
    STREAMING = "streaming"
    ERROR = "error"


class ChatRequestError(Exception):
    """Raised when a chat request fails on the server or in transit."""


def _new_id() -> str:
    return uuid.uuid4().hex


def _now_ms() -> int:
    return int(time.time() * 1000)


def _error_detail(response: httpx.Response) -> str:
    """Extract the error message from a failed API response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, str) and detail:
        return detail
    return f"HTTP {response.status_code}"


class ChatSessionController:
    """Client-side orchestrator for one conversation.

    Attributes:
        store: Conversation history, persisted to the storage collaborator.
        state: Current SessionState.
        error: Message of the last failed request, if any.
        streaming_message_id: Id of the assistant placeholder being filled.
        is_healthy: Result of the last health probe.
    """

    def __init__(
        self,
        storage: MutableMapping[str, Any],
        *,
        base_url: str = "http://127.0.0.1:8000",
        client: httpx.AsyncClient | None = None,
        on_change: Callable[[], None] | None = None,
        request_timeout: float | None = REQUEST_TIMEOUT,
    ) -> None:
        self.store = MessageStore(storage)
        self.state = SessionState.IDLE
        self.error: str | None = None
        self.streaming_message_id: str | None = None
        self.is_healthy = False

        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(10.0, read=None),
        )
        self._on_change = on_change
        self._request_timeout = request_timeout
        self._task: asyncio.Task[None] | None = None
        self._stopped_task: asyncio.Task[None] | None = None

    @property
    def is_streaming(self) -> bool:
        return self.state is SessionState.STREAMING

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()

    async def send_message(self, content: str) -> None:
        """Send a user message and stream the assistant's reply into the store."""
        text = content.strip()
        if not text or self.is_streaming:
            return

        history = [
            {"role": m.role, "content": m.content}
            for m in self.store
            if m.content.strip()
        ]
        user_message = ChatMessage(id=_new_id(), role="user", content=text, timestamp=_now_ms())
        placeholder = ChatMessage(id=_new_id(), role="assistant", content="", timestamp=_now_ms())
        history.append({"role": "user", "content": text})

        self.store.append(user_message, placeholder)
        self.state = SessionState.STREAMING
        self.error = None
        self.streaming_message_id = placeholder.id
        self._notify()

        task = asyncio.create_task(self._stream_reply(history, placeholder.id))
        self._task = task
        try:
            await task
        except asyncio.CancelledError:
            if self._stopped_task is not task:
                self._settle_cancelled(placeholder.id)
                raise
        except TimeoutError:
            logger.warning(f"Chat request timed out after {self._request_timeout}s")
            self._settle_cancelled(placeholder.id)
        except ChatRequestError as e:
            self._fail(placeholder.id, str(e))
        except httpx.HTTPError as e:
            self._fail(placeholder.id, f"Connection failed: {e}")
        else:
            self._settle(placeholder.id, SessionState.IDLE)
        finally:
            if self._task is task:
                self._task = None

    async def _stream_reply(self, history: list[dict[str, str]], placeholder_id: str) -> None:
        async with asyncio.timeout(self._request_timeout):
            await self._consume(history, placeholder_id)

    async def _consume(self, history: list[dict[str, str]], placeholder_id: str) -> None:
        accumulated = ""
        async with self._client.stream(
            "POST",
            CHAT_PATH,
            json={"messages": history},
            headers={"Accept": NDJSON_MEDIA_TYPE},
        ) as response:
            if response.is_error:
                await response.aread()
                raise ChatRequestError(_error_detail(response))

            async with aclosing(decode_stream(response.aiter_bytes())) as events:
                async for event in events:
                    if isinstance(event, DeltaEvent):
                        accumulated += event.content
                        self.store.append_content(placeholder_id, event.content)
                        self._notify()
                    elif isinstance(event, CompleteEvent):
                        final_text = event.response.text()
                        self.store.replace_content(
                            placeholder_id,
                            final_text if final_text is not None else accumulated,
                        )
                        return
                    elif isinstance(event, ErrorEvent):
                        raise ChatRequestError(event.error)

        logger.warning("Chat stream ended without a final event")

    def stop_streaming(self) -> None:
        """Cancel the in-flight request, keeping any text already received."""
        if not self.is_streaming:
            return
        if self._task is not None:
            self._stopped_task = self._task
            self._task.cancel()
        if self.streaming_message_id is not None:
            self._settle_cancelled(self.streaming_message_id)

    def _is_current(self, placeholder_id: str) -> bool:
        return self.is_streaming and self.streaming_message_id == placeholder_id

    def _settle_cancelled(self, placeholder_id: str) -> None:
        if not self._is_current(placeholder_id):
            return
        message = self.store.get(placeholder_id)
        if message is not None and not message.content:
            self.store.remove(placeholder_id)
        self._settle(placeholder_id, SessionState.IDLE)

    def _fail(self, placeholder_id: str, error: str) -> None:
        if not self._is_current(placeholder_id):
            return
        logger.error(f"Chat request failed: {error}")
        message = self.store.get(placeholder_id)
        if message is not None:
            annotated = f"{message.content}\n\nError: {error}" if message.content else f"Error: {error}"
            self.store.replace_content(placeholder_id, annotated)
        self.error = error
        self._settle(placeholder_id, SessionState.ERROR)

    def _settle(self, placeholder_id: str, state: SessionState) -> None:
        # Ignore late outcomes of a request that was already stopped or reset
        if not self._is_current(placeholder_id):
            return
        self.state = state
        self.streaming_message_id = None
        self._notify()

    def reset_chat(self) -> None:
        """Stop any stream and forget the conversation."""
        if self.is_streaming:
            self.stop_streaming()
        self.store.clear()
        self.error = None
        self.state = SessionState.IDLE
        self._notify()

    async def check_health(self) -> bool:
        """Probe the API's health endpoint."""
        try:
            response = await self._client.get(HEALTH_PATH)
            body = response.json() if response.status_code == 200 else None
            self.is_healthy = isinstance(body, dict) and body.get("status") == "ok"
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Health check failed: {e}")
            self.is_healthy = False
        return self.is_healthy

    async def aclose(self) -> None:
        self.stop_streaming()
        if self._owns_client:
            await self._client.aclose()
