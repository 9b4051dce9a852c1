"""Anthropic streaming service.

Wraps the official Anthropic SDK behind the small `ChatProvider` interface the
relay expects: text deltas while the model generates, then the final
structured message.

Notes:

1. **Fixed model and token bound** - every request uses the configured model
   identifier and `max_tokens`; clients cannot override them.

2. **Singleton** - the SDK client holds a connection pool, so one service
   instance is shared across requests via `get_provider_service()`.

3. **No error handling here** - SDK exceptions propagate. The relay converts
   them into a single error event so the HTTP layer never sees them.
"""

import logging
from collections.abc import AsyncGenerator

from anthropic import AsyncAnthropic

from src.models.provider import ProviderMessage
from src.models.schemas import CompleteEvent, ConversationMessage, DeltaEvent, StreamEvent
from src.provider.config import ProviderConfig, get_provider_config

logger = logging.getLogger(__name__)


class ProviderService:
    """Streams chat completions from the Anthropic Messages API."""

    def __init__(
        self,
        config: ProviderConfig | None = None,
        client: AsyncAnthropic | None = None,
    ) -> None:
        """Initialize the provider service.

        Args:
            config: Optional provider configuration.
                    Loads from environment if not provided.
            client: Optional preconfigured SDK client.
        """
        self._config = config or get_provider_config()
        self._client = client or self._create_client()

    def _create_client(self) -> AsyncAnthropic:
        return AsyncAnthropic(
            api_key=self._config.api_key,
            timeout=self._config.timeout,
        )

    @property
    def model_name(self) -> str:
        return self._config.model_name

    async def stream_chat(
        self,
        messages: list[ConversationMessage],
    ) -> AsyncGenerator[StreamEvent]:
        """Stream one chat completion.

        Opens exactly one provider stream. Closing this generator early
        closes the provider stream as well.

        Args:
            messages: Sanitized and validated conversation.

        Yields:
            A DeltaEvent per text fragment, then one CompleteEvent.
        """
        payload = [{"role": m.role, "content": m.content} for m in messages]

        async with self._client.messages.stream(
            model=self._config.model_name,
            max_tokens=self._config.max_tokens,
            messages=payload,
        ) as stream:
            async for event in stream:
                if event.type == "content_block_delta" and event.delta.type == "text_delta":
                    yield DeltaEvent(content=event.delta.text)

            final_message = await stream.get_final_message()

        logger.info(
            f"Provider stream finished: {len(final_message.content)} content blocks, "
            f"stop_reason={final_message.stop_reason}"
        )
        yield CompleteEvent(
            response=ProviderMessage.model_validate(final_message.model_dump(mode="json"))
        )

    async def aclose(self) -> None:
        """Release the SDK client's connections."""
        await self._client.close()


# Module-level singleton instance
_provider_service: ProviderService | None = None


def get_provider_service() -> ProviderService:
    """Get or create the global provider service.

    Returns:
        The ProviderService instance.

    Raises:
        ValidationError: If the provider configuration is invalid.
    """
    global _provider_service
    if _provider_service is None:
        _provider_service = ProviderService()
    return _provider_service


async def close_provider_service() -> None:
    """Close the global provider service if it was ever created."""
    global _provider_service
    if _provider_service is not None:
        await _provider_service.aclose()
        _provider_service = None
