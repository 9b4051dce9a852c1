"""Provider message models.

Mirror the Anthropic Messages API `Message` payload closely enough to read the
final text back out, while passing every other field through untouched.
Unknown content block kinds fall back to `UnknownBlock` so newer provider
payloads still validate.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Tag


class _PassthroughModel(BaseModel):
    """Base for provider payloads: keep fields we do not model."""

    model_config = ConfigDict(extra="allow")


class TextBlock(_PassthroughModel):
    type: Literal["text"] = "text"
    text: str
    citations: list[dict[str, Any]] | None = None


class ToolUseBlock(_PassthroughModel):
    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: Any = None


class ServerToolUseBlock(_PassthroughModel):
    type: Literal["server_tool_use"] = "server_tool_use"
    id: str
    name: str
    input: Any = None


class WebSearchToolResultBlock(_PassthroughModel):
    """Result of a server-side web search.

    `content` is either a list of search results or an error object,
    both kept as plain dicts.
    """

    type: Literal["web_search_tool_result"] = "web_search_tool_result"
    tool_use_id: str
    content: list[dict[str, Any]] | dict[str, Any]


class ThinkingBlock(_PassthroughModel):
    type: Literal["thinking"] = "thinking"
    thinking: str
    signature: str


class RedactedThinkingBlock(_PassthroughModel):
    type: Literal["redacted_thinking"] = "redacted_thinking"
    data: str


class UnknownBlock(_PassthroughModel):
    """Any block kind not listed above."""

    type: str


_KNOWN_BLOCK_TYPES = frozenset(
    {
        "text",
        "tool_use",
        "server_tool_use",
        "web_search_tool_result",
        "thinking",
        "redacted_thinking",
    }
)


def _block_tag(value: Any) -> str:
    """Pick the union member for a raw or already-built content block."""
    block_type = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    if isinstance(value, UnknownBlock) or block_type not in _KNOWN_BLOCK_TYPES:
        return "unknown"
    return block_type


ContentBlock = Annotated[
    Union[
        Annotated[TextBlock, Tag("text")],
        Annotated[ToolUseBlock, Tag("tool_use")],
        Annotated[ServerToolUseBlock, Tag("server_tool_use")],
        Annotated[WebSearchToolResultBlock, Tag("web_search_tool_result")],
        Annotated[ThinkingBlock, Tag("thinking")],
        Annotated[RedactedThinkingBlock, Tag("redacted_thinking")],
        Annotated[UnknownBlock, Tag("unknown")],
    ],
    Discriminator(_block_tag),
]


class Usage(_PassthroughModel):
    input_tokens: int
    output_tokens: int
    cache_creation_input_tokens: int | None = None
    cache_read_input_tokens: int | None = None
    server_tool_use: dict[str, Any] | None = None
    service_tier: str | None = None


class ProviderMessage(_PassthroughModel):
    """Final structured message returned by the provider.

    Attributes:
        id: Provider message identifier.
        content: Ordered content blocks.
        model: Model that produced the message.
        stop_reason: Why generation stopped (end_turn, max_tokens, ...).
        usage: Token accounting.
    """

    id: str
    type: Literal["message"] = "message"
    role: Literal["assistant"] = "assistant"
    model: str
    content: list[ContentBlock]
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: Usage

    def text(self) -> str | None:
        """Concatenate all text blocks, or None when the message has none."""
        parts = [block.text for block in self.content if isinstance(block, TextBlock)]
        if not parts:
            return None
        return "".join(parts)
