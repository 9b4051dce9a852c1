"""Newline-delimited JSON framing for chat response streams.

Each frame is one StreamEvent serialized as JSON followed by a single newline.
The decoder tolerates arbitrary read boundaries and skips frames that do not
validate against the StreamEvent schema.
"""

import logging
from collections.abc import AsyncGenerator, AsyncIterable

from pydantic import ValidationError

from src.models.schemas import StreamEvent, stream_event_adapter

logger = logging.getLogger(__name__)

NDJSON_MEDIA_TYPE = "application/x-ndjson"
FRAME_SEPARATOR = b"\n"


def encode_event(event: StreamEvent) -> bytes:
    """Serialize one event as a single NDJSON frame."""
    return event.model_dump_json().encode() + FRAME_SEPARATOR


def decode_event(frame: bytes | str) -> StreamEvent:
    """Parse one frame (without its newline).

    Raises:
        ValidationError: If the frame is not valid JSON or not a StreamEvent.
    """
    return stream_event_adapter.validate_json(frame)


class StreamDecoder:
    """Incremental NDJSON decoder.

    Feed it raw chunks as they arrive; it returns every complete frame and
    keeps the trailing partial frame for the next call.
    """

    def __init__(self) -> None:
        self._buffer = b""
        self.skipped = 0

    def feed(self, chunk: bytes | str) -> list[StreamEvent]:
        if isinstance(chunk, str):
            chunk = chunk.encode()
        self._buffer += chunk
        *frames, self._buffer = self._buffer.split(FRAME_SEPARATOR)
        return self._decode_frames(frames)

    def flush(self) -> list[StreamEvent]:
        """Decode whatever is left once the underlying stream has ended."""
        remainder, self._buffer = self._buffer, b""
        return self._decode_frames([remainder])

    def _decode_frames(self, frames: list[bytes]) -> list[StreamEvent]:
        events: list[StreamEvent] = []
        for frame in frames:
            frame = frame.strip()
            if not frame:
                continue
            try:
                events.append(decode_event(frame))
            except ValidationError as e:
                self.skipped += 1
                logger.warning(f"Skipping invalid stream frame ({e.error_count()} errors): {frame[:200]!r}")
        return events


async def decode_stream(chunks: AsyncIterable[bytes]) -> AsyncGenerator[StreamEvent]:
    """Turn an async byte stream into a lazy sequence of StreamEvents.

    Args:
        chunks: Raw reads from the network, split at arbitrary points.

    Yields:
        Each valid event, in arrival order.
    """
    decoder = StreamDecoder()
    async for chunk in chunks:
        for event in decoder.feed(chunk):
            yield event
    for event in decoder.flush():
        yield event
