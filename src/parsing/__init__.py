"""Wire-format parsing for chat response streams.

Turns raw network reads into typed stream events and back.

Responsibilities:
    - NDJSON frame encoding for the relay endpoints
    - Incremental decoding tolerant of partial reads
    - Lenient schema validation (invalid frames are logged and skipped)
"""

from src.parsing.ndjson import (
    NDJSON_MEDIA_TYPE,
    StreamDecoder,
    decode_event,
    decode_stream,
    encode_event,
)

__all__ = ["NDJSON_MEDIA_TYPE", "StreamDecoder", "decode_event", "decode_stream", "encode_event"]
