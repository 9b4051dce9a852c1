"""Streaming chat relay - browser chat backed by a streamed LLM reply.

Combines FastAPI for HTTP streaming, the Anthropic SDK for generation,
NiceGUI for visualization, and Pydantic for data validation.

Components:
    - api: HTTP endpoints and NDJSON streaming responses
    - provider: Streaming client for the model provider
    - relay: Conversation validation, event relaying and channels
    - parsing: NDJSON framing and incremental decoding
    - client: Chat session controller and persisted history
    - ui: Web interface for chat interactions
    - models: Request, event and provider response schemas
"""

__version__ = "0.1.0"
