"""Unit tests for individual components in isolation.

Coverage:
    - models/: Pydantic validation of events and provider messages
    - parsing/: NDJSON framing and incremental decoding
    - relay/: Conversation rules, relaying and channels
    - provider/: Configuration and the Anthropic streaming wrapper
    - client/: Message store and session controller

Uses fakes for the provider SDK and httpx.MockTransport for the client.
"""
