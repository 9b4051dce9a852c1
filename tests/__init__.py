"""Test package for the streaming chat relay.

Structure:
    - unit/: Individual function and class tests
    - integration/: HTTP-level tests against the FastAPI app

The model provider is always replaced by a stub, so no API key is needed.
Leverages pytest with pytest-check for soft assertions.
"""
