"""Integration tests for the API working as a system.

Coverage:
    - Direct-mode streaming endpoint
    - Channel-mode send and subscribe endpoints
    - Health and metrics endpoints

Runs the real FastAPI app over httpx's ASGITransport with the provider
dependency overridden by a stub that counts calls.
"""
