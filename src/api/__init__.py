"""FastAPI endpoints for the streaming chat relay.

HTTP and streaming routes with async request handling. Responses stream as
newline-delimited JSON events.

Endpoints:
    - POST /api/chat: Relay a conversation, stream the reply
    - POST /api/chat/channel: Relay onto a channel, acknowledge immediately
    - GET /api/chat/channel/{channel_id}: Subscribe to a channel
    - GET /api/health: Service health status
    - GET /api/metrics: Request metrics
"""

from src.api.app import app, create_app

__all__ = ["app", "create_app"]
