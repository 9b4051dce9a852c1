"""FastAPI dependencies shared by the routers."""

import logging

from fastapi import HTTPException, Request, status
from pydantic import ValidationError

from src.api.middleware import RequestMetrics
from src.provider.anthropic_service import get_provider_service
from src.provider.base import ChatProvider
from src.relay.channels import ChannelRegistry

logger = logging.getLogger(__name__)


def get_provider() -> ChatProvider:
    """Return the shared provider service.

    Raises:
        HTTPException: 500 if the provider is not configured.
    """
    try:
        return get_provider_service()
    except ValidationError as e:
        logger.error(f"Provider configuration invalid: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Provider API key not configured",
        ) from e


def get_channel_registry(request: Request) -> ChannelRegistry:
    return request.app.state.channels


def get_request_metrics(request: Request) -> RequestMetrics:
    return request.app.state.metrics
