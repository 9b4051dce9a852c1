"""Health and metrics endpoints."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query

from src import __version__
from src.api.dependencies import get_channel_registry, get_request_metrics
from src.api.middleware import RequestMetrics
from src.models.schemas import HealthResponse
from src.relay.channels import ChannelRegistry

router = APIRouter(prefix="/api", tags=["system"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    channels: ChannelRegistry = Depends(get_channel_registry),
) -> HealthResponse:
    """Check service health status.

    Polled by the chat UI every 30 seconds; never required for chatting.
    """
    return HealthResponse(
        timestamp=datetime.now(UTC).isoformat(),
        version=__version__,
        active_channels=len(channels),
    )


@router.get("/metrics")
async def metrics(
    request_metrics: RequestMetrics = Depends(get_request_metrics),
    channels: ChannelRegistry = Depends(get_channel_registry),
) -> dict:
    """Request counts, timings and error rate over the last minute."""
    return {**request_metrics.summary(), "activeChannels": len(channels)}


@router.get("/metrics/active")
async def active_requests(
    request_metrics: RequestMetrics = Depends(get_request_metrics),
) -> list[dict]:
    return [r.to_dict() for r in request_metrics.active()]


@router.get("/metrics/recent")
async def recent_requests(
    limit: int = Query(100, ge=1, le=1000),
    request_metrics: RequestMetrics = Depends(get_request_metrics),
) -> list[dict]:
    return [r.to_dict() for r in request_metrics.completed(limit)]
