"""Integration tests for health and metrics endpoints."""

from datetime import datetime

import pytest_check as check
from httpx import AsyncClient

from src import __version__


class TestHealthEndpoint:
    """Integration tests for GET /api/health."""

    async def test_health_reports_ok(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/api/health")

        body = response.json()
        check.equal(response.status_code, 200)
        check.equal(body["status"], "ok")
        check.equal(body["version"], __version__)
        check.equal(body["activeChannels"], 0)
        check.is_not_none(datetime.fromisoformat(body["timestamp"]))

    async def test_health_counts_channels(self, async_client: AsyncClient) -> None:
        await async_client.post(
            "/api/chat/channel",
            json={"messages": [{"role": "user", "content": "Hi"}], "channelId": "c1"},
        )

        response = await async_client.get("/api/health")

        assert response.json()["activeChannels"] == 1


class TestMetricsEndpoints:
    """Integration tests for /api/metrics."""

    async def test_metrics_count_completed_requests(self, async_client: AsyncClient) -> None:
        await async_client.get("/api/health")
        await async_client.post("/api/chat", json={"messages": []})

        response = await async_client.get("/api/metrics")

        body = response.json()
        check.equal(response.status_code, 200)
        check.greater_equal(body["completedRequests"], 2)
        check.is_in("errorRate", body)
        check.equal(body["activeChannels"], 0)

    async def test_recent_requests(self, async_client: AsyncClient) -> None:
        await async_client.get("/api/health")

        response = await async_client.get("/api/metrics/recent", params={"limit": 1})

        records = response.json()
        check.equal(len(records), 1)
        check.equal(records[0]["path"], "/api/health")
        check.equal(records[0]["status_code"], 200)

    async def test_active_requests_include_current(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/api/metrics/active")

        paths = [r["path"] for r in response.json()]
        assert paths == ["/api/metrics/active"]
