"""Request logging and in-memory request metrics.

Every HTTP request is logged with its duration and kept in a bounded list of
completed requests that backs the /api/metrics endpoints. Durations cover the
whole response, including streamed bodies.
"""

import logging
import time
import uuid
from collections import deque
from dataclasses import asdict, dataclass

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

MAX_COMPLETED_REQUESTS = 1000
RECENT_WINDOW_SECONDS = 60.0


@dataclass
class RequestRecord:
    """Timing record for one HTTP request."""

    request_id: str
    method: str
    path: str
    start_time: float
    end_time: float | None = None
    duration_ms: float | None = None
    status_code: int | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None or (self.status_code or 0) >= 500

    def to_dict(self) -> dict:
        return asdict(self)


class RequestMetrics:
    """Active and recently completed requests."""

    def __init__(self, max_completed: int = MAX_COMPLETED_REQUESTS) -> None:
        self._active: dict[str, RequestRecord] = {}
        self._completed: deque[RequestRecord] = deque(maxlen=max_completed)

    def start(self, method: str, path: str) -> RequestRecord:
        record = RequestRecord(
            request_id=uuid.uuid4().hex[:12],
            method=method,
            path=path,
            start_time=time.time(),
        )
        self._active[record.request_id] = record
        return record

    def finish(
        self,
        record: RequestRecord,
        status_code: int | None = None,
        error: str | None = None,
    ) -> None:
        record.end_time = time.time()
        record.duration_ms = (record.end_time - record.start_time) * 1000
        record.status_code = status_code
        record.error = error
        self._active.pop(record.request_id, None)
        self._completed.append(record)

    def active(self) -> list[RequestRecord]:
        return list(self._active.values())

    def completed(self, limit: int = 100) -> list[RequestRecord]:
        return list(self._completed)[-limit:]

    def summary(self, now: float | None = None) -> dict:
        """Aggregate figures over the last minute plus the slowest requests."""
        now = time.time() if now is None else now
        recent = [
            r
            for r in self._completed
            if r.end_time is not None and now - r.end_time < RECENT_WINDOW_SECONDS
        ]
        average = sum(r.duration_ms or 0 for r in recent) / len(recent) if recent else 0.0
        error_rate = sum(1 for r in recent if r.failed) / len(recent) if recent else 0.0
        slowest = sorted(self._completed, key=lambda r: r.duration_ms or 0, reverse=True)[:10]

        return {
            "activeRequests": len(self._active),
            "completedRequests": len(self._completed),
            "requestsPerMinute": len(recent),
            "averageDuration": average,
            "errorRate": error_rate,
            "slowestRequests": [r.to_dict() for r in slowest],
        }


class RequestLoggingMiddleware:
    """ASGI middleware feeding RequestMetrics and the log."""

    def __init__(self, app: ASGIApp, metrics: RequestMetrics) -> None:
        self.app = app
        self.metrics = metrics

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        record = self.metrics.start(scope["method"], scope["path"])
        status_code: int | None = None

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        logger.debug(f"[{record.request_id}] Starting {record.method} {record.path}")
        try:
            await self.app(scope, receive, send_wrapper)
        except BaseException as e:
            self.metrics.finish(record, status_code, error=str(e) or type(e).__name__)
            logger.error(
                f"[{record.request_id}] Failed {record.method} {record.path} "
                f"after {record.duration_ms:.0f}ms: {record.error}"
            )
            raise

        self.metrics.finish(record, status_code)
        logger.info(
            f"[{record.request_id}] {record.method} {record.path} -> {status_code} "
            f"in {record.duration_ms:.0f}ms"
        )
