"""Middleware for request logging, correlation IDs, and metrics."""

import time
from typing import Any, Callable, Dict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.core.logging_config import clear_request_id, get_logger, set_request_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _endpoint_key(request: Request) -> str:
    """Key metrics by route template so record ids do not create new series.

    The template is rebuilt from the full request path, since a mounted
    route's own path lacks its router prefix.
    """
    placeholders = {
        str(value): f"{{{name}}}"
        for name, value in request.scope.get("path_params", {}).items()
    }
    segments = [placeholders.get(segment, segment) for segment in request.url.path.split("/")]
    return f"{request.method} {'/'.join(segments)}"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with a correlation ID and its duration."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
        start_time = time.perf_counter()

        logger.info(
            "Request started",
            extra={
                "extra_fields": {
                    "method": request.method,
                    "path": request.url.path,
                    "client_ip": request.client.host if request.client else None,
                }
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "Request failed",
                extra={
                    "extra_fields": {
                        "method": request.method,
                        "path": request.url.path,
                        "duration_ms": round(duration_ms, 2),
                        "error_type": type(e).__name__,
                    }
                },
                exc_info=True,
            )
            raise
        else:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "Request completed",
                extra={
                    "extra_fields": {
                        "method": request.method,
                        "path": request.url.path,
                        "status_code": response.status_code,
                        "duration_ms": round(duration_ms, 2),
                    }
                },
            )
            response.headers[REQUEST_ID_HEADER] = correlation_id
            response.headers["X-Response-Time"] = f"{round(duration_ms, 2)}ms"
            return response
        finally:
            clear_request_id()


class RequestMetrics:
    """In-process request metrics shared between the middleware and /metrics.

    Tracks request counts and durations per endpoint template, responses by
    status code, and server errors.
    """

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.requests_total = 0
        self.requests_in_progress = 0
        self.server_errors = 0
        self.total_duration = 0.0
        self.by_endpoint: Dict[str, Dict[str, float]] = {}
        self.by_status: Dict[int, int] = {}

    def record(self, endpoint_key: str, status_code: int, duration: float) -> None:
        endpoint = self.by_endpoint.setdefault(endpoint_key, {"count": 0, "total_duration": 0.0})
        endpoint["count"] += 1
        endpoint["total_duration"] += duration

        self.requests_total += 1
        self.total_duration += duration
        self.by_status[status_code] = self.by_status.get(status_code, 0) + 1
        if status_code >= 500:
            self.server_errors += 1

    def snapshot(self) -> Dict[str, Any]:
        avg_duration = self.total_duration / self.requests_total if self.requests_total else 0.0

        endpoints = {
            key: {
                "count": int(data["count"]),
                "avg_duration_seconds": round(data["total_duration"] / data["count"], 4),
            }
            for key, data in self.by_endpoint.items()
            if data["count"]
        }

        return {
            "requests_total": self.requests_total,
            "requests_in_progress": self.requests_in_progress,
            "server_errors": self.server_errors,
            "avg_duration_seconds": round(avg_duration, 4),
            "requests_by_endpoint": endpoints,
            "requests_by_status": dict(self.by_status),
        }


class MetricsMiddleware(BaseHTTPMiddleware):
    """Feeds every request into a RequestMetrics instance."""

    def __init__(self, app: ASGIApp, metrics: RequestMetrics):
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        self.metrics.requests_in_progress += 1
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
            self.metrics.record(
                _endpoint_key(request), response.status_code, time.perf_counter() - start_time
            )
            return response
        finally:
            self.metrics.requests_in_progress -= 1
