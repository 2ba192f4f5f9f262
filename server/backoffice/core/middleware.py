"""Custom middleware for request tracking and logging."""

import time
import uuid
from typing import Callable, Optional

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .config import settings
from .observability import get_logger, metrics_collector

logger = get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a unique request ID to each request.

    The request ID is either extracted from the X-Request-ID header
    or generated if not present. It is bound, together with the company
    header, into structlog's context for every log line of the request and
    echoed in the response headers.
    """

    def __init__(self, app: ASGIApp, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and add request ID."""
        request_id = request.headers.get(self.header_name)
        if not request_id:
            request_id = str(uuid.uuid4())

        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            tenant_id=request.headers.get(settings.tenant_header),
        )

        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers[self.header_name] = request_id
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware that logs each request and records request metrics."""

    def __init__(self, app: ASGIApp, skip_paths: Optional[list] = None):
        super().__init__(app)
        self.skip_paths = skip_paths or ["/health", "/metrics", "/favicon.ico"]

    def _should_log(self, path: str) -> bool:
        """Check if request should be logged."""
        return path not in self.skip_paths

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP address from request."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host

        return "unknown"

    @staticmethod
    def _endpoint(request: Request) -> str:
        # Route templates keep the metric label set small
        route = request.scope.get("route")
        return getattr(route, "path", request.url.path)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and log information."""
        if not self._should_log(request.url.path):
            return await call_next(request)

        start_time = time.perf_counter()
        log = logger.bind(
            method=request.method,
            path=request.url.path,
            client_ip=self._get_client_ip(request),
        )
        log.info("request_started")

        try:
            response = await call_next(request)
        except Exception:
            duration = time.perf_counter() - start_time
            metrics_collector.record_request(request.method, self._endpoint(request), 500, duration)
            log.error("request_failed", duration_ms=round(duration * 1000, 2))
            raise

        duration = time.perf_counter() - start_time
        status_code = response.status_code
        metrics_collector.record_request(request.method, self._endpoint(request), status_code, duration)

        event = dict(status_code=status_code, duration_ms=round(duration * 1000, 2))
        if status_code >= 500:
            log.error("request_completed", **event)
        elif status_code >= 400:
            log.warning("request_completed", **event)
        else:
            log.info("request_completed", **event)

        return response


def setup_middleware(app, enable_logging: bool = True) -> None:
    """
    Setup all middleware on the FastAPI app.

    Args:
        app: FastAPI application instance
        enable_logging: Whether to enable request logging middleware
    """
    # Last added runs first
    if enable_logging:
        app.add_middleware(LoggingMiddleware)

    app.add_middleware(RequestIDMiddleware)
