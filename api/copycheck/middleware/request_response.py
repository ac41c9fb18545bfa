"""Request/response middleware.

Assigns every request an id (honouring an incoming ``X-Request-ID``), makes
it available to log records through the request context variable, and logs
each request with its status and duration.
"""

from __future__ import annotations

import logging
import time
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..core.structured_logging import request_id_var

logger = logging.getLogger(__name__)


class RequestResponseMiddleware(BaseHTTPMiddleware):
    """Middleware for consistent request/response handling."""

    def __init__(self, app: ASGIApp, log_requests: bool = True, include_processing_time: bool = True):
        super().__init__(app)
        self.log_requests = log_requests
        self.include_processing_time = include_processing_time

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start_time = time.time()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                f"Request failed: {request.method} {request.url.path}",
                extra={"http_method": request.method, "http_path": request.url.path},
            )
            raise
        finally:
            request_id_var.reset(token)

        processing_time_ms = int((time.time() - start_time) * 1000)
        response.headers["X-Request-ID"] = request_id
        if self.include_processing_time:
            response.headers["X-Processing-Time-Ms"] = str(processing_time_ms)

        if self.log_requests:
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={
                    "request_id": request_id,
                    "http_method": request.method,
                    "http_path": request.url.path,
                    "http_status": response.status_code,
                    "response_time_ms": processing_time_ms,
                },
            )
        return response
