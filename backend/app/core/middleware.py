"""Custom FastAPI middleware."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.context import request_id_ctx_var

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assign a request id, log the request lifecycle, and echo the id back."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:  # type: ignore[override]
        request_id = request.headers.get("X-Request-Id") or str(uuid4())
        request.state.request_id = request_id
        token = request_id_ctx_var.set(request_id)
        start_time = perf_counter()

        try:
            logger.info("API request received: %s %s", request.method, request.url.path)
            response = await call_next(request)
            duration_ms = (perf_counter() - start_time) * 1000
            logger.info(
                "API request completed: %s %s -> %s in %.0fms",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
            )
        finally:
            request_id_ctx_var.reset(token)

        response.headers["X-Request-Id"] = request_id
        return response
