# sinmungo/middleware/request_logging.py
from __future__ import annotations

import logging
import time
import uuid
from typing import Iterable, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("sinmungo.request")


# Probes, docs and signed file downloads are not logged (the token is in the path)
QUIET_PREFIXES: Tuple[str, ...] = (
    "/api/healthz",
    "/api/readyz",
    "/api/v1/files/",
    "/docs",
    "/redoc",
    "/openapi.json",
)


def _trace_id(request: Request) -> str:
    return request.headers.get("x-request-id") or uuid.uuid4().hex


def _level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def _actor(request: Request) -> str:
    # Filled in by the auth dependencies once the route resolved a user
    user_id: Optional[int] = getattr(request.state, "user_id", None)
    if user_id is None:
        return "anon"
    return f"{'admin' if getattr(request.state, 'is_admin', False) else 'user'}:{user_id}"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    One log line per request: method, path, status, actor, duration and trace id.
    Every response carries the trace id as X-Request-ID, which is also the
    trace_id in error payloads.
    """

    def __init__(self, app, quiet_prefixes: Iterable[str] = QUIET_PREFIXES):
        super().__init__(app)
        self.quiet_prefixes = tuple(quiet_prefixes)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        trace_id = _trace_id(request)
        request.state.trace_id = trace_id

        path = request.url.path
        quiet = request.method == "OPTIONS" or path.startswith(self.quiet_prefixes)

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # The error handlers render the response; only the timing is recorded here
            logger.exception(
                "request CRASH %s %s actor=%s dur_ms=%s trace_id=%s",
                request.method,
                path,
                _actor(request),
                int((time.perf_counter() - start) * 1000),
                trace_id,
            )
            raise

        response.headers["X-Request-ID"] = trace_id
        if not quiet:
            logger.log(
                _level_for(response.status_code),
                "request %s %s -> %s actor=%s dur_ms=%s trace_id=%s",
                request.method,
                path,
                response.status_code,
                _actor(request),
                int((time.perf_counter() - start) * 1000),
                trace_id,
            )
        return response
