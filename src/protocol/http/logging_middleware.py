from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"
# Polled by load balancers; logged at DEBUG only
QUIET_PATHS = frozenset({"/healthz"})


class RequestIDLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id (client-supplied or fresh) and log it.

    The id is echoed in the ``x-request-id`` response header and in error
    envelopes.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        start = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        level = logging.DEBUG if request.url.path in QUIET_PATHS else logging.INFO

        logger.log(
            level,
            "request %s %s",
            request.method,
            request.url.path,
            extra={"request_id": request_id},
        )

        response = await call_next(request)
        duration_ms = int((time.perf_counter() - start) * 1000)
        response.headers[REQUEST_ID_HEADER] = request_id

        logger.log(
            level,
            "response %d in %d ms",
            response.status_code,
            duration_ms,
            extra={"request_id": request_id},
        )
        return response
