"""Request logging middleware.

Every request gets a request id, stored on request.state (routers copy it
into ApiResponse) and echoed in the X-Request-ID response header. A
well-formed X-Request-ID sent by an upstream proxy is reused so one id
follows the request through both logs.

Log line:
    INFO [POST] /api/v1/tasks/confirm → 200 (23ms) req_a1b2c3d4e5f6
Server errors log at WARNING; /health probes at DEBUG.
"""

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("tm.request")

REQUEST_ID_HEADER = "X-Request-ID"
_INBOUND_ID = re.compile(r"^[A-Za-z0-9_\-]{8,64}$")
_QUIET_PATHS = frozenset({"/health"})


def get_request_id(request: Request) -> str:
    """Request id assigned by RequestLogMiddleware, or "req_unknown" outside it."""
    return getattr(request.state, "request_id", "req_unknown")


def _new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


def _pick_request_id(request: Request) -> str:
    inbound = request.headers.get(REQUEST_ID_HEADER)
    if inbound and _INBOUND_ID.match(inbound):
        return inbound
    return _new_request_id()


def _level_for(path: str, status_code: int) -> int:
    if status_code >= 500:
        return logging.WARNING
    if path in _QUIET_PATHS:
        return logging.DEBUG
    return logging.INFO


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _pick_request_id(request)
        request.state.request_id = request_id

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.log(
            _level_for(request.url.path, response.status_code),
            "[%s] %s → %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
        )
        return response
