"""
Request tracing for the registry API.

Every request carries two identifiers:

- X-Correlation-ID: chosen by the caller to tie several requests together
- X-Request-ID: unique to one request; also used as the problem ``trace_id``

Incoming values are reused only when they look like identifiers, so log lines
cannot be forged through these headers. Both are echoed on the response.
"""

import re
import uuid
import logging
from contextvars import ContextVar
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
REQUEST_HEADER = "X-Request-ID"

_SAFE_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")
request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")


def generate_id() -> str:
    """Short random identifier for log lines."""
    return uuid.uuid4().hex[:12]


def _incoming_id(request: Request, header: str) -> str:
    value = request.headers.get(header, "")
    if _SAFE_ID.match(value):
        return value
    if value:
        logger.debug("Ignoring malformed %s header", header)
    return generate_id()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Bind correlation and request IDs for the duration of a request."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        correlation_id = _incoming_id(request, CORRELATION_HEADER)
        request_id = _incoming_id(request, REQUEST_HEADER)

        correlation_token = correlation_id_ctx.set(correlation_id)
        request_token = request_id_ctx.set(request_id)
        request.state.request_id = request_id
        try:
            response = await call_next(request)
        finally:
            correlation_id_ctx.reset(correlation_token)
            request_id_ctx.reset(request_token)

        response.headers[CORRELATION_HEADER] = correlation_id
        response.headers[REQUEST_HEADER] = request_id
        return response


def get_correlation_id() -> str:
    return correlation_id_ctx.get() or "-"


def get_request_id() -> str:
    return request_id_ctx.get() or "-"


class CorrelationLogFilter(logging.Filter):
    """Adds ``correlation_id`` and ``request_id`` to every log record.

    Records emitted outside a request (startup, shutdown) get ``-``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        record.request_id = get_request_id()
        return True
