"""
Request context middleware for log correlation.

WHAT: Middleware that assigns every request an ID and makes it available
for the rest of the request lifecycle.

WHY: Access decisions and comment mutations are logged from services that
never see the request object. A request ID on every log line lets a
denied or failed request be traced end to end, and echoing it in the
response lets support staff match a client report to the logs.

HOW: Stores a RequestContext in a ContextVar (async-safe, one per request)
and in request.state. An inbound X-Request-ID is honoured when it looks
sane so IDs can be propagated from an upstream gateway.
"""

import re
import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


REQUEST_ID_HEADER = "X-Request-ID"

# Upstream IDs are echoed into logs and headers; keep them short and plain
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


@dataclass(frozen=True)
class RequestContext:
    """
    Request-scoped context data.

    Fields:
    - request_id: Unique identifier for the request (for log correlation)
    - path: Request path
    - method: HTTP method
    """

    request_id: str
    path: str
    method: str


_request_context: ContextVar[Optional[RequestContext]] = ContextVar(
    "request_context", default=None
)


def get_request_context() -> Optional[RequestContext]:
    """
    Get the current request context.

    Returns:
        RequestContext if within a request, None otherwise
    """
    return _request_context.get()


def get_request_id() -> Optional[str]:
    """Request ID of the current request, if any."""
    context = _request_context.get()
    return context.request_id if context else None


def resolve_request_id(request: Request) -> str:
    """
    Pick the ID for this request.

    Args:
        request: The incoming request

    Returns:
        The inbound X-Request-ID if well-formed, otherwise a new UUID4
    """
    inbound = request.headers.get(REQUEST_ID_HEADER)
    if inbound and _VALID_REQUEST_ID.match(inbound):
        return inbound
    return str(uuid.uuid4())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that captures and stores request context.

    Example:
        ctx = get_request_context()
        logger.info(f"Request {ctx.request_id} {ctx.method} {ctx.path}")
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request and add context.

        Args:
            request: Incoming request
            call_next: Next middleware/handler

        Returns:
            Response with request ID header added
        """
        context = RequestContext(
            request_id=resolve_request_id(request),
            path=request.url.path,
            method=request.method,
        )

        request.state.context = context
        token = _request_context.set(context)

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = context.request_id
            return response

        finally:
            _request_context.reset(token)
