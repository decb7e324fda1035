"""
Middleware package.

WHY: Middleware provides cross-cutting concerns that apply to all requests.
"""

from ticketdesk.middleware.request_context import (
    RequestContextMiddleware,
    RequestContext,
    get_request_context,
    get_request_id,
    REQUEST_ID_HEADER,
)

__all__ = [
    "RequestContextMiddleware",
    "RequestContext",
    "get_request_context",
    "get_request_id",
    "REQUEST_ID_HEADER",
]
