"""
Logging setup.

WHY: Modules log through ``logging.getLogger(__name__)``; this module only
decides the output format once, at app creation, and stamps each record
with the current request ID so lines from one request can be grouped.
"""

import logging
from typing import Optional

from ticketdesk.middleware.request_context import get_request_id


LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


class RequestIdFilter(logging.Filter):
    """Attach ``request_id`` to every record ("-" outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


_configured = False


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure the root logger once.

    Args:
        level: Log level name (defaults to INFO)
    """
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel((level or "INFO").upper())
    _configured = True
