"""
Data Access Object (DAO) package.

WHY: DAOs provide a clean separation between database operations and business logic,
making the codebase more testable and maintainable.
"""

from ticketdesk.dao.base import BaseDAO
from ticketdesk.dao.access import AccessFactsDAO
from ticketdesk.dao.comment import TicketCommentDAO

__all__ = [
    "BaseDAO",
    "AccessFactsDAO",
    "TicketCommentDAO",
]
