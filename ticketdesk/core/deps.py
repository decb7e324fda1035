"""
FastAPI dependencies for authentication and service wiring.

WHY: Dependencies provide reusable authentication and construction logic
that can be injected into route handlers, and overridden in tests.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.core.auth import principal_from_token
from ticketdesk.core.exceptions import AuthenticationError
from ticketdesk.core.principal import PrincipalContext
from ticketdesk.dao.access import AccessFactsDAO
from ticketdesk.db.session import get_db
from ticketdesk.services.access import AccessResolver
from ticketdesk.services.comment_store import CommentStore
from ticketdesk.services.notification_service import NotificationService


# HTTP Bearer token security scheme
# WHY: auto_error=False so a missing header becomes our 401 envelope
# instead of Starlette's 403.
security = HTTPBearer(auto_error=False)


async def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> PrincipalContext:
    """
    Get the caller's PrincipalContext from the bearer token.

    Args:
        credentials: Token from the Authorization header

    Returns:
        Verified PrincipalContext

    Raises:
        AuthenticationError: If the header is missing or the token is invalid
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message="Authorization token required")

    return principal_from_token(credentials.credentials)


def get_access_resolver(db: AsyncSession = Depends(get_db)) -> AccessResolver:
    """Access resolver backed by the request's database session."""
    return AccessResolver(AccessFactsDAO(db))


def get_comment_store(
    db: AsyncSession = Depends(get_db),
    resolver: AccessResolver = Depends(get_access_resolver),
) -> CommentStore:
    """Comment store sharing the request's session with its resolver."""
    return CommentStore(db, resolver)


def get_notification_service() -> NotificationService:
    """Notification dispatcher configured from settings."""
    return NotificationService()
