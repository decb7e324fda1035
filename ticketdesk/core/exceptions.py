"""
Custom exception hierarchy for structured error handling.

WHY: Custom exceptions provide:
1. Consistent error handling across the API
2. HTTP status code mapping for FastAPI
3. Structured error responses with contextual data
4. No sensitive data leaks in error messages (OWASP A04)

Every exception here is recovered at the request boundary by the handlers
in ticketdesk.core.exception_handlers and rendered as the JSON envelope
``{"success": false, "error": ...}``.
"""

from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Base exception class for all application exceptions.

    WHY: Centralizing exception handling in a base class ensures consistent
    error responses, HTTP status code mapping, and prevents sensitive data
    leaks in error messages.
    """

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        **context: Any,
    ):
        """
        Initialize exception with message and context.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (overrides class default)
            **context: Additional context for debugging (filtered in to_dict)
        """
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize exception to the error envelope.

        WHY: HTTP status and envelope ``success`` must agree, and clients
        read the human message from ``error``.

        Returns:
            Dictionary with error details (sensitive fields filtered out)
        """
        # WHY: Filter out sensitive fields to prevent data leaks
        sensitive_fields = {"password", "token", "secret", "key", "api_key", "content"}
        filtered_context = {
            k: v for k, v in self.context.items() if k.lower() not in sensitive_fields
        }

        return {
            "success": False,
            "error": self.message,
            "error_code": self.__class__.__name__,
            "status_code": self.status_code,
            "details": filtered_context if filtered_context else None,
        }


# ============================================================================
# Authentication & Authorization Exceptions (OWASP A07, A01)
# ============================================================================


class AuthenticationError(AppException):
    """
    Raised when no valid principal can be derived from the request.

    HTTP Status: 401 Unauthorized
    """

    status_code = 401
    default_message = "Authentication failed"


class TokenExpiredError(AuthenticationError):
    """Raised when the bearer token has expired."""

    default_message = "Token has expired"


class TokenInvalidError(AuthenticationError):
    """Raised when the bearer token is malformed or has an invalid signature."""

    default_message = "Token is invalid"


class AuthorizationError(AppException):
    """
    Raised when user lacks permissions for an action.

    HTTP Status: 403 Forbidden
    """

    status_code = 403
    default_message = "You do not have permission to perform this action"


class AccessDeniedError(AuthorizationError):
    """
    Raised when the access resolver denies a ticket the caller's tenant owns.

    WHY: Only used for known-but-forbidden tickets. Tickets that do not
    exist or belong to another tenant are reported as not found instead.

    HTTP Status: 403 Forbidden
    """

    default_message = "Ticket not found or access denied"


class OwnershipError(AuthorizationError):
    """
    Raised when a non-author tries to edit or delete a comment.

    WHY: Editing and deleting are author-exclusive regardless of role,
    organization admins included.

    HTTP Status: 403 Forbidden
    """

    default_message = "Only the comment author can modify this comment"


# ============================================================================
# Validation Exceptions
# ============================================================================


class ValidationError(AppException):
    """
    Raised when input validation fails.

    HTTP Status: 400 Bad Request
    """

    status_code = 400
    default_message = "Validation failed"


class InvalidParentError(ValidationError):
    """
    Raised when a reply references a missing or cross-ticket parent.

    HTTP Status: 400 Bad Request
    """

    default_message = "Parent comment not found or invalid"


class EditDeletedError(ValidationError):
    """
    Raised when editing a soft-deleted comment.

    WHY: Deletion is terminal; deleted content is immutable.

    HTTP Status: 400 Bad Request
    """

    default_message = "Cannot edit deleted comment"


# ============================================================================
# Resource Exceptions
# ============================================================================


class ResourceNotFoundError(AppException):
    """
    Raised when a requested resource doesn't exist.

    HTTP Status: 404 Not Found
    """

    status_code = 404
    default_message = "Resource not found"


class TicketNotFoundError(ResourceNotFoundError):
    """
    Raised when a ticket doesn't exist or lives in another tenant.

    WHY: Using 404 for cross-tenant tickets prevents confirming that the
    ticket exists in another organization.
    """

    default_message = "Ticket not found or access denied"


class CommentNotFoundError(ResourceNotFoundError):
    """Raised when a comment doesn't exist or its ticket is not visible."""

    default_message = "Comment not found"


class EditConflictError(AppException):
    """
    Raised when a comment changed between read and write.

    WHY: Two concurrent edits by the same author would otherwise record a
    history entry that skips the true previous content.

    HTTP Status: 409 Conflict
    """

    status_code = 409
    default_message = "Comment was modified by another request"


# ============================================================================
# Infrastructure Exceptions
# ============================================================================


class DatabaseError(AppException):
    """
    Raised when the persistence layer fails.

    WHY: The only non-recoverable condition; clients get a generic message
    with no SQL or driver detail.

    HTTP Status: 500 Internal Server Error
    """

    status_code = 500
    default_message = "Database error"


class ExternalServiceError(AppException):
    """
    Base exception for external service failures.

    HTTP Status: 502 Bad Gateway
    """

    status_code = 502
    default_message = "External service error"


class NotificationDeliveryError(ExternalServiceError):
    """
    Raised when the notification webhook call fails.

    WHY: Notification failures are logged and swallowed by the safe
    wrappers; they never fail the comment operation.
    """

    default_message = "Notification delivery error"
