"""
Comment Store Service.

WHAT: Business logic for ticket comments: create, edit, soft delete, read,
list, and edit history, each gated by ticket access.

WHY: Keeps the comment rules in one place:
1. Nothing is read or written before the access resolver allows it
2. Only the author edits or deletes a comment (Admins included)
3. Deleted comments keep their row but never serve their content
4. Every edit appends the previous content to the history first
5. Concurrent edits of one comment conflict instead of overwriting

HOW: Uses TicketCommentDAO on the request's session and returns
CommentView snapshots, so presentation never touches ORM state. Mentions
and participants are returned to the caller, which owns notification.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.core.config import settings
from ticketdesk.core.exceptions import (
    AccessDeniedError,
    CommentNotFoundError,
    EditConflictError,
    EditDeletedError,
    InvalidParentError,
    OwnershipError,
    TicketNotFoundError,
    ValidationError,
)
from ticketdesk.core.principal import PrincipalContext
from ticketdesk.dao.comment import TicketCommentDAO
from ticketdesk.models.ticket import TicketComment, TicketCommentEdit
from ticketdesk.services.access import AccessGrant, AccessResolver, parse_resource_id
from ticketdesk.services.mentions import extract_mentions

logger = logging.getLogger(__name__)


# ============================================================================
# Result types
# ============================================================================


@dataclass(frozen=True)
class CommentView:
    """
    Read-only snapshot of a comment as served to clients.

    Deleted comments carry the placeholder instead of their content.
    """

    id: int
    ticket_id: int
    parent_comment_id: Optional[int]
    user_id: int
    org_id: int
    content: str
    is_deleted: bool
    version: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None
    author_name: Optional[str] = None
    author_email: Optional[str] = None
    author_avatar: Optional[str] = None

    @property
    def is_edited(self) -> bool:
        return self.version > 1

    @classmethod
    def from_model(cls, comment: TicketComment, placeholder: str) -> "CommentView":
        author = comment.author
        return cls(
            id=comment.id,
            ticket_id=comment.ticket_id,
            parent_comment_id=comment.parent_comment_id,
            user_id=comment.user_id,
            org_id=comment.org_id,
            content=placeholder if comment.is_deleted else comment.content,
            is_deleted=comment.is_deleted,
            version=comment.version,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
            deleted_at=comment.deleted_at,
            author_name=author.name if author is not None else None,
            author_email=author.email if author is not None else None,
            author_avatar=author.profile_picture_url if author is not None else None,
        )


@dataclass(frozen=True)
class CommentEditView:
    """One edit history entry as served to clients."""

    id: int
    comment_id: int
    previous_content: str
    edited_by_user_id: int
    edit_reason: Optional[str]
    edited_at: datetime

    @classmethod
    def from_model(
        cls, edit: TicketCommentEdit, placeholder: Optional[str] = None
    ) -> "CommentEditView":
        return cls(
            id=edit.id,
            comment_id=edit.comment_id,
            previous_content=placeholder if placeholder is not None else edit.previous_content,
            edited_by_user_id=edit.edited_by_user_id,
            edit_reason=edit.edit_reason,
            edited_at=edit.edited_at,
        )


@dataclass(frozen=True)
class CommentCreated:
    """
    Result of creating a comment.

    Attributes:
        comment: The new comment
        mentioned_user_ids: Users mentioned in the content
        participant_user_ids: Ticket creator and assignee, minus the author
    """

    comment: CommentView
    mentioned_user_ids: Set[int] = field(default_factory=set)
    participant_user_ids: Set[int] = field(default_factory=set)


@dataclass(frozen=True)
class CommentEdited:
    """Result of editing a comment."""

    comment: CommentView
    mentioned_user_ids: Set[int] = field(default_factory=set)


@dataclass(frozen=True)
class CommentThread:
    """
    Comments needed to render a ticket's discussion tree.

    Attributes:
        active: Non-deleted comments, oldest first
        anchors: Deleted comments that still have active descendants,
            as placeholders
    """

    active: List[CommentView]
    anchors: List[CommentView] = field(default_factory=list)

    @property
    def comments(self) -> List[CommentView]:
        return self.active + self.anchors


# ============================================================================
# Comment Store
# ============================================================================


class CommentStore:
    """
    Comment operations on behalf of a principal.

    Usage:
        store = CommentStore(session, AccessResolver(AccessFactsDAO(session)))
        created = await store.create(principal, ticket_id=7, content="Looks good")
    """

    def __init__(
        self,
        session: AsyncSession,
        resolver: AccessResolver,
        max_length: Optional[int] = None,
        max_depth: Optional[int] = None,
        placeholder: Optional[str] = None,
    ):
        """
        Initialize CommentStore.

        Args:
            session: Request database session
            resolver: Ticket access resolver
            max_length: Content length limit (defaults to settings)
            max_depth: Reply nesting limit, None for unbounded (defaults to settings)
            placeholder: Text served for deleted comments (defaults to settings)
        """
        self.session = session
        self.resolver = resolver
        self.comments = TicketCommentDAO(session)
        self.max_length = max_length or settings.COMMENT_MAX_LENGTH
        self.max_depth = max_depth if max_depth is not None else settings.COMMENT_MAX_DEPTH
        self.placeholder = placeholder or settings.DELETED_COMMENT_PLACEHOLDER

    # =========================================================================
    # Helpers
    # =========================================================================

    def _validate_content(self, content: Optional[str]) -> str:
        text = (content or "").strip()
        if not text:
            raise ValidationError(message="Comment content is required")
        if len(text) > self.max_length:
            raise ValidationError(
                message=f"Comment content exceeds {self.max_length} characters",
                max_length=self.max_length,
            )
        return text

    def _view(self, comment: TicketComment) -> CommentView:
        return CommentView.from_model(comment, self.placeholder)

    async def _require_ticket_access(self, principal: PrincipalContext, ticket_id: Any) -> int:
        """
        Check ticket access and return the parsed ticket id.

        Raises:
            TicketNotFoundError: Ticket unknown, in another tenant, or request invalid
            AccessDeniedError: Ticket visible to the tenant but not to this user
        """
        grant = await self.resolver.evaluate(principal, ticket_id)
        if grant.allowed:
            return parse_resource_id(ticket_id)
        if grant is AccessGrant.NO_MATCHING_ROLE:
            raise AccessDeniedError(ticket_id=ticket_id)
        raise TicketNotFoundError(ticket_id=ticket_id)

    async def _load_visible(self, principal: PrincipalContext, comment_id: Any) -> TicketComment:
        """
        Load a comment the principal may see.

        A missing comment and a comment on an inaccessible ticket are
        indistinguishable to the caller.

        Raises:
            CommentNotFoundError: In both cases
        """
        parsed_id = parse_resource_id(comment_id)
        comment = await self.comments.get_by_id(parsed_id) if parsed_id else None
        if comment is None:
            raise CommentNotFoundError(comment_id=comment_id)

        grant = await self.resolver.evaluate(principal, comment.ticket_id)
        if not grant.allowed:
            raise CommentNotFoundError(comment_id=comment_id)
        return comment

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create(
        self,
        principal: PrincipalContext,
        ticket_id: Any,
        content: Optional[str],
        parent_comment_id: Optional[Any] = None,
    ) -> CommentCreated:
        """
        Create a comment or a reply.

        Args:
            principal: Author
            ticket_id: Ticket to comment on
            content: Comment text, trimmed before storing
            parent_comment_id: Comment being replied to

        Returns:
            CommentCreated with the new comment and who to notify

        Raises:
            ValidationError: Empty or oversized content, nesting too deep
            TicketNotFoundError / AccessDeniedError: No access to the ticket
            InvalidParentError: Parent missing or on another ticket
        """
        text = self._validate_content(content)
        resolved_ticket_id = await self._require_ticket_access(principal, ticket_id)

        parent_id = None
        if parent_comment_id is not None:
            parent_id = parse_resource_id(parent_comment_id)
            parent = await self.comments.get_by_id(parent_id) if parent_id else None
            if parent is None or parent.ticket_id != resolved_ticket_id:
                raise InvalidParentError(parent_comment_id=parent_comment_id)

            if self.max_depth is not None:
                depth = await self.comments.get_depth(parent_id) + 1
                if depth > self.max_depth:
                    raise ValidationError(
                        message=f"Replies cannot be nested deeper than {self.max_depth} levels",
                        max_depth=self.max_depth,
                    )

        comment = await self.comments.create_comment(
            ticket_id=resolved_ticket_id,
            user_id=principal.user_id,
            org_id=principal.organization_id,
            content=text,
            parent_comment_id=parent_id,
        )

        creator_id, assignee_id = await self.comments.get_ticket_participants(resolved_ticket_id)
        participants = {
            user_id
            for user_id in (creator_id, assignee_id)
            if user_id is not None and user_id != principal.user_id
        }
        mentioned = extract_mentions(text)
        mentioned.discard(principal.user_id)

        logger.info(
            f"Comment {comment.id} created on ticket {resolved_ticket_id} "
            f"by user {principal.user_id}"
            + (f" (reply to {parent_id})" if parent_id else "")
        )
        return CommentCreated(
            comment=self._view(comment),
            mentioned_user_ids=mentioned,
            participant_user_ids=participants,
        )

    async def edit(
        self,
        principal: PrincipalContext,
        comment_id: Any,
        new_content: Optional[str],
        reason: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> CommentEdited:
        """
        Edit a comment's content.

        Args:
            principal: Must be the author
            comment_id: Comment to edit
            new_content: Replacement text
            reason: Optional edit reason, kept in the history
            expected_version: Version the client edited; a mismatch conflicts

        Returns:
            CommentEdited with the updated comment and its mentions

        Raises:
            ValidationError: Empty or oversized content
            CommentNotFoundError: Missing, or ticket not accessible
            OwnershipError: Caller is not the author
            EditDeletedError: Comment is deleted
            EditConflictError: Comment changed since expected_version or
                during this edit
        """
        text = self._validate_content(new_content)
        comment = await self._load_visible(principal, comment_id)

        if comment.user_id != principal.user_id:
            raise OwnershipError(comment_id=comment.id)
        if comment.is_deleted:
            raise EditDeletedError(comment_id=comment.id)

        read_version = comment.version
        if expected_version is not None and expected_version != read_version:
            raise EditConflictError(
                comment_id=comment.id,
                expected_version=expected_version,
                current_version=read_version,
            )

        await self.comments.add_edit(
            comment_id=comment.id,
            previous_content=comment.content,
            edited_by_user_id=principal.user_id,
            edit_reason=reason.strip() if reason and reason.strip() else None,
        )
        updated = await self.comments.update_content(comment.id, text, read_version)
        if not updated:
            logger.warning(f"Concurrent edit detected on comment {comment.id}")
            raise EditConflictError(comment_id=comment.id, expected_version=read_version)

        comment = await self.comments.get_by_id(comment.id, reload=True)
        mentioned = extract_mentions(text)
        mentioned.discard(principal.user_id)

        logger.info(
            f"Comment {comment.id} edited by user {principal.user_id} "
            f"(version {comment.version})"
        )
        return CommentEdited(comment=self._view(comment), mentioned_user_ids=mentioned)

    async def soft_delete(self, principal: PrincipalContext, comment_id: Any) -> None:
        """
        Soft delete a comment. Deleting a deleted comment is a no-op.

        Raises:
            CommentNotFoundError: Missing, or ticket not accessible
            OwnershipError: Caller is not the author
        """
        comment = await self._load_visible(principal, comment_id)

        if comment.user_id != principal.user_id:
            raise OwnershipError(comment_id=comment.id)
        if comment.is_deleted:
            logger.debug(f"Comment {comment.id} already deleted")
            return

        if await self.comments.soft_delete(comment.id):
            logger.info(f"Comment {comment.id} deleted by user {principal.user_id}")

    # =========================================================================
    # Reads
    # =========================================================================

    async def get(self, principal: PrincipalContext, comment_id: Any) -> CommentView:
        """
        Get one comment.

        Raises:
            CommentNotFoundError: Missing, or ticket not accessible
        """
        comment = await self._load_visible(principal, comment_id)
        return self._view(comment)

    async def list(self, principal: PrincipalContext, ticket_id: Any) -> List[CommentView]:
        """
        List a ticket's non-deleted comments, oldest first.

        Raises:
            TicketNotFoundError / AccessDeniedError: No access to the ticket
        """
        resolved_ticket_id = await self._require_ticket_access(principal, ticket_id)
        comments = await self.comments.list_for_ticket(resolved_ticket_id)
        return [self._view(comment) for comment in comments]

    async def list_thread(self, principal: PrincipalContext, ticket_id: Any) -> CommentThread:
        """
        List what a ticket's discussion tree needs.

        Active comments as in list(), plus every deleted comment that is an
        ancestor of an active one, so replies keep their place in the tree.

        Raises:
            TicketNotFoundError / AccessDeniedError: No access to the ticket
        """
        resolved_ticket_id = await self._require_ticket_access(principal, ticket_id)
        comments = await self.comments.list_for_ticket(resolved_ticket_id, include_deleted=True)

        by_id = {comment.id: comment for comment in comments}
        active = [comment for comment in comments if not comment.is_deleted]

        anchor_ids: Set[int] = set()
        visited: Set[int] = set()
        for comment in active:
            parent_id = comment.parent_comment_id
            while parent_id is not None and parent_id in by_id and parent_id not in visited:
                visited.add(parent_id)
                parent = by_id[parent_id]
                if parent.is_deleted:
                    anchor_ids.add(parent.id)
                parent_id = parent.parent_comment_id

        anchors = [comment for comment in comments if comment.id in anchor_ids]
        return CommentThread(
            active=[self._view(comment) for comment in active],
            anchors=[self._view(comment) for comment in anchors],
        )

    async def history(
        self, principal: PrincipalContext, comment_id: Any
    ) -> List[CommentEditView]:
        """
        Edit history of a comment, oldest first.

        Previous contents of a deleted comment are replaced by the placeholder.

        Raises:
            CommentNotFoundError: Missing, or ticket not accessible
        """
        comment = await self._load_visible(principal, comment_id)
        edits = await self.comments.list_edits(comment.id)
        placeholder = self.placeholder if comment.is_deleted else None
        return [CommentEditView.from_model(edit, placeholder) for edit in edits]
