"""
Ticket comment Data Access Object.

WHAT: DAO for ticket comments and their edit history.

WHY: Encapsulates all comment database operations:
1. Creation of top-level comments and replies
2. Ticket-scoped listing in chronological order
3. Reply depth lookup for nesting limits
4. Edit history append and version-guarded content updates
5. Idempotent soft delete

HOW: Uses SQLAlchemy 2.0 async. Writes only flush; the request's session
commits once (see ticketdesk.db.session.get_db).
"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ticketdesk.dao.base import BaseDAO
from ticketdesk.models.ticket import Ticket, TicketComment, TicketCommentEdit


class TicketCommentDAO(BaseDAO[TicketComment]):
    """
    Data Access Object for TicketComment operations.

    Comments are always loaded with their author, so response schemas can
    read comment.author without a lazy load.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(TicketComment, session)

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_by_id(
        self,
        comment_id: int,
        reload: bool = False,
    ) -> Optional[TicketComment]:
        """
        Get comment by ID with its author loaded.

        Args:
            comment_id: Comment ID
            reload: Overwrite an instance already in the session with fresh
                database state

        Returns:
            TicketComment or None
        """
        query = (
            select(TicketComment)
            .options(selectinload(TicketComment.author))
            .where(TicketComment.id == comment_id)
        )
        if reload:
            query = query.execution_options(populate_existing=True)

        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_for_ticket(
        self,
        ticket_id: int,
        include_deleted: bool = False,
    ) -> List[TicketComment]:
        """
        List comments for a ticket, oldest first.

        Ties on created_at are broken by id, so the order is total.

        Args:
            ticket_id: Ticket ID
            include_deleted: Whether to include soft-deleted comments

        Returns:
            List of comments
        """
        query = (
            select(TicketComment)
            .options(selectinload(TicketComment.author))
            .where(TicketComment.ticket_id == ticket_id)
        )

        if not include_deleted:
            query = query.where(TicketComment.is_deleted.is_(False))

        query = query.order_by(TicketComment.created_at.asc(), TicketComment.id.asc())

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_ticket_participants(
        self, ticket_id: int
    ) -> Tuple[Optional[int], Optional[int]]:
        """
        Creator and assignee of a ticket.

        Returns:
            (created_by_user_id, assigned_to_user_id), (None, None) if the
            ticket does not exist
        """
        result = await self.session.execute(
            select(Ticket.created_by_user_id, Ticket.assigned_to_user_id).where(
                Ticket.id == ticket_id
            )
        )
        row = result.one_or_none()
        if row is None:
            return None, None
        return row.created_by_user_id, row.assigned_to_user_id

    async def get_depth(self, comment_id: int) -> int:
        """
        Number of ancestors above a comment (0 for a top-level comment).

        Walks parent links one row at a time; a cycle in corrupt data stops
        the walk instead of looping.
        """
        depth = 0
        seen = {comment_id}
        current_id: Optional[int] = comment_id

        while current_id is not None:
            result = await self.session.execute(
                select(TicketComment.parent_comment_id).where(TicketComment.id == current_id)
            )
            parent_id = result.scalar_one_or_none()
            if parent_id is None or parent_id in seen:
                break
            seen.add(parent_id)
            depth += 1
            current_id = parent_id

        return depth

    # =========================================================================
    # Writes
    # =========================================================================

    async def create_comment(
        self,
        ticket_id: int,
        user_id: int,
        org_id: int,
        content: str,
        parent_comment_id: Optional[int] = None,
    ) -> TicketComment:
        """
        Create a new comment on a ticket.

        Args:
            ticket_id: Ticket ID
            user_id: Author
            org_id: Author's organization
            content: Comment content (already validated)
            parent_comment_id: Comment being replied to, if any

        Returns:
            Created TicketComment with author loaded
        """
        comment = await self.create(
            ticket_id=ticket_id,
            user_id=user_id,
            org_id=org_id,
            content=content,
            parent_comment_id=parent_comment_id,
            is_deleted=False,
            version=1,
            created_at=datetime.utcnow(),
        )
        return await self.get_by_id(comment.id, reload=True)

    async def add_edit(
        self,
        comment_id: int,
        previous_content: str,
        edited_by_user_id: int,
        edit_reason: Optional[str] = None,
    ) -> TicketCommentEdit:
        """
        Append an edit history entry.

        Args:
            comment_id: Comment being edited
            previous_content: Content before the edit
            edited_by_user_id: User making the edit
            edit_reason: Optional free-text reason

        Returns:
            Created TicketCommentEdit
        """
        edit = TicketCommentEdit(
            comment_id=comment_id,
            previous_content=previous_content,
            edited_by_user_id=edited_by_user_id,
            edit_reason=edit_reason,
            edited_at=datetime.utcnow(),
        )
        self.session.add(edit)
        await self.session.flush()
        return edit

    async def update_content(
        self,
        comment_id: int,
        content: str,
        expected_version: int,
    ) -> bool:
        """
        Replace comment content if nobody changed it in between.

        The update only matches an active comment still at expected_version,
        and bumps the version by one.

        Returns:
            True if the row was updated, False on a version conflict
        """
        result = await self.session.execute(
            update(TicketComment)
            .where(
                TicketComment.id == comment_id,
                TicketComment.version == expected_version,
                TicketComment.is_deleted.is_(False),
            )
            .values(
                content=content,
                version=TicketComment.version + 1,
                updated_at=datetime.utcnow(),
            )
        )
        return result.rowcount == 1

    async def soft_delete(self, comment_id: int) -> bool:
        """
        Mark a comment deleted.

        Returns:
            True if this call deleted it, False if it already was deleted
        """
        result = await self.session.execute(
            update(TicketComment)
            .where(
                TicketComment.id == comment_id,
                TicketComment.is_deleted.is_(False),
            )
            .values(is_deleted=True, deleted_at=datetime.utcnow())
        )
        return result.rowcount == 1

    async def list_edits(self, comment_id: int) -> List[TicketCommentEdit]:
        """List edit history of a comment, oldest first."""
        result = await self.session.execute(
            select(TicketCommentEdit)
            .where(TicketCommentEdit.comment_id == comment_id)
            .order_by(TicketCommentEdit.edited_at.asc(), TicketCommentEdit.id.asc())
        )
        return list(result.scalars().all())
