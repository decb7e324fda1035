"""
Ticket and comment models.

WHAT: SQLAlchemy models for tickets, threaded ticket comments, and the
comment edit history.

WHY: Provides the persistence side of ticket discussions:
1. Tickets are read-only here (ticket management owns them)
2. Comments form a reply tree via parent_comment_id
3. Comments are soft-deleted so replies keep their anchor
4. Every content edit appends a TicketCommentEdit snapshot

HOW: Uses SQLAlchemy 2.0 typed mappings with indexes on the columns the
comment queries filter and sort on.
"""

from datetime import datetime
from typing import Optional, List, TYPE_CHECKING

from sqlalchemy import (
    Integer,
    String,
    Text,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy.sql import func

from ticketdesk.models.base import Base

if TYPE_CHECKING:
    from ticketdesk.models.project import Project
    from ticketdesk.models.user import User


# ============================================================================
# Ticket Model
# ============================================================================


class Ticket(Base):
    """
    Unit of work inside a project.

    Security: the tenant of a ticket is its project's org_id; the ticket
    row itself carries no org column.
    """

    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    project_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("projects.id"), nullable=False
    )
    created_by_user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    assigned_to_user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, onupdate=datetime.utcnow, nullable=True
    )

    project: Mapped["Project"] = relationship("Project", back_populates="tickets")
    created_by: Mapped["User"] = relationship("User", foreign_keys=[created_by_user_id])
    assigned_to: Mapped[Optional["User"]] = relationship(
        "User", foreign_keys=[assigned_to_user_id]
    )
    comments: Mapped[List["TicketComment"]] = relationship(
        "TicketComment", back_populates="ticket"
    )

    __table_args__ = (
        Index("ix_tickets_project_id", "project_id"),
        Index("ix_tickets_created_by", "created_by_user_id"),
        Index("ix_tickets_assigned_to", "assigned_to_user_id"),
    )

    def __repr__(self) -> str:
        return f"<Ticket(id={self.id}, project_id={self.project_id})>"


# ============================================================================
# TicketComment Model
# ============================================================================


class TicketComment(Base):
    """
    Comment on a ticket.

    WHAT: One node of a ticket's discussion tree.

    Lifecycle:
    - Active --edit--> Active (author only, appends edit history)
    - Active --delete--> Deleted (author only, terminal)
    - Deleted --delete--> Deleted (no-op)

    Invariants:
    - parent_comment_id, when set, references a comment on the same ticket
    - never hard-deleted; content of a deleted comment is never served
    - version increases by one on every content edit
    """

    __tablename__ = "ticket_comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ticket_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tickets.id"), nullable=False
    )
    parent_comment_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("ticket_comments.id"), nullable=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    org_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.id"), nullable=False
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

    # Soft delete
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Optimistic concurrency token for edits
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    ticket: Mapped["Ticket"] = relationship("Ticket", back_populates="comments")
    author: Mapped["User"] = relationship("User", foreign_keys=[user_id])
    edits: Mapped[List["TicketCommentEdit"]] = relationship(
        "TicketCommentEdit",
        back_populates="comment",
        order_by="TicketCommentEdit.id",
    )

    __table_args__ = (
        Index("ix_ticket_comments_ticket_id", "ticket_id"),
        Index("ix_ticket_comments_parent_id", "parent_comment_id"),
        Index("ix_ticket_comments_user_id", "user_id"),
        Index("ix_ticket_comments_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<TicketComment(id={self.id}, ticket_id={self.ticket_id}, "
            f"parent={self.parent_comment_id}, deleted={self.is_deleted})>"
        )

    @property
    def is_edited(self) -> bool:
        """Check if comment content has been edited."""
        return self.version > 1


# ============================================================================
# TicketCommentEdit Model
# ============================================================================


class TicketCommentEdit(Base):
    """
    Snapshot of a comment's content before an edit.

    WHY: History records what was overwritten, so the audit trail is
    continuous back to creation. Rows are append-only.
    """

    __tablename__ = "ticket_comment_edits"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    comment_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("ticket_comments.id"), nullable=False
    )
    previous_content: Mapped[str] = mapped_column(Text, nullable=False)
    edited_by_user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False
    )
    edit_reason: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    edited_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, server_default=func.now(), nullable=False
    )

    comment: Mapped["TicketComment"] = relationship(
        "TicketComment", back_populates="edits"
    )

    __table_args__ = (
        Index("ix_ticket_comment_edits_comment_id", "comment_id"),
    )

    def __repr__(self) -> str:
        return f"<TicketCommentEdit(id={self.id}, comment_id={self.comment_id})>"
