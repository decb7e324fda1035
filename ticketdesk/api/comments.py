"""
Ticket comment API endpoints.

WHAT: RESTful API for threaded ticket comments.

WHY: Ticket discussions need:
1. A reply tree that survives deleted comments
2. Author-only edits with a full edit history
3. Mentions and participant notifications
4. Strict tenant and role based visibility

HOW: FastAPI router over CommentStore. Every route requires a bearer
token; access is decided per ticket by the access resolver, and
notifications run as background tasks once the comment is committed.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ticketdesk.core.deps import get_comment_store, get_notification_service, get_principal
from ticketdesk.core.exceptions import ValidationError
from ticketdesk.core.principal import PrincipalContext
from ticketdesk.db.session import get_db
from ticketdesk.schemas.comment import (
    CommentCreate,
    CommentEditListEnvelope,
    CommentEditResponse,
    CommentEnvelope,
    CommentListEnvelope,
    CommentResponse,
    CommentUpdate,
    MessageEnvelope,
    NestedCommentResponse,
)
from ticketdesk.services import comment_tree
from ticketdesk.services.access import parse_resource_id
from ticketdesk.services.comment_store import CommentStore
from ticketdesk.services.notification_service import NotificationService


router = APIRouter(prefix="/comments", tags=["comments"])


@router.get(
    "",
    response_model=CommentListEnvelope,
    status_code=status.HTTP_200_OK,
    summary="List comments",
    description="Get the discussion tree of a ticket",
)
async def list_comments(
    ticket_id: Optional[str] = Query(default=None, description="Ticket ID"),
    principal: PrincipalContext = Depends(get_principal),
    store: CommentStore = Depends(get_comment_store),
) -> CommentListEnvelope:
    """
    List a ticket's comments as a reply tree.

    Deleted comments that still have live replies appear as placeholders
    so the replies keep their position; total_count only counts live
    comments.
    """
    if ticket_id is None or not ticket_id.strip():
        raise ValidationError(message="ticket_id is required")
    if parse_resource_id(ticket_id) is None:
        raise ValidationError(message="ticket_id must be a positive integer")

    thread = await store.list_thread(principal, ticket_id)
    tree = comment_tree.build(thread.comments)

    return CommentListEnvelope(
        comments=NestedCommentResponse.from_tree(tree),
        total_count=len(thread.active),
    )


@router.post(
    "",
    response_model=CommentEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create comment",
    description="Add a comment or a reply to a ticket",
)
async def create_comment(
    data: CommentCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    principal: PrincipalContext = Depends(get_principal),
    store: CommentStore = Depends(get_comment_store),
    notifications: NotificationService = Depends(get_notification_service),
) -> CommentEnvelope:
    """
    Create a comment.

    Mentioned users and the ticket's creator and assignee are notified
    after the response; the author never is.
    """
    created = await store.create(
        principal,
        ticket_id=data.ticket_id,
        content=data.content,
        parent_comment_id=data.parent_comment_id,
    )
    comment = created.comment

    # Notifications only go out for committed comments
    await db.commit()

    background_tasks.add_task(
        notifications.notify_mentions_safe,
        ticket_id=comment.ticket_id,
        comment_id=comment.id,
        mentioned_user_ids=created.mentioned_user_ids,
        comment_text=comment.content,
        author_user_id=principal.user_id,
    )
    background_tasks.add_task(
        notifications.notify_participants_safe,
        ticket_id=comment.ticket_id,
        comment_id=comment.id,
        participant_user_ids=created.participant_user_ids,
        comment_text=comment.content,
        author_user_id=principal.user_id,
        exclude_user_ids=created.mentioned_user_ids,
    )

    return CommentEnvelope(comment=CommentResponse.model_validate(comment))


@router.get(
    "/{comment_id}",
    response_model=CommentEnvelope,
    status_code=status.HTTP_200_OK,
    summary="Get comment",
)
async def get_comment(
    comment_id: str,
    principal: PrincipalContext = Depends(get_principal),
    store: CommentStore = Depends(get_comment_store),
) -> CommentEnvelope:
    comment = await store.get(principal, comment_id)
    return CommentEnvelope(comment=CommentResponse.model_validate(comment))


@router.put(
    "/{comment_id}",
    response_model=CommentEnvelope,
    status_code=status.HTTP_200_OK,
    summary="Edit comment",
    description="Replace a comment's content (author only)",
)
async def update_comment(
    comment_id: str,
    data: CommentUpdate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    principal: PrincipalContext = Depends(get_principal),
    store: CommentStore = Depends(get_comment_store),
    notifications: NotificationService = Depends(get_notification_service),
) -> CommentEnvelope:
    """
    Edit a comment.

    The previous content is kept in the edit history. Users mentioned in
    the new content are notified.
    """
    edited = await store.edit(
        principal,
        comment_id,
        data.content,
        reason=data.edit_reason,
        expected_version=data.expected_version,
    )
    comment = edited.comment
    await db.commit()

    background_tasks.add_task(
        notifications.notify_mentions_safe,
        ticket_id=comment.ticket_id,
        comment_id=comment.id,
        mentioned_user_ids=edited.mentioned_user_ids,
        comment_text=comment.content,
        author_user_id=principal.user_id,
    )

    return CommentEnvelope(comment=CommentResponse.model_validate(comment))


@router.delete(
    "/{comment_id}",
    response_model=MessageEnvelope,
    status_code=status.HTTP_200_OK,
    summary="Delete comment",
    description="Soft delete a comment (author only)",
)
async def delete_comment(
    comment_id: str,
    principal: PrincipalContext = Depends(get_principal),
    store: CommentStore = Depends(get_comment_store),
) -> MessageEnvelope:
    await store.soft_delete(principal, comment_id)
    return MessageEnvelope(message="Comment deleted successfully")


@router.get(
    "/{comment_id}/edits",
    response_model=CommentEditListEnvelope,
    status_code=status.HTTP_200_OK,
    summary="Get comment edit history",
)
async def get_comment_edits(
    comment_id: str,
    principal: PrincipalContext = Depends(get_principal),
    store: CommentStore = Depends(get_comment_store),
) -> CommentEditListEnvelope:
    edits = await store.history(principal, comment_id)
    return CommentEditListEnvelope(
        edits=[CommentEditResponse.model_validate(edit) for edit in edits]
    )
