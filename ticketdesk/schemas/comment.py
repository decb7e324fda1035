"""
Pydantic schemas for comment endpoints.

WHAT: Request/response schemas for the ticket comment API.

WHY: Schemas define API contracts for comment operations:
1. Validate incoming request data
2. Document API for OpenAPI/Swagger
3. Control which fields are exposed (deleted content never is)
4. Keep the success envelope identical across endpoints

HOW: Uses Pydantic v2 with ORM mode; responses are built from the
CommentView snapshots returned by CommentStore.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ticketdesk.services.comment_tree import NestedComment, flatten_nodes


# ============================================================================
# Requests
# ============================================================================


class CommentCreate(BaseModel):
    """
    Comment creation request.

    WHAT: Data for adding a comment or a reply to a ticket.
    """

    ticket_id: int = Field(..., gt=0, description="Ticket to comment on")
    parent_comment_id: Optional[int] = Field(
        None, gt=0, description="Comment being replied to"
    )
    content: str = Field(
        ...,
        min_length=1,
        description="Comment content; mentions use @[Name](user_id)",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "ticket_id": 42,
                "parent_comment_id": None,
                "content": "@[Dana Lee](17) can you confirm the rollout date?",
            }
        }
    )


class CommentUpdate(BaseModel):
    """
    Comment update request.

    WHY: expected_version lets a client detect that someone else changed
    the comment since it was loaded.
    """

    content: str = Field(..., min_length=1, description="Updated comment content")
    edit_reason: Optional[str] = Field(None, max_length=500, description="Why it was edited")
    expected_version: Optional[int] = Field(
        None, ge=1, description="Version the edit is based on"
    )


# ============================================================================
# Responses
# ============================================================================


class CommentResponse(BaseModel):
    """
    Comment response schema.

    Deleted comments carry the placeholder text as content.
    """

    id: int = Field(..., description="Comment ID")
    ticket_id: int = Field(..., description="Parent ticket ID")
    parent_comment_id: Optional[int] = Field(None, description="Comment replied to")
    user_id: int = Field(..., description="Author ID")
    org_id: int = Field(..., description="Author organization ID")
    content: str = Field(..., description="Comment content")
    is_deleted: bool = Field(default=False, description="True if soft-deleted")
    is_edited: bool = Field(default=False, description="True if comment was edited")
    version: int = Field(..., description="Edit version, starts at 1")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last edit timestamp")
    user_name: Optional[str] = Field(None, validation_alias="author_name", description="Author name")
    user_email: Optional[str] = Field(None, validation_alias="author_email", description="Author email")
    user_avatar: Optional[str] = Field(
        None, validation_alias="author_avatar", description="Author profile picture URL"
    )

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class NestedCommentResponse(CommentResponse):
    """Comment with its replies, as one node of the discussion tree."""

    depth: int = Field(0, description="0 for top-level comments")
    replies: List["NestedCommentResponse"] = Field(default_factory=list)

    @classmethod
    def from_tree(cls, roots: List[NestedComment]) -> List["NestedCommentResponse"]:
        """
        Convert a built comment tree, bottom-up.

        Replies are converted before their parents, so no recursion is
        needed however deep the thread.
        """
        converted = {}
        for node in reversed(flatten_nodes(roots)):
            response = cls.model_validate(node.comment)
            response.depth = node.depth
            response.replies = [converted.pop(reply.id) for reply in node.replies]
            converted[node.id] = response
        return [converted.pop(root.id) for root in roots]


class CommentEditResponse(BaseModel):
    """One edit history entry."""

    id: int
    comment_id: int
    previous_content: str
    edited_by_user_id: int
    edit_reason: Optional[str] = None
    edited_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Envelopes
# ============================================================================


class CommentEnvelope(BaseModel):
    success: bool = True
    comment: CommentResponse


class CommentListEnvelope(BaseModel):
    """Discussion tree of a ticket; total_count counts non-deleted comments."""

    success: bool = True
    comments: List[NestedCommentResponse]
    total_count: int


class CommentEditListEnvelope(BaseModel):
    success: bool = True
    edits: List[CommentEditResponse]


class MessageEnvelope(BaseModel):
    success: bool = True
    message: str
