"""
Tests for the comment response schemas.

WHY: Responses are built straight from CommentView snapshots, so the
attribute mapping and the author fields must line up.
"""

from datetime import datetime, timezone

from ticketdesk.schemas.comment import CommentEditResponse, CommentResponse
from ticketdesk.services.comment_store import CommentView


def _view(**overrides) -> CommentView:
    values = dict(
        id=7,
        ticket_id=3,
        parent_comment_id=None,
        user_id=11,
        org_id=1,
        content="Rollback done",
        is_deleted=False,
        version=2,
        created_at=datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc),
        author_name="Robin Ops",
        author_email="robin@example.com",
        author_avatar="https://cdn.example.com/robin.png",
    )
    values.update(overrides)
    return CommentView(**values)


class TestCommentResponse:
    """Tests for CommentResponse."""

    def test_config_uses_config_dict(self):
        assert CommentResponse.model_config["from_attributes"] is True
        assert CommentResponse.model_config["populate_by_name"] is True
        assert CommentEditResponse.model_config["from_attributes"] is True

    def test_author_fields_from_view(self):
        response = CommentResponse.model_validate(_view())

        assert response.user_name == "Robin Ops"
        assert response.user_email == "robin@example.com"
        assert response.user_avatar == "https://cdn.example.com/robin.png"
        assert response.is_edited is True

    def test_missing_avatar_serializes_as_null(self):
        data = CommentResponse.model_validate(_view(author_avatar=None)).model_dump()

        assert "user_avatar" in data
        assert data["user_avatar"] is None
