"""
Integration tests for the ticket comment API.

WHAT: Tests for comment operations via HTTP API.

WHY: Comments expose ticket discussions across departments and tenants.
These tests ensure:
1. Every route requires a valid bearer token
2. Tenant isolation hides foreign tickets entirely (OWASP A01)
3. Role-based denials inside a tenant are reported as 403
4. Replies, edits, history and deletes behave end to end
5. Errors always use the standard envelope

HOW: Uses pytest-asyncio with AsyncClient for HTTP testing.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from tests.factories import CommentFactory, UserFactory

COMMENTS_URL = "/api/comments"
PLACEHOLDER = "[This comment has been deleted]"


async def _create(client, headers, ticket_id, content, parent_comment_id=None):
    payload = {"ticket_id": ticket_id, "content": content}
    if parent_comment_id is not None:
        payload["parent_comment_id"] = parent_comment_id
    return await client.post(COMMENTS_URL, headers=headers, json=payload)


def _assert_error(response, status_code: int, error_code: str):
    assert response.status_code == status_code
    data = response.json()
    assert data["success"] is False
    assert data["status_code"] == status_code
    assert data["error_code"] == error_code
    assert isinstance(data["error"], str)


class TestAuthentication:
    """Every comment route requires a principal."""

    @pytest.mark.asyncio
    async def test_missing_token(self, client: AsyncClient, world):
        response = await client.get(COMMENTS_URL, params={"ticket_id": world.ticket.id})
        _assert_error(response, 401, "AuthenticationError")

    @pytest.mark.asyncio
    async def test_invalid_token(self, client: AsyncClient, world):
        response = await client.get(
            COMMENTS_URL,
            params={"ticket_id": world.ticket.id},
            headers={"Authorization": "Bearer not-a-token"},
        )
        _assert_error(response, 401, "TokenInvalidError")


class TestCreateComment:
    """Integration tests for POST /comments."""

    @pytest.mark.asyncio
    async def test_create_comment_as_creator(
        self, client: AsyncClient, world, auth_headers, notification_spy
    ):
        response = await _create(
            client, auth_headers(world.creator), world.ticket.id, "  Seeing 504s since 10:02  "
        )

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        comment = data["comment"]
        assert comment["content"] == "Seeing 504s since 10:02"
        assert comment["ticket_id"] == world.ticket.id
        assert comment["user_id"] == world.creator.id
        assert comment["user_name"] == "Casey Creator"
        assert comment["version"] == 1
        assert comment["is_edited"] is False
        assert comment["is_deleted"] is False

    @pytest.mark.asyncio
    async def test_notifications_are_scheduled(
        self, client: AsyncClient, world, auth_headers, notification_spy
    ):
        """
        Mentions and participants are notified, the author never is.
        """
        content = f"@[Eli]({world.engineer.id}) can you check the pool size?"
        response = await _create(client, auth_headers(world.assignee), world.ticket.id, content)

        assert response.status_code == 201
        mentions = notification_spy.notify_mentions_safe.call_args.kwargs
        participants = notification_spy.notify_participants_safe.call_args.kwargs
        assert mentions["mentioned_user_ids"] == {world.engineer.id}
        assert mentions["author_user_id"] == world.assignee.id
        assert participants["participant_user_ids"] == {world.creator.id}
        assert participants["exclude_user_ids"] == {world.engineer.id}

    @pytest.mark.asyncio
    async def test_department_member_can_comment(self, client: AsyncClient, world, auth_headers):
        response = await _create(client, auth_headers(world.engineer), world.ticket.id, "On it")
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_shared_department_member_can_comment(
        self, client: AsyncClient, world, auth_headers
    ):
        response = await _create(client, auth_headers(world.supporter), world.ticket.id, "Customer pinged")
        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_user_without_role_is_forbidden(self, client: AsyncClient, world, auth_headers):
        response = await _create(client, auth_headers(world.outsider), world.ticket.id, "Hi")
        _assert_error(response, 403, "AccessDeniedError")

    @pytest.mark.asyncio
    async def test_other_tenant_gets_not_found(self, client: AsyncClient, world, auth_headers):
        """Cross-tenant requests cannot tell whether a ticket exists."""
        foreign = await _create(client, auth_headers(world.foreign_admin), world.ticket.id, "Hi")
        missing = await _create(client, auth_headers(world.admin), 777777, "Hi")

        _assert_error(foreign, 404, "TicketNotFoundError")
        _assert_error(missing, 404, "TicketNotFoundError")
        assert foreign.json()["error"] == missing.json()["error"]

    @pytest.mark.asyncio
    async def test_empty_content_is_rejected(self, client: AsyncClient, world, auth_headers):
        blank = await _create(client, auth_headers(world.creator), world.ticket.id, "   ")
        missing = await client.post(
            COMMENTS_URL, headers=auth_headers(world.creator), json={"ticket_id": world.ticket.id}
        )

        _assert_error(blank, 400, "ValidationError")
        _assert_error(missing, 400, "ValidationError")

    @pytest.mark.asyncio
    async def test_reply_to_missing_parent_is_rejected(self, client: AsyncClient, world, auth_headers):
        response = await _create(
            client, auth_headers(world.creator), world.ticket.id, "Reply", parent_comment_id=555555
        )
        _assert_error(response, 400, "InvalidParentError")


class TestListComments:
    """Integration tests for GET /comments."""

    @pytest.mark.asyncio
    async def test_ticket_id_is_required(self, client: AsyncClient, world, auth_headers):
        response = await client.get(COMMENTS_URL, headers=auth_headers(world.creator))

        _assert_error(response, 400, "ValidationError")
        assert response.json()["error"] == "ticket_id is required"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ticket_id", ["abc", "0", "-5", "1.5"])
    async def test_malformed_ticket_id(self, client: AsyncClient, world, auth_headers, ticket_id):
        response = await client.get(
            COMMENTS_URL, params={"ticket_id": ticket_id}, headers=auth_headers(world.creator)
        )
        _assert_error(response, 400, "ValidationError")

    @pytest.mark.asyncio
    async def test_empty_ticket(self, client: AsyncClient, world, auth_headers):
        response = await client.get(
            COMMENTS_URL, params={"ticket_id": world.ticket.id}, headers=auth_headers(world.admin)
        )

        assert response.status_code == 200
        assert response.json() == {"success": True, "comments": [], "total_count": 0}

    @pytest.mark.asyncio
    async def test_returns_reply_tree(self, client: AsyncClient, world, auth_headers):
        creator = auth_headers(world.creator)
        root = (await _create(client, creator, world.ticket.id, "Root")).json()["comment"]
        reply = (
            await _create(
                client, auth_headers(world.assignee), world.ticket.id, "Reply", root["id"]
            )
        ).json()["comment"]
        second_root = (await _create(client, creator, world.ticket.id, "Second")).json()["comment"]

        response = await client.get(
            COMMENTS_URL, params={"ticket_id": world.ticket.id}, headers=creator
        )

        data = response.json()
        assert data["total_count"] == 3
        assert [c["id"] for c in data["comments"]] == [root["id"], second_root["id"]]
        assert data["comments"][0]["depth"] == 0
        assert data["comments"][0]["replies"][0]["id"] == reply["id"]
        assert data["comments"][0]["replies"][0]["depth"] == 1
        assert data["comments"][1]["replies"] == []

    @pytest.mark.asyncio
    async def test_deleted_parent_keeps_reply_in_place(
        self, client: AsyncClient, world, auth_headers
    ):
        """
        A deleted parent with live replies shows as a placeholder.

        WHY: Removing it would orphan the replies or lift them to the top.
        """
        creator = auth_headers(world.creator)
        parent = (await _create(client, creator, world.ticket.id, "Parent")).json()["comment"]
        reply = (
            await _create(client, auth_headers(world.assignee), world.ticket.id, "Reply", parent["id"])
        ).json()["comment"]
        await client.delete(f"{COMMENTS_URL}/{parent['id']}", headers=creator)

        response = await client.get(
            COMMENTS_URL, params={"ticket_id": world.ticket.id}, headers=creator
        )

        data = response.json()
        assert data["total_count"] == 1
        assert len(data["comments"]) == 1
        anchor = data["comments"][0]
        assert anchor["id"] == parent["id"]
        assert anchor["is_deleted"] is True
        assert anchor["content"] == PLACEHOLDER
        assert anchor["replies"][0]["id"] == reply["id"]

    @pytest.mark.asyncio
    async def test_list_forbidden_for_user_without_role(
        self, client: AsyncClient, world, auth_headers
    ):
        response = await client.get(
            COMMENTS_URL, params={"ticket_id": world.ticket.id}, headers=auth_headers(world.outsider)
        )
        _assert_error(response, 403, "AccessDeniedError")


class TestGetComment:
    """Integration tests for GET /comments/{id}."""

    @pytest.mark.asyncio
    async def test_get_comment(self, client: AsyncClient, db_session, world, auth_headers):
        comment = await CommentFactory.create(db_session, world.ticket, world.creator, "Hello")

        response = await client.get(
            f"{COMMENTS_URL}/{comment.id}", headers=auth_headers(world.engineer)
        )

        assert response.status_code == 200
        assert response.json()["comment"]["content"] == "Hello"

    @pytest.mark.asyncio
    async def test_get_deleted_comment_shows_placeholder(
        self, client: AsyncClient, db_session, world, auth_headers
    ):
        comment = await CommentFactory.create(
            db_session, world.ticket, world.creator, "Leaked?", is_deleted=True
        )

        response = await client.get(
            f"{COMMENTS_URL}/{comment.id}", headers=auth_headers(world.creator)
        )

        assert response.json()["comment"]["content"] == PLACEHOLDER
        assert "Leaked?" not in response.text

    @pytest.mark.asyncio
    async def test_get_from_other_tenant(self, client: AsyncClient, db_session, world, auth_headers):
        comment = await CommentFactory.create(db_session, world.ticket, world.creator)

        response = await client.get(
            f"{COMMENTS_URL}/{comment.id}", headers=auth_headers(world.foreign_admin)
        )
        _assert_error(response, 404, "CommentNotFoundError")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("suffix", ["abc", "abc/edits", "0", "-3"])
    async def test_malformed_comment_id_is_not_found(
        self, client: AsyncClient, world, auth_headers, suffix
    ):
        response = await client.get(f"{COMMENTS_URL}/{suffix}", headers=auth_headers(world.creator))
        _assert_error(response, 404, "CommentNotFoundError")

    @pytest.mark.asyncio
    async def test_author_avatar_is_included(
        self, client: AsyncClient, db_session, world, auth_headers
    ):
        author = await UserFactory.create(
            db_session,
            world.org,
            name="Pat Pictured",
            profile_picture_url="https://cdn.example.com/pat.png",
        )
        with_avatar = await CommentFactory.create(db_session, world.ticket, author, "Hi")
        without_avatar = await CommentFactory.create(db_session, world.ticket, world.creator, "Yo")
        headers = auth_headers(world.admin)

        pictured = await client.get(f"{COMMENTS_URL}/{with_avatar.id}", headers=headers)
        plain = await client.get(f"{COMMENTS_URL}/{without_avatar.id}", headers=headers)

        assert pictured.json()["comment"]["user_avatar"] == "https://cdn.example.com/pat.png"
        assert plain.json()["comment"]["user_avatar"] is None


class TestUpdateComment:
    """Integration tests for PUT /comments/{id} and edit history."""

    @pytest.mark.asyncio
    async def test_edit_and_history(self, client: AsyncClient, world, auth_headers, notification_spy):
        headers = auth_headers(world.creator)
        created = (await _create(client, headers, world.ticket.id, "Frist")).json()["comment"]

        response = await client.put(
            f"{COMMENTS_URL}/{created['id']}",
            headers=headers,
            json={"content": "First", "edit_reason": "typo", "expected_version": 1},
        )

        assert response.status_code == 200
        comment = response.json()["comment"]
        assert comment["content"] == "First"
        assert comment["version"] == 2
        assert comment["is_edited"] is True
        assert comment["updated_at"] is not None

        history = await client.get(f"{COMMENTS_URL}/{created['id']}/edits", headers=headers)
        edits = history.json()["edits"]
        assert len(edits) == 1
        assert edits[0]["previous_content"] == "Frist"
        assert edits[0]["edit_reason"] == "typo"

    @pytest.mark.asyncio
    async def test_stale_version_conflicts(self, client: AsyncClient, world, auth_headers):
        headers = auth_headers(world.creator)
        created = (await _create(client, headers, world.ticket.id, "v1")).json()["comment"]
        url = f"{COMMENTS_URL}/{created['id']}"

        await client.put(url, headers=headers, json={"content": "v2", "expected_version": 1})
        response = await client.put(url, headers=headers, json={"content": "v2b", "expected_version": 1})

        _assert_error(response, 409, "EditConflictError")

    @pytest.mark.asyncio
    async def test_admin_cannot_edit_others_comment(self, client: AsyncClient, world, auth_headers):
        created = (
            await _create(client, auth_headers(world.creator), world.ticket.id, "Mine")
        ).json()["comment"]

        response = await client.put(
            f"{COMMENTS_URL}/{created['id']}",
            headers=auth_headers(world.admin),
            json={"content": "Edited by admin"},
        )
        _assert_error(response, 403, "OwnershipError")

    @pytest.mark.asyncio
    async def test_edit_deleted_comment(self, client: AsyncClient, world, auth_headers):
        headers = auth_headers(world.creator)
        created = (await _create(client, headers, world.ticket.id, "Bye")).json()["comment"]
        await client.delete(f"{COMMENTS_URL}/{created['id']}", headers=headers)

        response = await client.put(
            f"{COMMENTS_URL}/{created['id']}", headers=headers, json={"content": "Back"}
        )
        _assert_error(response, 400, "EditDeletedError")


class TestDeleteComment:
    """Integration tests for DELETE /comments/{id}."""

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, client: AsyncClient, world, auth_headers):
        headers = auth_headers(world.creator)
        created = (await _create(client, headers, world.ticket.id, "Temp")).json()["comment"]
        url = f"{COMMENTS_URL}/{created['id']}"

        first = await client.delete(url, headers=headers)
        second = await client.delete(url, headers=headers)

        assert first.status_code == 200
        assert first.json() == {"success": True, "message": "Comment deleted successfully"}
        assert second.status_code == 200

    @pytest.mark.asyncio
    async def test_non_author_cannot_delete(self, client: AsyncClient, world, auth_headers):
        created = (
            await _create(client, auth_headers(world.creator), world.ticket.id, "Mine")
        ).json()["comment"]

        response = await client.delete(
            f"{COMMENTS_URL}/{created['id']}", headers=auth_headers(world.assignee)
        )
        _assert_error(response, 403, "OwnershipError")

    @pytest.mark.asyncio
    async def test_delete_unknown_comment(self, client: AsyncClient, world, auth_headers):
        response = await client.delete(f"{COMMENTS_URL}/123456", headers=auth_headers(world.creator))
        _assert_error(response, 404, "CommentNotFoundError")


class TestNotificationsAfterCommit:
    """
    Notifications only go out for comments that were stored.

    WHY: A user must never be told about a comment that a failed commit
    threw away.
    """

    @pytest.fixture
    def events(self, db_session, notification_spy, monkeypatch):
        """Record commits and notification calls in the order they happen."""
        recorded = []
        commit = db_session.commit

        async def recording_commit():
            recorded.append("commit")
            await commit()

        def notified(**kwargs):
            recorded.append("notify")
            return True

        monkeypatch.setattr(db_session, "commit", recording_commit)
        notification_spy.notify_mentions_safe.side_effect = notified
        notification_spy.notify_participants_safe.side_effect = notified
        return recorded

    @pytest.mark.asyncio
    async def test_create_commits_before_notifying(
        self, client: AsyncClient, world, auth_headers, events
    ):
        content = f"@[Eli]({world.engineer.id}) please look"
        response = await _create(client, auth_headers(world.assignee), world.ticket.id, content)

        assert response.status_code == 201
        assert events == ["commit", "notify", "notify"]

    @pytest.mark.asyncio
    async def test_edit_commits_before_notifying(
        self, client: AsyncClient, world, auth_headers, events
    ):
        headers = auth_headers(world.creator)
        created = (await _create(client, headers, world.ticket.id, "Draft")).json()["comment"]
        events.clear()

        response = await client.put(
            f"{COMMENTS_URL}/{created['id']}",
            headers=headers,
            json={"content": f"@[Eli]({world.engineer.id}) final"},
        )

        assert response.status_code == 200
        assert events == ["commit", "notify"]

    @pytest.mark.asyncio
    async def test_failed_commit_sends_nothing(
        self, client: AsyncClient, db_session, world, auth_headers, notification_spy, monkeypatch
    ):
        async def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db_session, "commit", failing_commit)

        content = f"@[Eli]({world.engineer.id}) lost?"
        response = await _create(client, auth_headers(world.assignee), world.ticket.id, content)

        _assert_error(response, 500, "DatabaseError")
        notification_spy.notify_mentions_safe.assert_not_awaited()
        notification_spy.notify_participants_safe.assert_not_awaited()


class TestHealth:
    """Health endpoints need no token."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/health", "/api/health"])
    async def test_health(self, client: AsyncClient, path):
        response = await client.get(path)

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers
