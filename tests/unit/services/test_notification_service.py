"""
Unit tests for NotificationService.

WHAT: Tests comment notification orchestration.

WHY: Ensures the right users hear about comments (never the author,
never twice) and that delivery failures stay out of the comment path.

HOW: Uses mocked WebhookService to verify notification calls.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from ticketdesk.core.exceptions import NotificationDeliveryError
from ticketdesk.services.notification_service import (
    MENTION_EVENT,
    PARTICIPANT_EVENT,
    NotificationService,
    build_preview,
)
from ticketdesk.services.webhook_service import WebhookService


class TestNotificationService:
    """Tests for NotificationService class."""

    @pytest.fixture
    def mock_webhook_service(self):
        """Create a mocked WebhookService."""
        mock = MagicMock(spec=WebhookService)
        mock.send_event = AsyncMock(return_value=True)
        return mock

    @pytest.fixture
    def notification_service(self, mock_webhook_service):
        """Create NotificationService with mocked webhook."""
        return NotificationService(webhook_service=mock_webhook_service)


class TestMentionNotifications(TestNotificationService):
    """Tests for notify_mentions."""

    @pytest.mark.asyncio
    async def test_notify_mentions(self, notification_service, mock_webhook_service):
        result = await notification_service.notify_mentions(
            ticket_id=7,
            comment_id=41,
            mentioned_user_ids={9, 4},
            comment_text="@[Dana](4) and @[Raj](9), please look",
            author_user_id=2,
        )

        assert result is True
        event, payload = mock_webhook_service.send_event.call_args.args
        assert event == MENTION_EVENT
        assert payload["ticket_id"] == 7
        assert payload["comment_id"] == 41
        assert payload["recipient_user_ids"] == [4, 9]
        assert payload["preview"] == "@Dana and @Raj, please look"

    @pytest.mark.asyncio
    async def test_author_is_never_notified(self, notification_service, mock_webhook_service):
        result = await notification_service.notify_mentions(
            ticket_id=7,
            comment_id=41,
            mentioned_user_ids={2},
            comment_text="note to self @[Me](2)",
            author_user_id=2,
        )

        assert result is False
        mock_webhook_service.send_event.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_mentions_sends_nothing(self, notification_service, mock_webhook_service):
        result = await notification_service.notify_mentions(
            ticket_id=7, comment_id=41, mentioned_user_ids=set(), comment_text="plain"
        )

        assert result is False
        mock_webhook_service.send_event.assert_not_called()


class TestParticipantNotifications(TestNotificationService):
    """Tests for notify_participants."""

    @pytest.mark.asyncio
    async def test_notify_participants(self, notification_service, mock_webhook_service):
        result = await notification_service.notify_participants(
            ticket_id=7,
            comment_id=41,
            participant_user_ids={1, 3},
            comment_text="Deployed the fix",
            author_user_id=2,
        )

        assert result is True
        event, payload = mock_webhook_service.send_event.call_args.args
        assert event == PARTICIPANT_EVENT
        assert payload["recipient_user_ids"] == [1, 3]

    @pytest.mark.asyncio
    async def test_mentioned_participants_are_not_notified_twice(
        self, notification_service, mock_webhook_service
    ):
        """Users who got a mention notification are skipped here."""
        await notification_service.notify_participants(
            ticket_id=7,
            comment_id=41,
            participant_user_ids={1, 3},
            comment_text="@[Casey](1) fixed",
            author_user_id=2,
            exclude_user_ids={1},
        )

        _, payload = mock_webhook_service.send_event.call_args.args
        assert payload["recipient_user_ids"] == [3]

    @pytest.mark.asyncio
    async def test_unassigned_ticket_participants(self, notification_service, mock_webhook_service):
        """A missing assignee (None) is not a recipient."""
        result = await notification_service.notify_participants(
            ticket_id=7,
            comment_id=41,
            participant_user_ids=[None, 2],
            comment_text="Self reply",
            author_user_id=2,
        )

        assert result is False
        mock_webhook_service.send_event.assert_not_called()


class TestNotificationServiceErrorHandling(TestNotificationService):
    """Tests for error handling in NotificationService."""

    @pytest.mark.asyncio
    async def test_delivery_error_propagates(self, notification_service, mock_webhook_service):
        mock_webhook_service.send_event = AsyncMock(side_effect=NotificationDeliveryError())

        with pytest.raises(NotificationDeliveryError):
            await notification_service.notify_mentions(
                ticket_id=7, comment_id=41, mentioned_user_ids={4}, comment_text="hi"
            )

    @pytest.mark.asyncio
    async def test_safe_variants_return_false(self, notification_service, mock_webhook_service):
        """Test that webhook failures return False without raising."""
        mock_webhook_service.send_event = AsyncMock(side_effect=NotificationDeliveryError())

        mentions = await notification_service.notify_mentions_safe(
            ticket_id=7, comment_id=41, mentioned_user_ids={4}, comment_text="hi"
        )
        participants = await notification_service.notify_participants_safe(
            ticket_id=7, comment_id=41, participant_user_ids={1}, comment_text="hi"
        )

        assert mentions is False
        assert participants is False


class TestBuildPreview:
    """Tests for build_preview."""

    def test_collapses_whitespace(self):
        assert build_preview("line one\n\n  line two") == "line one line two"

    def test_long_text_is_truncated(self):
        preview = build_preview("word " * 200, limit=50)

        assert len(preview) <= 50
        assert preview.endswith("…")
