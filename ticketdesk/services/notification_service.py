"""
Notification Service for comment events.

WHAT: Tells users about comments that concern them: mentions, and new
activity on tickets they created or are assigned to.

WHY: Comment operations only report who should hear about them; this
service decides what is sent and hands it to the delivery channel, so a
notification outage can never fail a comment write.

HOW: Event-specific methods build the payload and delegate to
WebhookService. The API layer schedules them as background tasks after
the response.
"""

import logging
from typing import Iterable, List, Optional

from ticketdesk.services.mentions import render_mentions
from ticketdesk.services.webhook_service import WebhookService

logger = logging.getLogger(__name__)

MENTION_EVENT = "comment.mention"
PARTICIPANT_EVENT = "comment.created"

# Notification previews, not full comment bodies.
PREVIEW_LENGTH = 280


def build_preview(comment_text: str, limit: int = PREVIEW_LENGTH) -> str:
    """
    Plain-text preview of a comment.

    Mention markup is rendered as ``@Name`` and long text is cut with an
    ellipsis.
    """
    text = " ".join(render_mentions(comment_text).split())
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"


def _recipients(user_ids: Iterable[int], author_user_id: Optional[int]) -> List[int]:
    return sorted({user_id for user_id in user_ids if user_id and user_id != author_user_id})


class NotificationService:
    """
    Orchestrates comment notifications.

    Attributes:
        webhook_service: Delivery channel
    """

    def __init__(self, webhook_service: Optional[WebhookService] = None):
        self.webhook_service = webhook_service or WebhookService()

    # =========================================================================
    # Comment Notifications
    # =========================================================================

    async def notify_mentions(
        self,
        ticket_id: int,
        comment_id: int,
        mentioned_user_ids: Iterable[int],
        comment_text: str,
        author_user_id: Optional[int] = None,
    ) -> bool:
        """
        Notify users mentioned in a comment.

        Args:
            ticket_id: Ticket the comment belongs to
            comment_id: The comment
            mentioned_user_ids: Users mentioned in the comment
            comment_text: Comment content (used for the preview)
            author_user_id: Comment author, never notified

        Returns:
            True if an event was delivered

        Raises:
            NotificationDeliveryError: If the webhook call fails
        """
        recipients = _recipients(mentioned_user_ids, author_user_id)
        if not recipients:
            return False

        logger.info(
            f"Sending mention notification for comment #{comment_id} "
            f"to {len(recipients)} user(s)"
        )
        return await self.webhook_service.send_event(
            MENTION_EVENT,
            {
                "ticket_id": ticket_id,
                "comment_id": comment_id,
                "author_user_id": author_user_id,
                "recipient_user_ids": recipients,
                "preview": build_preview(comment_text),
            },
        )

    async def notify_participants(
        self,
        ticket_id: int,
        comment_id: int,
        participant_user_ids: Iterable[int],
        comment_text: str,
        author_user_id: Optional[int] = None,
        exclude_user_ids: Iterable[int] = (),
    ) -> bool:
        """
        Notify the ticket's creator and assignee of a new comment.

        Args:
            ticket_id: Ticket the comment belongs to
            comment_id: The new comment
            participant_user_ids: Ticket creator and assignee
            comment_text: Comment content (used for the preview)
            author_user_id: Comment author, never notified
            exclude_user_ids: Users already notified about this comment
                (mentioned users)

        Returns:
            True if an event was delivered

        Raises:
            NotificationDeliveryError: If the webhook call fails
        """
        excluded = set(exclude_user_ids)
        recipients = [
            user_id
            for user_id in _recipients(participant_user_ids, author_user_id)
            if user_id not in excluded
        ]
        if not recipients:
            return False

        logger.info(
            f"Sending new comment notification for ticket #{ticket_id} "
            f"to {len(recipients)} participant(s)"
        )
        return await self.webhook_service.send_event(
            PARTICIPANT_EVENT,
            {
                "ticket_id": ticket_id,
                "comment_id": comment_id,
                "author_user_id": author_user_id,
                "recipient_user_ids": recipients,
                "preview": build_preview(comment_text),
            },
        )

    async def notify_mentions_safe(self, *args, **kwargs) -> bool:
        """notify_mentions that logs failures instead of raising."""
        try:
            return await self.notify_mentions(*args, **kwargs)
        except Exception as e:
            logger.error(f"Failed to send mention notification: {e}")
            return False

    async def notify_participants_safe(self, *args, **kwargs) -> bool:
        """notify_participants that logs failures instead of raising."""
        try:
            return await self.notify_participants(*args, **kwargs)
        except Exception as e:
            logger.error(f"Failed to send participant notification: {e}")
            return False
