"""
Notification Webhook Service.

WHAT: Posts notification events as JSON to the configured webhook.

WHY: Delivery to users (email, in-app, chat) is owned by the notification
platform behind the webhook; this service only hands events over.

HOW: Uses httpx async client to POST one JSON document per event.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ticketdesk.core.config import settings
from ticketdesk.core.exceptions import NotificationDeliveryError

logger = logging.getLogger(__name__)


class WebhookService:
    """
    Service for posting events to the notification webhook.

    Attributes:
        webhook_url: Target URL
        enabled: Whether delivery is enabled
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        enabled: Optional[bool] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize WebhookService.

        WHY: Allows injection of config for testing while defaulting
        to environment settings in production.

        Args:
            webhook_url: Webhook URL (defaults to settings)
            enabled: Whether delivery is enabled (defaults to settings)
            timeout: HTTP request timeout in seconds (defaults to settings)
        """
        self.webhook_url = webhook_url or settings.NOTIFICATION_WEBHOOK_URL
        self.enabled = (
            enabled if enabled is not None else settings.NOTIFICATION_WEBHOOK_ENABLED
        )
        self.timeout = timeout if timeout is not None else settings.NOTIFICATION_TIMEOUT_SECONDS

    async def send_event(self, event: str, payload: Dict[str, Any]) -> bool:
        """
        Post one event.

        Args:
            event: Event name, e.g. "comment.mention"
            payload: Event body

        Returns:
            True if the webhook accepted the event, False if delivery is
            disabled or unconfigured

        Raises:
            NotificationDeliveryError: If the webhook call fails
        """
        if not self.enabled:
            logger.debug(f"Notification webhook disabled, skipping {event}")
            return False

        if not self.webhook_url:
            logger.warning("Notification webhook URL not configured")
            return False

        body = {"event": event, **payload}

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.webhook_url, json=body)

                if 200 <= response.status_code < 300:
                    logger.info(f"Notification event {event} delivered")
                    return True

                logger.error(
                    f"Notification webhook returned error: {response.status_code}"
                )
                raise NotificationDeliveryError(
                    message="Notification webhook returned an error",
                    event=event,
                    response_status=response.status_code,
                )

        except httpx.TimeoutException as e:
            logger.error(f"Notification webhook timeout: {e}")
            raise NotificationDeliveryError(
                message="Notification webhook request timed out",
                event=event,
                timeout=self.timeout,
            ) from e

        except httpx.RequestError as e:
            logger.error(f"Notification webhook request error: {e}")
            raise NotificationDeliveryError(
                message="Failed to connect to notification webhook",
                event=event,
                error=str(e),
            ) from e
