"""Downstream notification channels."""

import logging

import httpx

from orchestrator.errors import NotificationError

from .base import Notification, Notifier

logger = logging.getLogger(__name__)


class LogNotifier(Notifier):
    """Mock notifier: logs the message instead of sending it."""

    def __init__(self) -> None:
        self.sent: list[Notification] = []

    @property
    def name(self) -> str:
        return "log"

    async def send(self, notification: Notification) -> None:
        self.sent.append(notification)
        logger.info(
            "[mock] Notified %s about %s, approved=%s",
            notification.channel,
            notification.candidate_id,
            notification.approved,
        )


class WebhookNotifier(Notifier):
    """Posts a Slack-compatible {"text": ...} payload to an incoming webhook.

    Usage:
        notifier = WebhookNotifier("https://hooks.slack.com/services/...")
        await notifier.send(Notification(candidate_id="c1", approved=True))
    """

    def __init__(
        self,
        webhook_url: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.transport = transport

    @property
    def name(self) -> str:
        return "webhook"

    async def send(self, notification: Notification) -> None:
        if not self.webhook_url:
            raise NotificationError("No notification webhook configured (NOTIFY_WEBHOOK_URL)")

        payload = {"text": notification.text, "channel": notification.channel, **notification.extra}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.webhook_url, json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NotificationError(
                f"Notification webhook returned {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise NotificationError(f"Notification webhook request failed: {e}") from e

        logger.info("Notified %s about %s", notification.channel, notification.candidate_id)
