"""
Outbound notification channels.

Handlers use these to reach people outside the conversation (a client who
owes an invoice, for instance). Delivery failures are reported as False and
are the calling handler's business; nothing here raises into the pipeline.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from owlpost.core.config import settings
from owlpost.core.logging import logger


class NotificationChannel(ABC):
    """Abstract base class for notification channels."""

    def __init__(self, name: str, config: Optional[Dict[str, Any]] = None):
        self.name = name
        self.config = config or {}
        self.enabled = self.config.get("enabled", True)

    @abstractmethod
    def send(self, recipient: str, message: str, payload: Optional[Dict[str, Any]] = None) -> bool:
        """Deliver ``message`` to ``recipient``.

        Returns:
            True if the channel accepted the message
        """
        pass


class LoggingNotificationChannel(NotificationChannel):
    """Writes notifications to the log. Default when no webhook is configured."""

    def __init__(self):
        super().__init__("log")

    def send(self, recipient, message, payload=None) -> bool:
        logger.info(f"[Notify:{self.name}] to={recipient} message={message[:200]!r}")
        return True


class WebhookNotificationChannel(NotificationChannel):
    """POSTs notifications as JSON to an HTTP endpoint."""

    def __init__(self, url: str, timeout: float = 10.0, client: Optional[httpx.Client] = None):
        super().__init__("webhook", {"url": url, "timeout": timeout})
        self.url = url
        self.timeout = timeout
        self._client = client

    def send(self, recipient, message, payload=None) -> bool:
        if not self.enabled:
            return False

        body = {"recipient": recipient, "message": message}
        if payload:
            body["payload"] = payload

        try:
            if self._client is not None:
                response = self._client.post(self.url, json=body)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(self.url, json=body)
            response.raise_for_status()
            return True
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"[Notify:{self.name}] Delivery to {recipient} failed: {e}")
            return False


_channel: Optional[NotificationChannel] = None


def get_notification_channel() -> NotificationChannel:
    """Channel selected by settings, created on first use."""
    global _channel
    if _channel is None:
        url = settings.notifications.webhook_url
        if url:
            _channel = WebhookNotificationChannel(url, timeout=settings.notifications.timeout_seconds)
        else:
            _channel = LoggingNotificationChannel()
        logger.info(f"[Notify] Using {_channel.name} notification channel")
    return _channel


def set_notification_channel(channel: Optional[NotificationChannel]) -> None:
    """Swap the active channel (tests and embedding applications)."""
    global _channel
    _channel = channel
