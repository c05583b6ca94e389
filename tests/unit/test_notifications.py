"""Unit tests for notification channels."""
import json
import httpx
import pytest
from unittest.mock import patch

from owlpost.services import notifications
from owlpost.services.notifications import (
    LoggingNotificationChannel,
    WebhookNotificationChannel,
    get_notification_channel,
    set_notification_channel,
)


def _client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestWebhookNotificationChannel:
    """Tests for WebhookNotificationChannel."""

    def test_posts_json(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"ok": True})

        channel = WebhookNotificationChannel("https://hooks.example.com/notify", client=_client(handler))

        assert channel.send("jane@example.com", "Pay me", payload={"items": [1]}) is True
        assert seen["url"] == "https://hooks.example.com/notify"
        assert seen["body"] == {"recipient": "jane@example.com", "message": "Pay me", "payload": {"items": [1]}}

    def test_http_error_returns_false(self):
        channel = WebhookNotificationChannel(
            "https://hooks.example.com/notify",
            client=_client(lambda request: httpx.Response(500)),
        )

        assert channel.send("jane@example.com", "Pay me") is False

    def test_transport_error_returns_false(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        channel = WebhookNotificationChannel("https://hooks.example.com/notify", client=_client(handler))

        assert channel.send("jane@example.com", "Pay me") is False

    def test_malformed_url_returns_false(self):
        channel = WebhookNotificationChannel(
            "https://hooks.example.com/\x00notify",
            client=_client(lambda request: httpx.Response(200)),
        )

        assert channel.send("jane@example.com", "Pay me") is False

    def test_disabled_channel(self):
        channel = WebhookNotificationChannel("https://hooks.example.com/notify")
        channel.enabled = False

        assert channel.send("jane@example.com", "Pay me") is False


class TestChannelSelection:
    """Tests for get_notification_channel."""

    def test_logging_channel_by_default(self):
        set_notification_channel(None)
        with patch.object(notifications.settings.notifications, "webhook_url", ""):
            channel = get_notification_channel()

        assert isinstance(channel, LoggingNotificationChannel)
        assert channel.send("a@b.co", "hello") is True

    def test_webhook_when_configured(self):
        set_notification_channel(None)
        with patch.object(notifications.settings.notifications, "webhook_url", "https://hooks.example.com"):
            channel = get_notification_channel()

        assert isinstance(channel, WebhookNotificationChannel)
        assert channel.url == "https://hooks.example.com"
