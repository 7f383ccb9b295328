"""Webhook delivery module."""

from junit_slack_notifier.notifier.sender import (
    NotificationSender,
    RetryPolicy,
    WebhookTarget,
)
from junit_slack_notifier.notifier.transport import (
    AiohttpTransport,
    HttpResponse,
    Transport,
    TransportError,
)

__all__ = [
    "AiohttpTransport",
    "HttpResponse",
    "NotificationSender",
    "RetryPolicy",
    "Transport",
    "TransportError",
    "WebhookTarget",
]
