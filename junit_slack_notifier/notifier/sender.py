"""Deliver rendered messages to a webhook with retries."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Literal

from pydantic import Field, SecretStr

from junit_slack_notifier.models.base import Model
from junit_slack_notifier.models.delivery import (
    Delivered,
    DeliveredAfterRetries,
    DeliveryError,
    DeliveryFailed,
    DeliveryOutcome,
)
from junit_slack_notifier.notifier.transport import Transport, TransportError
from junit_slack_notifier.slack.models import SlackMessage

log = logging.getLogger(__name__)

type AttemptResult = Literal["succeeded", "retryable", "fatal"]

RETRYABLE_TRANSPORT_ERRORS = frozenset({"timeout", "connection_failed"})
MAX_DETAIL_LENGTH = 200


class WebhookTarget(Model):
    """Incoming webhook the message is posted to."""

    url: SecretStr


class RetryPolicy(Model):
    """How many attempts to make and how long to wait between them."""

    max_attempts: int = Field(default=3, ge=1)
    backoff_base: float = Field(default=0.5, ge=0)
    backoff_max: float = Field(default=8.0, ge=0)

    def backoff_delay(self, retry: int, rng: random.Random) -> float:
        """Return seconds to wait before the given retry (1-based).

        The exponential delay is capped at ``backoff_max`` and scaled by a
        random factor in [0.5, 1.0].
        """
        delay = min(self.backoff_max, self.backoff_base * 2 ** (retry - 1))
        return delay * rng.uniform(0.5, 1.0)


def classify_status(status: int) -> AttemptResult:
    """Classify an HTTP status code.

    429 and 5xx are worth retrying; any other non-2xx status is a permanent
    rejection of the payload or the webhook URL.
    """
    if 200 <= status < 300:
        return "succeeded"
    if status == 429 or 500 <= status < 600:
        return "retryable"
    return "fatal"


@dataclass(frozen=True, kw_only=True)
class NotificationSender:
    """Posts a message, retrying transient failures with jittered backoff."""

    transport: Transport
    policy: RetryPolicy = field(default_factory=RetryPolicy)
    sleep: Callable[[float], Awaitable[None]] = field(
        default=asyncio.sleep, repr=False
    )
    rng: random.Random = field(default_factory=random.Random, repr=False)

    async def send(
        self, payload: SlackMessage, target: WebhookTarget
    ) -> DeliveryOutcome:
        """Deliver the payload once, retrying transient failures.

        Args:
            payload: Rendered message
            target: Webhook to post to

        Returns:
            Delivered or DeliveredAfterRetries on success, DeliveryFailed
            when a fatal result occurs or attempts run out

        """
        body = payload.to_bytes()
        url = target.url.get_secret_value()
        attempt = 1

        while True:
            result, error = await self._attempt(url, body)
            log.info("Webhook attempt %d: %s", attempt, result)

            match result:
                case "succeeded":
                    if attempt == 1:
                        return Delivered()
                    return DeliveredAfterRetries(attempts=attempt)
                case "fatal":
                    log.error("Webhook rejected the message: %s", error)
                    return DeliveryFailed(attempts=attempt, last_error=error)
                case "retryable" if attempt >= self.policy.max_attempts:
                    log.error(
                        "Webhook delivery failed after %d attempt(s): %s",
                        attempt,
                        error,
                    )
                    return DeliveryFailed(attempts=attempt, last_error=error)
                case "retryable":
                    log.warning("Webhook attempt %d failed: %s", attempt, error)

            attempt += 1
            delay = self.policy.backoff_delay(attempt - 1, self.rng)
            log.warning(
                "Retrying webhook delivery in %.2fs (attempt %d of %d)",
                delay,
                attempt,
                self.policy.max_attempts,
            )
            await self.sleep(delay)

    async def _attempt(
        self, url: str, body: bytes
    ) -> tuple[AttemptResult, DeliveryError]:
        """Make one request and classify what happened."""
        try:
            response = await self.transport.post(url, body)
        except TransportError as e:
            result: AttemptResult = (
                "retryable" if e.kind in RETRYABLE_TRANSPORT_ERRORS else "fatal"
            )
            return result, DeliveryError(kind=e.kind, detail=e.detail)

        detail = response.text[:MAX_DETAIL_LENGTH]
        if not 100 <= response.status < 600:
            return "fatal", DeliveryError(
                kind="other",
                status=response.status,
                detail=f"Malformed response status: {detail}",
            )

        return classify_status(response.status), DeliveryError(
            kind="http_status", status=response.status, detail=detail
        )
