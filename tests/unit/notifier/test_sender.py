"""Tests for NotificationSender retry behavior."""

import random
from collections.abc import Sequence
from dataclasses import dataclass, field

import pytest
from pydantic import SecretStr

from junit_slack_notifier.models.delivery import (
    Delivered,
    DeliveredAfterRetries,
    DeliveryError,
    DeliveryFailed,
)
from junit_slack_notifier.notifier import (
    HttpResponse,
    NotificationSender,
    RetryPolicy,
    TransportError,
    WebhookTarget,
)
from junit_slack_notifier.notifier.sender import classify_status
from junit_slack_notifier.slack.models import SlackMessage

TARGET = WebhookTarget(url=SecretStr("https://hooks.slack.test/services/T/B/X"))
MESSAGE = SlackMessage(text="✅ Test Results: 1 passed, 0 failed, 0 skipped")


@dataclass(frozen=True, kw_only=True)
class ScriptedTransport:
    """Transport that replays scripted responses or errors in order."""

    script: Sequence[HttpResponse | TransportError]
    calls: list[tuple[str, bytes]] = field(default_factory=list)

    async def post(self, url: str, body: bytes) -> HttpResponse:
        """Record the call and return the next scripted step."""
        step = self.script[len(self.calls)]
        self.calls.append((url, body))
        if isinstance(step, TransportError):
            raise step
        return step


@dataclass(kw_only=True)
class RecordingSleep:
    """Awaitable sleep replacement that records requested delays."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, delay: float) -> None:
        """Record the delay without waiting."""
        self.delays.append(delay)


@pytest.fixture
def sleep() -> RecordingSleep:
    """Create a recording sleep."""
    return RecordingSleep()


def make_sender(
    script: Sequence[HttpResponse | TransportError],
    sleep: RecordingSleep,
    max_attempts: int = 3,
) -> tuple[NotificationSender, ScriptedTransport]:
    """Build a sender over a scripted transport."""
    transport = ScriptedTransport(script=script)
    sender = NotificationSender(
        transport=transport,
        policy=RetryPolicy(max_attempts=max_attempts),
        sleep=sleep,
        rng=random.Random(0),
    )
    return sender, transport


async def test_delivered_on_first_attempt(sleep: RecordingSleep) -> None:
    """Returns Delivered when the first attempt succeeds."""
    sender, transport = make_sender([HttpResponse(status=200, text="ok")], sleep)

    outcome = await sender.send(MESSAGE, TARGET)

    assert outcome == Delivered()
    assert transport.calls == [
        ("https://hooks.slack.test/services/T/B/X", MESSAGE.to_bytes())
    ]
    assert sleep.delays == []


async def test_delivered_after_server_errors(sleep: RecordingSleep) -> None:
    """Retries 5xx responses and reports the successful attempt number."""
    sender, transport = make_sender(
        [
            HttpResponse(status=500),
            HttpResponse(status=500),
            HttpResponse(status=200, text="ok"),
        ],
        sleep,
    )

    outcome = await sender.send(MESSAGE, TARGET)

    assert outcome == DeliveredAfterRetries(attempts=3)
    assert len(transport.calls) == 3
    assert len(sleep.delays) == 2


async def test_not_found_is_fatal(sleep: RecordingSleep) -> None:
    """Fails immediately on 404 without retrying."""
    sender, transport = make_sender(
        [HttpResponse(status=404, text="no_service"), HttpResponse(status=200)],
        sleep,
    )

    outcome = await sender.send(MESSAGE, TARGET)

    assert outcome == DeliveryFailed(
        attempts=1,
        last_error=DeliveryError(kind="http_status", status=404, detail="no_service"),
    )
    assert len(transport.calls) == 1
    assert sleep.delays == []


async def test_rate_limit_is_retried(sleep: RecordingSleep) -> None:
    """Retries 429 responses."""
    sender, _ = make_sender(
        [HttpResponse(status=429), HttpResponse(status=204)], sleep
    )

    assert await sender.send(MESSAGE, TARGET) == DeliveredAfterRetries(attempts=2)


async def test_transport_errors_are_retried(sleep: RecordingSleep) -> None:
    """Retries timeouts and connection failures."""
    sender, _ = make_sender(
        [
            TransportError("timeout", "Request timed out"),
            TransportError("connection_failed", "Connection reset by peer"),
            HttpResponse(status=200),
        ],
        sleep,
    )

    assert await sender.send(MESSAGE, TARGET) == DeliveredAfterRetries(attempts=3)


async def test_other_transport_error_is_fatal(sleep: RecordingSleep) -> None:
    """Does not retry transport errors of kind other."""
    sender, transport = make_sender(
        [TransportError("other", "Invalid URL"), HttpResponse(status=200)], sleep
    )

    outcome = await sender.send(MESSAGE, TARGET)

    assert outcome == DeliveryFailed(
        attempts=1, last_error=DeliveryError(kind="other", detail="Invalid URL")
    )
    assert len(transport.calls) == 1


async def test_malformed_status_is_fatal(sleep: RecordingSleep) -> None:
    """Treats impossible status codes as a fatal malformed response."""
    sender, _ = make_sender([HttpResponse(status=999, text="???")], sleep)

    outcome = await sender.send(MESSAGE, TARGET)

    assert isinstance(outcome, DeliveryFailed)
    assert outcome.last_error.kind == "other"
    assert outcome.last_error.status == 999


async def test_exhausted_attempts_report_last_error(sleep: RecordingSleep) -> None:
    """Returns the last error once all attempts fail."""
    sender, transport = make_sender(
        [
            HttpResponse(status=503, text="busy"),
            TransportError("timeout", "Request timed out"),
            HttpResponse(status=502, text="bad gateway"),
        ],
        sleep,
    )

    outcome = await sender.send(MESSAGE, TARGET)

    assert outcome == DeliveryFailed(
        attempts=3,
        last_error=DeliveryError(kind="http_status", status=502, detail="bad gateway"),
    )
    assert len(transport.calls) == 3
    assert str(outcome.last_error) == "http_status 502: bad gateway"


async def test_single_attempt_policy(sleep: RecordingSleep) -> None:
    """Never retries when only one attempt is allowed."""
    sender, _ = make_sender([HttpResponse(status=500)], sleep, max_attempts=1)

    outcome = await sender.send(MESSAGE, TARGET)

    assert isinstance(outcome, DeliveryFailed)
    assert outcome.attempts == 1
    assert sleep.delays == []


async def test_exhaustion_stops_without_a_final_wait(
    sleep: RecordingSleep, caplog: pytest.LogCaptureFixture
) -> None:
    """Waits only between attempts and logs the give-up once."""
    sender, transport = make_sender(
        [
            TransportError("connection_failed", "ClientConnectionError"),
            HttpResponse(status=429, text="rate_limited"),
        ],
        sleep,
        max_attempts=2,
    )

    outcome = await sender.send(MESSAGE, TARGET)

    assert outcome == DeliveryFailed(
        attempts=2,
        last_error=DeliveryError(kind="http_status", status=429, detail="rate_limited"),
    )
    assert len(transport.calls) == 2
    assert len(sleep.delays) == 1
    assert "Webhook delivery failed after 2 attempt(s)" in caplog.text


async def test_backoff_grows_between_attempts(sleep: RecordingSleep) -> None:
    """Waits with jittered exponential delays between attempts."""
    sender, _ = make_sender([HttpResponse(status=500)] * 4, sleep, max_attempts=4)

    await sender.send(MESSAGE, TARGET)

    assert len(sleep.delays) == 3
    for retry, delay in enumerate(sleep.delays, start=1):
        base = 0.5 * 2 ** (retry - 1)
        assert base * 0.5 <= delay <= base


def test_backoff_delay_is_capped() -> None:
    """Never waits longer than backoff_max."""
    policy = RetryPolicy(backoff_base=1.0, backoff_max=2.0)

    delay = policy.backoff_delay(10, random.Random(0))

    assert 1.0 <= delay <= 2.0


def test_retry_policy_requires_an_attempt() -> None:
    """Rejects policies with fewer than one attempt."""
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (200, "succeeded"),
        (204, "succeeded"),
        (301, "fatal"),
        (400, "fatal"),
        (403, "fatal"),
        (404, "fatal"),
        (429, "retryable"),
        (500, "retryable"),
        (503, "retryable"),
    ],
)
def test_classify_status(status: int, expected: str) -> None:
    """Maps status codes to attempt results."""
    assert classify_status(status) == expected
