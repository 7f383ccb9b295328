"""Models for the terminal result of a webhook delivery."""

from dataclasses import dataclass
from typing import Literal

type ErrorKind = Literal["http_status", "timeout", "connection_failed", "other"]


@dataclass(frozen=True, kw_only=True)
class DeliveryError:
    """Root cause of the last failed attempt."""

    kind: ErrorKind
    detail: str
    status: int | None = None

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.kind} {self.status}: {self.detail}"
        return f"{self.kind}: {self.detail}"


@dataclass(frozen=True, kw_only=True)
class Delivered:
    """The first attempt succeeded."""

    attempts: int = 1


@dataclass(frozen=True, kw_only=True)
class DeliveredAfterRetries:
    """A later attempt succeeded."""

    attempts: int


@dataclass(frozen=True, kw_only=True)
class DeliveryFailed:
    """Attempts were exhausted or the webhook rejected the payload."""

    attempts: int
    last_error: DeliveryError


type DeliveryOutcome = Delivered | DeliveredAfterRetries | DeliveryFailed
