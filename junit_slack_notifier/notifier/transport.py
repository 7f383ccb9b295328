"""HTTP transport used to post notification bodies."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Literal, Protocol

import aiohttp

log = logging.getLogger(__name__)

type TransportErrorKind = Literal["timeout", "connection_failed", "other"]


@dataclass(frozen=True, kw_only=True)
class HttpResponse:
    """Status and body of a webhook response."""

    status: int
    text: str = ""


class TransportError(Exception):
    """Raised when a request produced no usable HTTP response."""

    def __init__(self, kind: TransportErrorKind, detail: str) -> None:
        super().__init__(f"{kind}: {detail}")
        self.kind = kind
        self.detail = detail


class Transport(Protocol):
    """Capability to POST a body to a URL."""

    async def post(self, url: str, body: bytes) -> HttpResponse:
        """Send a single request.

        Raises:
            TransportError: If no response was received

        """


@dataclass(frozen=True, kw_only=True)
class AiohttpTransport:
    """Transport backed by an aiohttp client session."""

    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, timeout: float
    ) -> AsyncGenerator["AiohttpTransport", None]:
        """Create transport with managed session lifecycle.

        Args:
            timeout: Total seconds allowed for each request

        """
        async with aiohttp.ClientSession(
            headers={"Content-Type": "application/json"},
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as session:
            yield cls(session=session)

    async def post(self, url: str, body: bytes) -> HttpResponse:
        """Post the body and return the response status and text."""
        try:
            async with self.session.post(url, data=body) as response:
                text = await response.text(errors="replace")
                log.debug("Webhook responded with status %d", response.status)
                return HttpResponse(status=response.status, text=text)
        except TimeoutError as e:
            raise TransportError("timeout", "Request timed out") from e
        except aiohttp.InvalidURL as e:
            raise TransportError("other", "Invalid webhook URL") from e
        except aiohttp.ClientConnectionError as e:
            raise TransportError("connection_failed", describe_error(e)) from e
        except aiohttp.ClientError as e:
            raise TransportError("other", describe_error(e)) from e


def describe_error(error: aiohttp.ClientError) -> str:
    """Name a client error without its message.

    aiohttp messages embed the request URL, and the webhook URL is a secret.
    """
    return f"{type(error).__name__} while posting to the webhook"
