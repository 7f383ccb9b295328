"""Pydantic models for the Slack incoming-webhook message schema."""

from collections.abc import Sequence
from typing import Literal

from junit_slack_notifier.models.base import Model


class TextObject(Model):
    """A Block Kit text object."""

    type: Literal["mrkdwn", "plain_text"] = "mrkdwn"
    text: str


class SectionBlock(Model):
    """A section block holding a single text object."""

    type: Literal["section"] = "section"
    text: TextObject


class ContextBlock(Model):
    """A context block with small secondary text."""

    type: Literal["context"] = "context"
    elements: Sequence[TextObject]


type Block = SectionBlock | ContextBlock


class Attachment(Model):
    """A legacy attachment, used for its colored accent bar."""

    color: str
    blocks: Sequence[Block]


class SlackMessage(Model):
    """Body posted to an incoming webhook.

    ``text`` is the notification fallback; the attachment carries the
    detailed blocks.
    """

    text: str
    attachments: Sequence[Attachment] = ()

    def to_bytes(self) -> bytes:
        """Serialize the message to its JSON request body."""
        return self.model_dump_json(exclude_none=True).encode()
