"""Rendering options for Slack messages."""

from pydantic import Field

from junit_slack_notifier.models.base import Model


class RenderOptions(Model):
    """Tunable limits and colors for rendered messages."""

    title: str = Field(default="Test Results", min_length=1)
    max_failures_displayed: int = Field(default=10, ge=0)
    success_color: str = "#2eb886"
    danger_color: str = "#e01e5a"
