"""Slack message rendering module."""

from junit_slack_notifier.slack.config import RenderOptions
from junit_slack_notifier.slack.models import SlackMessage
from junit_slack_notifier.slack.renderer import render

__all__ = ["RenderOptions", "SlackMessage", "render"]
