"""Environment configuration for the notifier."""

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from junit_slack_notifier.aggregator import DEFAULT_MAX_MESSAGE_LENGTH


class NotifierSettings(BaseSettings):
    """Settings read from environment variables or a ``.env`` file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    slack_webhook_url: SecretStr
    slack_message_title: str = "Test Results"
    # "failure" only posts when at least one case failed or errored
    notify_on: Literal["always", "failure"] = "always"
    retry_attempts: int = Field(default=3, ge=1)
    request_timeout: float = Field(default=10.0, gt=0)
    max_message_length: int = Field(default=DEFAULT_MAX_MESSAGE_LENGTH, ge=1)
    max_failures_displayed: int = Field(default=10, ge=0)
    job_name: str | None = None
    branch: str | None = None
    commit_sha: str | None = None
    build_url: str | None = None
