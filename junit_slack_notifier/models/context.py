"""Models for the CI run a notification describes."""

from pydantic import Field

from junit_slack_notifier.models.base import Model


class RunContext(Model):
    """Optional details about the CI job that produced the report."""

    job_name: str | None = Field(default=None, min_length=1)
    branch: str | None = Field(default=None, min_length=1)
    commit: str | None = Field(default=None, min_length=1)
    build_url: str | None = Field(default=None, min_length=1)
