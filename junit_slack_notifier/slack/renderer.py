"""Render a test run summary as a Slack message."""

from collections.abc import Sequence

from junit_slack_notifier.models.context import RunContext
from junit_slack_notifier.models.summary import FailureEntry, TestRunSummary
from junit_slack_notifier.slack.config import RenderOptions
from junit_slack_notifier.slack.models import (
    Attachment,
    Block,
    ContextBlock,
    SectionBlock,
    SlackMessage,
    TextObject,
)

STATUS_SYMBOLS = {
    "passed": "✅",
    "failed": "❌",
}


def render(
    summary: TestRunSummary,
    context: RunContext,
    options: RenderOptions = RenderOptions(),
) -> SlackMessage:
    """Build the webhook message for a summary.

    The result depends only on the arguments, so rendering the same summary
    twice yields identical request bodies.
    """
    symbol = STATUS_SYMBOLS[summary.status]
    counts = format_counts(summary)

    header = f"{symbol} *{escape(options.title)}*\n{counts}"
    blocks: list[Block] = [SectionBlock(text=TextObject(text=header))]

    if context_line := format_context(context):
        blocks.append(ContextBlock(elements=[TextObject(text=context_line)]))

    blocks.extend(render_failures(summary.failures, options.max_failures_displayed))

    return SlackMessage(
        text=f"{symbol} {options.title}: {counts}",
        attachments=[
            Attachment(color=accent_color(summary, options), blocks=blocks),
        ],
    )


def format_counts(summary: TestRunSummary) -> str:
    """Format the one-line ``P passed, F failed, S skipped`` digest.

    Errored cases count as failed; their number and the run duration are
    appended when non-zero.
    """
    line = (
        f"{summary.passed} passed, "
        f"{summary.failed + summary.errored} failed, "
        f"{summary.skipped} skipped"
    )
    if summary.errored:
        line += f" ({summary.errored} errored)"
    if summary.duration:
        line += f" in {summary.duration:.2f}s"
    return line


def format_context(context: RunContext) -> str:
    """Join the run details that are set into a single context line."""
    parts: list[str] = []
    if context.job_name:
        parts.append(f"*Job:* {escape(context.job_name)}")
    if context.branch:
        parts.append(f"*Branch:* `{escape(context.branch)}`")
    if context.commit:
        parts.append(f"*Commit:* `{escape(context.commit)}`")
    if context.build_url:
        parts.append(f"<{context.build_url}|View build>")
    return "  |  ".join(parts)


def render_failures(
    failures: Sequence[FailureEntry], max_displayed: int
) -> Sequence[Block]:
    """Render one section per failure, then a ``+N more`` note past the cap."""
    blocks: list[Block] = []
    for index, failure in enumerate(failures[:max_displayed], start=1):
        text = f"*{index}.* `{escape(failure.name)}`"
        if failure.kind == "errored":
            text += " (error)"
        if failure.message:
            text += f"\n```{escape(failure.message)}```"
        blocks.append(SectionBlock(text=TextObject(text=text)))

    if (hidden := len(failures) - max_displayed) > 0:
        blocks.append(ContextBlock(elements=[TextObject(text=f"+{hidden} more")]))

    return blocks


def accent_color(summary: TestRunSummary, options: RenderOptions) -> str:
    """Return the attachment color for the run status."""
    if summary.status == "failed":
        return options.danger_color
    return options.success_color


def escape(text: str) -> str:
    """Escape the characters Slack reserves for markup."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
