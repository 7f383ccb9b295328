"""CLI entry point for posting JUnit results to Slack."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, assert_never

from junit_slack_notifier.aggregator import aggregate
from junit_slack_notifier.config import NotifierSettings
from junit_slack_notifier.models.context import RunContext
from junit_slack_notifier.models.delivery import (
    Delivered,
    DeliveredAfterRetries,
    DeliveryFailed,
    DeliveryOutcome,
)
from junit_slack_notifier.models.report import RawReport
from junit_slack_notifier.models.summary import TestRunSummary
from junit_slack_notifier.notifier import (
    AiohttpTransport,
    NotificationSender,
    RetryPolicy,
    WebhookTarget,
)
from junit_slack_notifier.parser import ParseError, parse_report
from junit_slack_notifier.slack import RenderOptions, render

EXIT_DELIVERED = 0
EXIT_DELIVERY_FAILED = 1
EXIT_BAD_REPORT = 2


def log_summary(log: logging.Logger, summary: TestRunSummary) -> None:
    """Log a formatted summary of the test run."""
    log.info("=" * 80)
    log.info("Test Run Summary: %s", summary.status)
    log.info("=" * 80)
    log.info(
        "total=%d passed=%d failed=%d errored=%d skipped=%d (%.2fs)",
        summary.total,
        summary.passed,
        summary.failed,
        summary.errored,
        summary.skipped,
        summary.duration,
    )
    for failure in summary.failures:
        log.info("  %s: %s", failure.kind, failure.name)


def format_output(
    summary: TestRunSummary, outcome: DeliveryOutcome | None
) -> dict[str, Any]:
    """Format the run and its delivery for JSON output."""
    output: dict[str, Any] = {
        "status": summary.status,
        "total": summary.total,
        "passed": summary.passed,
        "failed": summary.failed,
        "errored": summary.errored,
        "skipped": summary.skipped,
        "duration": summary.duration,
    }

    match outcome:
        case None:
            output.update(delivery="skipped", attempts=0)
        case Delivered(attempts=attempts):
            output.update(delivery="delivered", attempts=attempts)
        case DeliveredAfterRetries(attempts=attempts):
            output.update(delivery="delivered_after_retries", attempts=attempts)
        case DeliveryFailed(attempts=attempts, last_error=last_error):
            output.update(delivery="failed", attempts=attempts, error=str(last_error))
        case unreachable:
            assert_never(unreachable)

    return output


def exit_code(outcome: DeliveryOutcome) -> int:
    """Map a delivery outcome to the process exit code.

    Failing tests do not change the exit code; only a failed delivery does.
    """
    if isinstance(outcome, DeliveryFailed):
        return EXIT_DELIVERY_FAILED
    return EXIT_DELIVERED


def build_context(settings: NotifierSettings) -> RunContext:
    """Collect run details, treating empty values as unset."""
    return RunContext(
        job_name=settings.job_name or None,
        branch=settings.branch or None,
        commit=settings.commit_sha or None,
        build_url=settings.build_url or None,
    )


async def run(report_path: Path, settings: NotifierSettings) -> int:
    """Parse the report, post the summary and return the exit code."""
    log = logging.getLogger("junit_slack_notifier")

    log.info("Reading report: %s", report_path)
    try:
        root = parse_report(RawReport.from_path(report_path))
    except OSError as e:
        log.error("Failed to read report %s: %s", report_path, e)
        return EXIT_BAD_REPORT
    except ParseError as e:
        log.error("Failed to parse report %s: %s", report_path, e)
        return EXIT_BAD_REPORT

    summary = aggregate(root, max_message_length=settings.max_message_length)
    log_summary(log, summary)

    if settings.notify_on == "failure" and summary.status == "passed":
        log.info("All tests passed, skipping notification")
        print(json.dumps(format_output(summary, None), indent=2))
        return EXIT_DELIVERED

    message = render(
        summary,
        build_context(settings),
        RenderOptions(
            title=settings.slack_message_title,
            max_failures_displayed=settings.max_failures_displayed,
        ),
    )

    log.info("Sending notification...")
    async with AiohttpTransport.from_config(settings.request_timeout) as transport:
        sender = NotificationSender(
            transport=transport,
            policy=RetryPolicy(max_attempts=settings.retry_attempts),
        )
        outcome = await sender.send(
            message, WebhookTarget(url=settings.slack_webhook_url)
        )

    print(json.dumps(format_output(summary, outcome), indent=2))
    return exit_code(outcome)


def parse_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Return the settings given on the command line."""
    overrides = {
        "slack_message_title": args.title,
        "notify_on": args.notify_on,
        "retry_attempts": args.retry_attempts,
        "request_timeout": args.timeout,
        "job_name": args.job_name,
        "branch": args.branch,
        "commit_sha": args.commit,
        "build_url": args.build_url,
    }
    return {key: value for key, value in overrides.items() if value is not None}


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Post a JUnit XML test report summary to a Slack webhook"
    )
    parser.add_argument(
        "report",
        type=Path,
        nargs="?",
        default=Path("junit.xml"),
        help="Path to the JUnit XML report (default: junit.xml)",
    )
    parser.add_argument("--title", help="Message title (env: SLACK_MESSAGE_TITLE)")
    parser.add_argument(
        "--notify-on",
        choices=["always", "failure"],
        help="Post on every run or only when tests fail (env: NOTIFY_ON)",
    )
    parser.add_argument(
        "--retry-attempts",
        type=int,
        help="Maximum delivery attempts (env: RETRY_ATTEMPTS)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Seconds allowed per delivery attempt (env: REQUEST_TIMEOUT)",
    )
    parser.add_argument("--job-name", help="CI job name (env: JOB_NAME)")
    parser.add_argument("--branch", help="Branch under test (env: BRANCH)")
    parser.add_argument("--commit", help="Commit SHA under test (env: COMMIT_SHA)")
    parser.add_argument("--build-url", help="Link to the CI build (env: BUILD_URL)")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    settings = NotifierSettings(**parse_overrides(args))
    sys.exit(asyncio.run(run(args.report, settings)))


if __name__ == "__main__":  # pragma: no cover
    main()
