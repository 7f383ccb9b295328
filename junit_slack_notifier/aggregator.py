"""Aggregate a parsed report tree into a test run summary."""

from typing import assert_never

from junit_slack_notifier.models.report import (
    Errored,
    Failed,
    Passed,
    Skipped,
    SuiteNode,
)
from junit_slack_notifier.models.summary import FailureEntry, TestRunSummary

DEFAULT_MAX_MESSAGE_LENGTH = 500
TRUNCATION_MARKER = "... [truncated]"


def aggregate(
    root: SuiteNode, *, max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH
) -> TestRunSummary:
    """Count outcomes and collect failures across the whole suite tree.

    Nested suites are flattened depth-first; failures keep document order.
    Never fails for a parsed tree, including one without any cases.

    Args:
        root: Root node returned by the parser
        max_message_length: Failure messages longer than this are cut and
            suffixed with ``TRUNCATION_MARKER``

    Returns:
        Summary of the run

    """
    passed = failed = skipped = errored = 0
    duration = 0.0
    failures: list[FailureEntry] = []

    for case in root.iter_cases():
        duration += case.duration
        match case.outcome:
            case Passed():
                passed += 1
            case Skipped():
                skipped += 1
            case Failed(message=message):
                failed += 1
                failures.append(
                    FailureEntry(
                        name=case.qualified_name,
                        message=truncate(message, max_message_length),
                        kind="failed",
                    )
                )
            case Errored(message=message):
                errored += 1
                failures.append(
                    FailureEntry(
                        name=case.qualified_name,
                        message=truncate(message, max_message_length),
                        kind="errored",
                    )
                )
            case unreachable:
                assert_never(unreachable)

    return TestRunSummary(
        total=passed + failed + skipped + errored,
        passed=passed,
        failed=failed,
        skipped=skipped,
        errored=errored,
        duration=duration,
        failures=tuple(failures),
    )


def truncate(message: str, max_length: int) -> str:
    """Cut a message to ``max_length`` characters and mark it as truncated."""
    if len(message) <= max_length:
        return message
    return message[:max_length] + TRUNCATION_MARKER
