"""Models for an aggregated test run."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

type RunStatus = Literal["passed", "failed"]


@dataclass(frozen=True, kw_only=True)
class FailureEntry:
    """A failing or erroring case as shown in a notification."""

    name: str
    message: str
    kind: Literal["failed", "errored"]


@dataclass(frozen=True, kw_only=True)
class TestRunSummary:
    """Normalized counts and failures for a whole report.

    Skipped cases never fail a run: a report of only skipped cases is
    ``passed`` with a non-zero ``skipped`` count.
    """

    __test__ = False

    total: int
    passed: int
    failed: int
    skipped: int
    errored: int
    duration: float
    failures: Sequence[FailureEntry] = ()

    @property
    def status(self) -> RunStatus:
        """Return ``failed`` when any case failed or errored."""
        if self.failed or self.errored:
            return "failed"
        return "passed"
