"""Models for a parsed JUnit report tree."""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal


@dataclass(frozen=True, kw_only=True)
class RawReport:
    """Undecoded report bytes as read from disk or a stream.

    ``encoding`` overrides the encoding declared by the XML document itself.
    When it is None the parser falls back to the XML declaration, then UTF-8.
    """

    data: bytes
    encoding: str | None = None

    @classmethod
    def from_path(cls, path: Path, encoding: str | None = None) -> "RawReport":
        """Read a report file."""
        return cls(data=path.read_bytes(), encoding=encoding)


@dataclass(frozen=True, kw_only=True)
class Passed:
    """The case ran and succeeded."""

    kind: Literal["passed"] = "passed"


@dataclass(frozen=True, kw_only=True)
class Failed:
    """An assertion in the case failed."""

    message: str
    stack: str = ""
    kind: Literal["failed"] = "failed"


@dataclass(frozen=True, kw_only=True)
class Skipped:
    """The case was not run."""

    reason: str = ""
    kind: Literal["skipped"] = "skipped"


@dataclass(frozen=True, kw_only=True)
class Errored:
    """The case raised an unexpected error."""

    message: str
    stack: str = ""
    kind: Literal["errored"] = "errored"


type Outcome = Passed | Failed | Skipped | Errored
type OutcomeKind = Literal["passed", "failed", "skipped", "errored"]


@dataclass(frozen=True, kw_only=True)
class CaseNode:
    """A single ``testcase`` element."""

    name: str
    classname: str | None = None
    duration: float = 0.0
    outcome: Outcome = field(default_factory=Passed)

    @property
    def qualified_name(self) -> str:
        """Return ``classname.name``, or just the name without a classname."""
        if self.classname:
            return f"{self.classname}.{self.name}"
        return self.name


@dataclass(frozen=True, kw_only=True)
class SuiteNode:
    """A ``testsuite`` or ``testsuites`` element.

    ``children`` holds cases and nested suites in document order. Suites nest
    arbitrarily; ``timestamp`` and ``duration`` are None when the producer
    did not emit them.
    """

    name: str = ""
    children: Sequence["CaseNode | SuiteNode"] = ()
    timestamp: str | None = None
    duration: float | None = None

    @property
    def cases(self) -> Sequence[CaseNode]:
        """Return the direct child cases."""
        return tuple(child for child in self.children if isinstance(child, CaseNode))

    @property
    def suites(self) -> Sequence["SuiteNode"]:
        """Return the direct child suites."""
        return tuple(child for child in self.children if isinstance(child, SuiteNode))

    def iter_cases(self) -> Iterator[CaseNode]:
        """Yield every case in the tree, depth-first in document order."""
        for child in self.children:
            if isinstance(child, CaseNode):
                yield child
            else:
                yield from child.iter_cases()
