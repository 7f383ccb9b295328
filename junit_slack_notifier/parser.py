"""Parse JUnit XML reports into a suite tree.

JUnit producers disagree on almost everything: some emit a bare
``<testsuite>`` root, some nest suites several levels deep, some omit
``time`` attributes or format them with thousands separators. The parser
accepts all of these and only rejects documents that are not XML or whose
root is not a suite element.
"""

import logging
import xml.etree.ElementTree as ET

from junit_slack_notifier.models.report import (
    CaseNode,
    Errored,
    Failed,
    Outcome,
    Passed,
    RawReport,
    Skipped,
    SuiteNode,
)

log = logging.getLogger(__name__)

SUITE_TAGS = frozenset({"testsuite", "testsuites"})


class ParseError(Exception):
    """Raised when a report cannot be turned into a suite tree."""


class EmptyReportError(ParseError):
    """Raised when the report contains no bytes at all."""

    def __init__(self) -> None:
        super().__init__("Report is empty")


class MalformedReportError(ParseError):
    """Raised when the report is not well-formed JUnit XML."""

    def __init__(self, detail: str, line: int = 0, column: int = 0) -> None:
        super().__init__(f"Malformed report at line {line}, column {column}: {detail}")
        self.detail = detail
        self.line = line
        self.column = column


def parse_report(report: RawReport) -> SuiteNode:
    """Parse a raw report, honouring its declared encoding."""
    return parse(report.data, encoding=report.encoding)


def parse(data: bytes, encoding: str | None = None) -> SuiteNode:
    """Parse JUnit XML bytes into the root suite node.

    Args:
        data: Raw document bytes
        encoding: Overrides the encoding declared in the document

    Returns:
        Root node; a ``<testsuites>`` root becomes a node whose children are
        its suites, a ``<testsuite>`` root is returned as-is

    Raises:
        EmptyReportError: If ``data`` is zero-length
        MalformedReportError: If the XML is not well-formed or the root
            element is neither ``testsuite`` nor ``testsuites``

    """
    if not data:
        raise EmptyReportError

    try:
        xml_parser = ET.XMLParser(encoding=encoding)
        xml_parser.feed(data)
        root = xml_parser.close()
    except ET.ParseError as e:
        line, column = e.position
        raise MalformedReportError(str(e), line=line, column=column) from e
    except LookupError as e:
        raise MalformedReportError(f"Unknown encoding: {encoding}") from e

    if (tag := local_name(root.tag)) not in SUITE_TAGS:
        raise MalformedReportError(
            f"Root element must be testsuite or testsuites, got '{tag}'"
        )

    return parse_suite(root)


def parse_suite(element: ET.Element) -> SuiteNode:
    """Build a suite node from a ``testsuite`` or ``testsuites`` element."""
    children: list[CaseNode | SuiteNode] = []

    for child in element:
        tag = local_name(child.tag)
        if tag == "testcase":
            children.append(parse_case(child))
        elif tag in SUITE_TAGS:
            children.append(parse_suite(child))

    return SuiteNode(
        name=element.get("name", ""),
        children=tuple(children),
        timestamp=element.get("timestamp") or None,
        duration=parse_duration(element.get("time")),
    )


def parse_case(element: ET.Element) -> CaseNode:
    """Build a case node from a ``testcase`` element."""
    return CaseNode(
        name=element.get("name", ""),
        classname=element.get("classname") or None,
        duration=parse_duration(element.get("time")) or 0.0,
        outcome=classify_outcome(element),
    )


def classify_outcome(element: ET.Element) -> Outcome:
    """Return the outcome decided by the first failure, error or skipped child.

    Other children such as ``system-out`` or ``system-err`` never affect the
    outcome.
    """
    for child in element:
        match local_name(child.tag):
            case "failure":
                return Failed(message=detail_message(child), stack=element_text(child))
            case "error":
                return Errored(message=detail_message(child), stack=element_text(child))
            case "skipped":
                return Skipped(reason=detail_message(child))
    return Passed()


def detail_message(element: ET.Element) -> str:
    """Return the ``message`` attribute, falling back to the element text."""
    return element.get("message") or element_text(element)


def element_text(element: ET.Element) -> str:
    """Return the stripped text content of an element."""
    return "".join(element.itertext()).strip()


def parse_duration(value: str | None) -> float | None:
    """Parse a ``time`` attribute in seconds.

    Returns None when the attribute is missing or not a number.
    """
    if value is None:
        return None
    try:
        return float(value.replace(",", ""))
    except ValueError:
        log.debug("Ignoring unparseable time value: %r", value)
        return None


def local_name(tag: str) -> str:
    """Strip an XML namespace from a tag."""
    return tag.rpartition("}")[2]
