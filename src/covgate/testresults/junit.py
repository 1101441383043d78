"""JUnit XML test report parsing and aggregation.

Accepts a ``<testsuites>`` root holding ``<testsuite>`` elements, or a single
``<testsuite>`` root. Suite counters come from the suite's attributes; an
absent attribute is counted from the suite's test cases instead. A test case
fails with a ``<failure>`` child, errors with an ``<error>`` child and is
skipped with a ``<skipped>`` child.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterable

import structlog

from covgate.core.errors import JUnitParseError
from covgate.coverage.models import calculate_rate
from covgate.coverage.parsers.base import to_int
from covgate.testresults.models import (
    AggregatedTestResults,
    CaseFailure,
    CaseRecord,
    CaseStatus,
    JUnitCase,
    JUnitReport,
    JUnitSuite,
)

log = structlog.get_logger(__name__)

UNKNOWN = "unknown"


def _to_float(value: str | None) -> float:
    # Some reporters write thousands separators ("1,204.5")
    if value is None:
        return 0.0
    try:
        return float(value.replace(",", ""))
    except ValueError:
        return 0.0


def _count(elem: ET.Element, attr: str, fallback: int) -> int:
    value = elem.get(attr)
    return to_int(value) if value is not None else fallback


def _parse_case(elem: ET.Element) -> JUnitCase:
    failure = elem.find("failure")
    error = elem.find("error")
    if failure is not None:
        status, problem = CaseStatus.FAILED, failure
    elif error is not None:
        status, problem = CaseStatus.ERROR, error
    elif elem.find("skipped") is not None:
        status, problem = CaseStatus.SKIPPED, None
    else:
        status, problem = CaseStatus.PASSED, None

    detail = None
    if problem is not None:
        text = (problem.text or "").strip()
        detail = CaseFailure(
            message=problem.get("message") or "Test failed",
            type=problem.get("type"),
            content=text or None,
        )
    return JUnitCase(
        classname=elem.get("classname") or UNKNOWN,
        name=elem.get("name") or UNKNOWN,
        time=_to_float(elem.get("time")),
        status=status,
        failure=detail,
    )


def _parse_suite(elem: ET.Element) -> JUnitSuite:
    # Nested suites report their cases through the outermost one
    cases = [_parse_case(tc) for tc in elem.iter("testcase")]
    return JUnitSuite(
        name=elem.get("name") or UNKNOWN,
        tests=_count(elem, "tests", len(cases)),
        failures=_count(elem, "failures", sum(c.status is CaseStatus.FAILED for c in cases)),
        errors=_count(elem, "errors", sum(c.status is CaseStatus.ERROR for c in cases)),
        skipped=_count(elem, "skipped", sum(c.status is CaseStatus.SKIPPED for c in cases)),
        time=_to_float(elem.get("time")) if elem.get("time") else sum(c.time for c in cases),
        cases=cases,
    )


def parse_junit_xml(content: str) -> JUnitReport:
    """Parse one JUnit XML document.

    Raises:
        JUnitParseError: If the XML is malformed or the root is neither
            ``<testsuites>`` nor ``<testsuite>``.
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise JUnitParseError.malformed(str(e)) from e

    if root.tag == "testsuite":
        suite = _parse_suite(root)
        return JUnitReport(
            name=suite.name,
            tests=suite.tests,
            failures=suite.failures,
            errors=suite.errors,
            skipped=suite.skipped,
            time=suite.time,
            suites=[suite],
        )
    if root.tag != "testsuites":
        raise JUnitParseError.missing_root(str(root.tag))

    suites = [_parse_suite(elem) for elem in root.findall("testsuite")]
    return JUnitReport(
        name=root.get("name"),
        tests=_count(root, "tests", sum(s.tests for s in suites)),
        failures=_count(root, "failures", sum(s.failures for s in suites)),
        errors=_count(root, "errors", sum(s.errors for s in suites)),
        skipped=_count(root, "skipped", sum(s.skipped for s in suites)),
        time=_to_float(root.get("time")) if root.get("time") else sum(s.time for s in suites),
        suites=suites,
    )


def aggregate_test_results(reports: Iterable[JUnitReport]) -> AggregatedTestResults:
    """Sum suite counters across reports and collect every case.

    Totals come from the suites, not the root attributes, so a report whose
    root disagrees with its suites is counted by its suites.
    """
    total = failed = skipped = 0
    total_time = 0.0
    cases: list[CaseRecord] = []
    for report in reports:
        for suite in report.suites:
            total += suite.tests
            failed += suite.failures + suite.errors
            skipped += suite.skipped
            total_time += suite.time
            cases.extend(
                CaseRecord(
                    suite_name=suite.name,
                    classname=case.classname,
                    name=case.name,
                    status=case.status,
                    time=case.time,
                    failure=case.failure,
                )
                for case in suite.cases
            )

    passed = max(0, total - failed - skipped)
    log.debug("test_results_aggregated", tests=total, failed=failed, skipped=skipped)
    return AggregatedTestResults(
        total_tests=total,
        passed_tests=passed,
        failed_tests=failed,
        skipped_tests=skipped,
        total_time=round(total_time, 3),
        pass_rate=calculate_rate(passed, total),
        cases=cases,
    )
