"""Tests for JUnit XML parsing and aggregation."""

import pytest

from covgate.core.errors import ErrorCode, JUnitParseError
from covgate.testresults import (
    CaseStatus,
    JUnitCase,
    JUnitReport,
    JUnitSuite,
    aggregate_test_results,
    parse_junit_xml,
)

JEST = """\
<?xml version="1.0" encoding="UTF-8"?>
<testsuites name="jest tests" tests="4" failures="1" errors="0" time="1.007">
  <testsuite name="Example Suite" errors="0" failures="1" skipped="1" time="0.955" tests="4">
    <testcase classname="test/example.test.ts" name="test passing" time="0.4"></testcase>
    <testcase classname="test/example.test.ts" name="test failing" time="0.5">
      <failure message="Expected 5 to equal 6" type="AssertionError">
Error: Expected 5 to equal 6
    at Object.toBe (test/example.test.ts:10:20)
      </failure>
    </testcase>
    <testcase classname="test/example.test.ts" name="test skipped" time="0">
      <skipped />
    </testcase>
    <testcase classname="test/example.test.ts" name="test passing too" time="0.05"/>
  </testsuite>
</testsuites>
"""


class TestParseJUnitXml:
    """Tests for parse_junit_xml."""

    def test_given_testsuites_root_when_parse_then_counters_from_attributes(self) -> None:
        # Given / When
        report = parse_junit_xml(JEST)

        # Then
        assert report.name == "jest tests"
        assert (report.tests, report.failures, report.errors) == (4, 1, 0)
        assert report.time == 1.007
        (suite,) = report.suites
        assert suite.name == "Example Suite"
        assert (suite.tests, suite.failures, suite.skipped) == (4, 1, 1)
        assert [c.name for c in suite.cases] == [
            "test passing",
            "test failing",
            "test skipped",
            "test passing too",
        ]

    def test_given_failure_element_when_parse_then_details_kept(self) -> None:
        failing = parse_junit_xml(JEST).suites[0].cases[1]

        assert failing.status is CaseStatus.FAILED
        assert failing.failure is not None
        assert failing.failure.message == "Expected 5 to equal 6"
        assert failing.failure.type == "AssertionError"
        assert failing.failure.content is not None
        assert "at Object.toBe" in failing.failure.content

    def test_given_skipped_element_when_parse_then_skipped(self) -> None:
        case = parse_junit_xml(JEST).suites[0].cases[2]
        assert case.status is CaseStatus.SKIPPED
        assert case.failure is None

    def test_given_single_testsuite_root_when_parse_then_wrapped(self) -> None:
        # Given
        xml = (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<testsuite name="pytest" errors="1" failures="0" skipped="0" tests="2" time="0.5">'
            '<testcase classname="tests.test_app" name="test_ok" time="0.1"/>'
            '<testcase classname="tests.test_app" name="test_setup" time="0.2">'
            '<error message="fixture missing">E   fixture not found</error>'
            "</testcase>"
            "</testsuite>"
        )

        # When
        report = parse_junit_xml(xml)

        # Then
        assert report.name == "pytest"
        assert (report.tests, report.errors, report.time) == (2, 1, 0.5)
        (suite,) = report.suites
        error_case = suite.cases[1]
        assert error_case.status is CaseStatus.ERROR
        assert error_case.failure is not None
        assert error_case.failure.message == "fixture missing"
        assert error_case.failure.content == "E   fixture not found"

    def test_given_missing_attributes_when_parse_then_counted_from_cases(self) -> None:
        """Reporters that omit counters still produce totals."""
        # Given
        xml = (
            "<testsuites><testsuite>"
            '<testcase name="a" time="1,204.5"/>'
            '<testcase name="b"><failure/></testcase>'
            '<testcase name="c"><skipped/></testcase>'
            "</testsuite></testsuites>"
        )

        # When
        report = parse_junit_xml(xml)

        # Then
        (suite,) = report.suites
        assert suite.name == "unknown"
        assert (suite.tests, suite.failures, suite.errors, suite.skipped) == (3, 1, 0, 1)
        assert suite.time == 1204.5
        assert (report.tests, report.failures, report.skipped) == (3, 1, 1)
        assert suite.cases[1].failure is not None
        assert suite.cases[1].failure.message == "Test failed"
        assert suite.cases[0].classname == "unknown"

    def test_given_nested_suites_when_parse_then_cases_under_outer_suite(self) -> None:
        xml = (
            '<testsuites><testsuite name="outer" tests="2">'
            '<testsuite name="inner"><testcase name="a"/><testcase name="b"/></testsuite>'
            "</testsuite></testsuites>"
        )

        (suite,) = parse_junit_xml(xml).suites

        assert suite.name == "outer"
        assert [c.name for c in suite.cases] == ["a", "b"]

    def test_given_empty_suite_when_parse_then_no_cases(self) -> None:
        xml = (
            '<testsuites tests="0"><testsuite name="Empty Suite" tests="0" time="0">'
            "</testsuite></testsuites>"
        )

        report = parse_junit_xml(xml)

        assert report.tests == 0
        assert len(report.suites) == 1
        assert report.suites[0].cases == []

    def test_given_unknown_root_when_parse_then_raises(self) -> None:
        with pytest.raises(JUnitParseError) as exc_info:
            parse_junit_xml('<?xml version="1.0"?>\n<invalid>Not a JUnit format</invalid>')

        assert exc_info.value.code == ErrorCode.TEST_RESULTS_MISSING_ROOT

    def test_given_broken_xml_when_parse_then_raises_malformed(self) -> None:
        with pytest.raises(JUnitParseError) as exc_info:
            parse_junit_xml("<testsuites><testsuite>")

        assert exc_info.value.code == ErrorCode.TEST_RESULTS_MALFORMED


class TestAggregateTestResults:
    """Tests for aggregate_test_results."""

    def test_given_two_reports_when_aggregate_then_counters_summed(self) -> None:
        # Given
        first = JUnitReport(
            suites=[
                JUnitSuite(
                    name="Suite 1",
                    tests=5,
                    failures=1,
                    skipped=1,
                    time=2.5,
                    cases=[
                        JUnitCase(classname="test1.ts", name="test 1"),
                        JUnitCase(
                            classname="test1.ts", name="test 2", status=CaseStatus.FAILED
                        ),
                    ],
                )
            ]
        )
        second = JUnitReport(
            suites=[JUnitSuite(name="Suite 2", tests=3, errors=1, time=1.25)]
        )

        # When
        aggregated = aggregate_test_results([first, second])

        # Then
        assert aggregated.total_tests == 8
        assert aggregated.failed_tests == 2
        assert aggregated.skipped_tests == 1
        assert aggregated.passed_tests == 5
        assert aggregated.total_time == 3.75
        assert aggregated.pass_rate == 62.5
        assert [c.label for c in aggregated.failed_cases] == ["Suite 1::test1.ts::test 2"]

    def test_given_no_reports_when_aggregate_then_zero_rate(self) -> None:
        aggregated = aggregate_test_results([])

        assert aggregated.total_tests == 0
        assert aggregated.pass_rate == 0.0
        assert aggregated.cases == []

    def test_given_parsed_report_when_aggregate_then_cases_keep_suite(self) -> None:
        aggregated = aggregate_test_results([parse_junit_xml(JEST)])

        assert aggregated.passed_tests == 2
        assert aggregated.pass_rate == 50.0
        assert {c.suite_name for c in aggregated.cases} == {"Example Suite"}
        assert len(aggregated.cases) == 4
