"""JUnit XML test results: parsing, aggregation and base comparison.

Usage:
    from covgate.testresults import aggregate_test_results, parse_junit_xml

    report = parse_junit_xml(text)
    aggregated = aggregate_test_results([report])
"""

from covgate.testresults.compare import compare_test_results
from covgate.testresults.junit import aggregate_test_results, parse_junit_xml
from covgate.testresults.models import (
    AggregatedTestResults,
    CaseFailure,
    CaseRecord,
    CaseStatus,
    JUnitCase,
    JUnitReport,
    JUnitSuite,
    ResultsComparison,
)

__all__ = [
    # Models
    "AggregatedTestResults",
    "CaseFailure",
    "CaseRecord",
    "CaseStatus",
    "JUnitCase",
    "JUnitReport",
    "JUnitSuite",
    "ResultsComparison",
    # Parsing and aggregation
    "aggregate_test_results",
    "parse_junit_xml",
    # Comparison
    "compare_test_results",
]
