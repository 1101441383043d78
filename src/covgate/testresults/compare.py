"""Comparison of a current test run against a base run."""

from collections.abc import Iterable

from covgate.testresults.models import (
    AggregatedTestResults,
    CaseRecord,
    CaseStatus,
    ResultsComparison,
)


def _index(cases: Iterable[CaseRecord]) -> dict[tuple[str, str, str], CaseRecord]:
    """Cases by key; when a key repeats, a failing entry wins."""
    index: dict[tuple[str, str, str], CaseRecord] = {}
    for case in cases:
        seen = index.get(case.key)
        if seen is None or (case.status.is_failing and not seen.status.is_failing):
            index[case.key] = case
    return index


def compare_test_results(
    base: AggregatedTestResults, current: AggregatedTestResults
) -> ResultsComparison:
    """Compare two test runs case by case; neither input is modified.

    Added and removed cases are listed whatever their status. Lists keep the
    order cases first appear in (current, or base for removed cases).
    """
    base_cases = _index(base.cases)
    current_cases = _index(current.cases)

    broken: list[CaseRecord] = []
    fixed: list[CaseRecord] = []
    for key, case in current_cases.items():
        before = base_cases.get(key)
        if before is None:
            continue
        if case.status.is_failing and not before.status.is_failing:
            broken.append(case)
        elif before.status.is_failing and case.status is CaseStatus.PASSED:
            fixed.append(case)

    return ResultsComparison(
        tests_added=[c for key, c in current_cases.items() if key not in base_cases],
        tests_removed=[c for key, c in base_cases.items() if key not in current_cases],
        tests_broken=broken,
        tests_fixed=fixed,
        delta_total=current.total_tests - base.total_tests,
        delta_passed=current.passed_tests - base.passed_tests,
        delta_failed=current.failed_tests - base.failed_tests,
        delta_skipped=current.skipped_tests - base.skipped_tests,
    )
