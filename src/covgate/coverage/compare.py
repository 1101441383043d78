"""Comparison of a current aggregate against a base snapshot."""

from collections.abc import Iterable
from dataclasses import dataclass

from covgate.coverage.models import (
    AggregatedCoverageResults,
    CoverageComparison,
    FileCoverage,
    calculate_rate,
)


@dataclass(frozen=True, slots=True)
class _PathTotals:
    statements: int
    covered_statements: int
    line_rate: float
    branch_rate: float


def _totals_by_path(files: Iterable[FileCoverage]) -> dict[str, _PathTotals]:
    """Per-path totals; entries sharing a path are summed first."""
    sums: dict[str, list[int]] = {}
    for fc in files:
        acc = sums.setdefault(fc.path, [0, 0, 0, 0])
        acc[0] += fc.statements
        acc[1] += fc.covered_statements
        acc[2] += fc.conditionals
        acc[3] += fc.covered_conditionals
    return {
        path: _PathTotals(
            statements=statements,
            covered_statements=covered,
            line_rate=calculate_rate(covered, statements),
            branch_rate=calculate_rate(covered_cond, conditionals),
        )
        for path, (statements, covered, conditionals, covered_cond) in sums.items()
    }


def compare_results(
    base: AggregatedCoverageResults, current: AggregatedCoverageResults
) -> CoverageComparison:
    """Compare two aggregates; neither input is modified.

    Deltas are current minus base, rounded to two decimals. File lists keep
    the order paths first appear in (current for added/changed, base for
    removed).
    """
    base_files = _totals_by_path(base.files)
    current_files = _totals_by_path(current.files)

    files_added = [path for path in current_files if path not in base_files]
    files_removed = [path for path in base_files if path not in current_files]
    files_changed = [
        path
        for path, totals in current_files.items()
        if path in base_files and totals != base_files[path]
    ]

    delta_line_rate = round(current.line_rate - base.line_rate, 2)
    return CoverageComparison(
        delta_line_rate=delta_line_rate,
        delta_branch_rate=round(current.branch_rate - base.branch_rate, 2),
        files_added=files_added,
        files_removed=files_removed,
        files_changed=files_changed,
        improvement=delta_line_rate >= 0,
    )
