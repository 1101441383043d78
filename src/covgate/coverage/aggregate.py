"""Cross-report aggregation.

Aggregation is a plain fold:

- counters are summed across reports
- files are concatenated (a path reported twice stays twice)
- rates are recomputed from the summed counters, never averaged

Averaging per-report rates would weight a 10-line report the same as a
10,000-line one.
"""

import fnmatch
from collections.abc import Iterable, Sequence
from dataclasses import replace

import structlog

from covgate.coverage.models import (
    AggregatedCoverageResults,
    CoverageResult,
    FileCoverage,
    calculate_rate,
)

log = structlog.get_logger(__name__)


def aggregate_results(
    results: Iterable[CoverageResult],
    *,
    name: str | None = None,
    flags: Sequence[str] = (),
) -> AggregatedCoverageResults:
    """Fold parsed reports into one AggregatedCoverageResults.

    Args:
        results: Parsed reports, in any order.
        name: Optional label for the aggregate.
        flags: Optional grouping tags.

    Returns:
        Fresh aggregate; all zeros with no files for empty input.
    """
    statements = covered_statements = 0
    conditionals = covered_conditionals = 0
    methods = covered_methods = 0
    files: list[FileCoverage] = []

    for result in results:
        metrics = result.metrics
        statements += metrics.statements
        covered_statements += metrics.covered_statements
        conditionals += metrics.conditionals
        covered_conditionals += metrics.covered_conditionals
        methods += metrics.methods
        covered_methods += metrics.covered_methods
        files.extend(result.files)

    return AggregatedCoverageResults(
        statements=statements,
        covered_statements=covered_statements,
        conditionals=conditionals,
        covered_conditionals=covered_conditionals,
        methods=methods,
        covered_methods=covered_methods,
        line_rate=calculate_rate(covered_statements, statements),
        branch_rate=calculate_rate(covered_conditionals, conditionals),
        files=files,
        flags=list(flags),
        name=name,
    )


def _is_ignored(path: str, patterns: Sequence[str]) -> bool:
    normalized = path.replace("\\", "/")
    return any(fnmatch.fnmatch(normalized, pattern) for pattern in patterns)


def apply_ignore(
    aggregated: AggregatedCoverageResults, patterns: Sequence[str]
) -> AggregatedCoverageResults:
    """Drop files matching any glob and take their counters off the totals.

    The totals are reduced by the dropped files rather than re-summed from the
    kept ones: report-level counters (JaCoCo, Clover project metrics) can
    cover more than the per-file entries. Returns the input unchanged when
    nothing matches.
    """
    if not patterns:
        return aggregated

    kept: list[FileCoverage] = []
    dropped: list[FileCoverage] = []
    for fc in aggregated.files:
        (dropped if _is_ignored(fc.path, patterns) else kept).append(fc)
    if not dropped:
        return aggregated
    log.info("coverage_files_ignored", count=len(dropped), patterns=list(patterns))

    def remaining(total: int, attr: str) -> int:
        return max(0, total - sum(getattr(fc, attr) for fc in dropped))

    statements = remaining(aggregated.statements, "statements")
    covered_statements = min(
        statements, remaining(aggregated.covered_statements, "covered_statements")
    )
    conditionals = remaining(aggregated.conditionals, "conditionals")
    covered_conditionals = min(
        conditionals, remaining(aggregated.covered_conditionals, "covered_conditionals")
    )
    methods = remaining(aggregated.methods, "methods")
    return replace(
        aggregated,
        statements=statements,
        covered_statements=covered_statements,
        conditionals=conditionals,
        covered_conditionals=covered_conditionals,
        methods=methods,
        covered_methods=min(methods, remaining(aggregated.covered_methods, "covered_methods")),
        line_rate=calculate_rate(covered_statements, statements),
        branch_rate=calculate_rate(covered_conditionals, conditionals),
        files=kept,
        flags=list(aggregated.flags),
    )


def index_line_hits(files: Iterable[FileCoverage]) -> dict[str, dict[int, int]]:
    """Map path -> line number -> hit count.

    A path that occurs more than once keeps the highest count per line.
    """
    index: dict[str, dict[int, int]] = {}
    for fc in files:
        lines = index.setdefault(fc.path, {})
        for line in fc.lines:
            lines[line.line_number] = max(lines.get(line.line_number, 0), line.count)
    return index
