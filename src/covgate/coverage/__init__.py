"""Coverage parsing, aggregation, patch analysis and status checks.

This package provides:
- Multi-format coverage parsing (7 formats) with auto-detection
- Aggregation across reports (summed counters, concatenated files)
- Patch coverage from a unified diff
- Comparison against a base snapshot and status checks

Usage:
    from covgate.coverage import build_registry, aggregate_results

    registry = build_registry()
    result = registry.parse_content(text, path_hint="coverage/lcov.info")
    aggregated = aggregate_results([result])

Supported formats:
    - clover: istanbul clover reporter, PHPUnit, OpenClover
    - cobertura: coverage.py, coverlet (.NET), gocover-cobertura
    - jacoco: Java/Kotlin (Maven/Gradle)
    - lcov: lcov/gcov, c8, grcov, flutter
    - istanbul: Jest, Vitest, NYC coverage-final.json
    - go: go test -coverprofile
    - codecov: Codecov custom JSON (cargo-llvm-cov --codecov)
"""

from covgate.coverage.aggregate import aggregate_results, apply_ignore, index_line_hits
from covgate.coverage.compare import compare_results
from covgate.coverage.models import (
    AggregatedCoverageResults,
    CoverageComparison,
    CoverageMetrics,
    CoverageResult,
    FileCoverage,
    LineCoverage,
    LineKind,
    PatchCoverageResults,
    PatchFileCoverage,
    calculate_rate,
)
from covgate.coverage.parsers import (
    CoverageParser,
    ParserRegistry,
    build_registry,
    detect_format_from_path,
    parse_artifact,
)
from covgate.coverage.patch import (
    DiffFile,
    analyze_patch_coverage,
    attach_patch_coverage,
    parse_unified_diff,
)
from covgate.coverage.report import (
    build_summary,
    build_text_summary,
    compute_file_stats,
    select_comment_files,
    uncovered_patch_lines,
)
from covgate.coverage.thresholds import (
    StatusCheckResult,
    blocking_failures,
    check_patch_status,
    check_project_status,
)

__all__ = [
    # Models
    "AggregatedCoverageResults",
    "CoverageComparison",
    "CoverageMetrics",
    "CoverageResult",
    "FileCoverage",
    "LineCoverage",
    "LineKind",
    "PatchCoverageResults",
    "PatchFileCoverage",
    "calculate_rate",
    # Parsers
    "CoverageParser",
    "ParserRegistry",
    "build_registry",
    "detect_format_from_path",
    "parse_artifact",
    # Aggregation
    "aggregate_results",
    "apply_ignore",
    "index_line_hits",
    # Comparison
    "compare_results",
    # Patch
    "DiffFile",
    "analyze_patch_coverage",
    "attach_patch_coverage",
    "parse_unified_diff",
    # Status checks
    "StatusCheckResult",
    "blocking_failures",
    "check_patch_status",
    "check_project_status",
    # Report
    "build_summary",
    "build_text_summary",
    "compute_file_stats",
    "select_comment_files",
    "uncovered_patch_lines",
]
