"""Structured coverage report generation.

This module turns an AggregatedCoverageResults into the structured JSON a
reporting step (PR comment, job summary) renders.

Output schema for build_summary:
{
    "summary": {
        "total_files": int,
        "statements": int,
        "covered_statements": int,
        "line_rate": float,
        "conditionals": int,
        "covered_conditionals": int,
        "branch_rate": float,
        "methods": int,
        "covered_methods": int,
        "patch_coverage_rate": float | null,
        "total_misses": int | null
    },
    "files": [
        {
            "path": str,
            "statements": int,
            "covered_statements": int,
            "line_rate": float,
            "missed_lines": [int, ...],
            "partial_lines": [int, ...]   # only when the format reports branches
        },
        ...
    ],
    "comparison": {...},    # only after a base comparison
    "flags": [str, ...],
    "name": str | null
}
"""

from collections.abc import Iterable
from typing import Any

from covgate.coverage.models import (
    AggregatedCoverageResults,
    FileCoverage,
    PatchCoverageResults,
)


def _missed(fc: FileCoverage) -> list[int]:
    if fc.missing_lines is not None:
        return list(fc.missing_lines)
    return sorted(line.line_number for line in fc.lines if line.count <= 0)


def compress_ranges(numbers: Iterable[int]) -> str:
    """Render sorted line numbers as ``"3-5, 9, 12-13"``."""
    ordered = sorted(set(numbers))
    if not ordered:
        return ""
    parts: list[str] = []
    start = prev = ordered[0]
    for n in ordered[1:]:
        if n == prev + 1:
            prev = n
            continue
        parts.append(str(start) if start == prev else f"{start}-{prev}")
        start = prev = n
    parts.append(str(start) if start == prev else f"{start}-{prev}")
    return ", ".join(parts)


def compute_file_stats(files: Iterable[FileCoverage]) -> list[dict[str, Any]]:
    """Compute per-file coverage statistics.

    Args:
        files: File entries to describe.

    Returns:
        List of dicts with per-file stats, sorted by path.
    """
    file_stats = []
    for fc in sorted(files, key=lambda f: f.path):
        stats: dict[str, Any] = {
            "path": fc.path,
            "statements": fc.statements,
            "covered_statements": fc.covered_statements,
            "line_rate": fc.line_rate,
            "missed_lines": _missed(fc),
        }
        # Only include branch info if there are branches
        if fc.conditionals > 0:
            stats["branch_rate"] = fc.branch_rate
            stats["partial_lines"] = list(fc.partial_lines or [])
        file_stats.append(stats)
    return file_stats


def build_summary(
    aggregated: AggregatedCoverageResults,
    *,
    include_files: bool = True,
    files: Iterable[FileCoverage] | None = None,
    max_files: int | None = None,
    max_missed_lines: int = 20,
) -> dict[str, Any]:
    """Build a structured coverage summary from an aggregate.

    Args:
        aggregated: The aggregate to summarize.
        include_files: Whether to include per-file details.
        files: Subset of files to detail (see select_comment_files).
               Defaults to every file of the aggregate.
        max_files: Limit number of files (lowest coverage first). None = all.
        max_missed_lines: Max missed lines to list per file.

    Returns:
        Structured dict suitable for JSON serialization.
    """
    summary: dict[str, Any] = {
        "total_files": len({fc.path for fc in aggregated.files}),
        "statements": aggregated.statements,
        "covered_statements": aggregated.covered_statements,
        "line_rate": aggregated.line_rate,
        "conditionals": aggregated.conditionals,
        "covered_conditionals": aggregated.covered_conditionals,
        "branch_rate": aggregated.branch_rate,
        "methods": aggregated.methods,
        "covered_methods": aggregated.covered_methods,
        "patch_coverage_rate": aggregated.patch_coverage_rate,
        "total_misses": aggregated.total_misses,
    }

    result: dict[str, Any] = {
        "summary": summary,
        "flags": list(aggregated.flags),
        "name": aggregated.name,
    }
    if aggregated.comparison is not None:
        result["comparison"] = aggregated.comparison.to_dict()

    if include_files:
        file_stats = compute_file_stats(aggregated.files if files is None else files)

        # Sort by line rate (lowest first) to surface problem areas
        file_stats.sort(key=lambda f: f["line_rate"])

        if max_files is not None:
            file_stats = file_stats[:max_files]

        for fs in file_stats:
            missed = fs["missed_lines"]
            if len(missed) > max_missed_lines:
                fs["missed_lines"] = missed[:max_missed_lines]
                fs["missed_lines_truncated"] = True

        result["files"] = file_stats

    return result


def build_text_summary(aggregated: AggregatedCoverageResults) -> str:
    """Build a concise text summary for display contexts."""
    if aggregated.statements == 0:
        return "No coverage data"

    text = (
        f"Coverage: {aggregated.line_rate:.2f}% "
        f"({aggregated.covered_statements}/{aggregated.statements} lines)"
    )
    if aggregated.conditionals > 0:
        text += (
            f", branches {aggregated.branch_rate:.2f}% "
            f"({aggregated.covered_conditionals}/{aggregated.conditionals})"
        )
    if aggregated.patch_coverage_rate is not None:
        text += f", patch {aggregated.patch_coverage_rate:.2f}%"
    return text


def select_comment_files(
    aggregated: AggregatedCoverageResults,
    patch: PatchCoverageResults | None,
    mode: str,
) -> list[FileCoverage]:
    """Files a PR comment should list for a ``comment.files`` mode.

    - all: every file of the aggregate
    - changed: files the diff touches (none without a diff)
    - none: no files
    """
    if mode == "none":
        return []
    if mode == "changed":
        if patch is None:
            return []
        changed = set(patch.changed_files)
        return [fc for fc in aggregated.files if fc.path in changed]
    return list(aggregated.files)


def uncovered_patch_lines(patch: PatchCoverageResults) -> list[str]:
    """One ``"path: 3-5, 9"`` entry per changed file with uncovered added lines."""
    return [
        f"{fc.path}: {compress_ranges(fc.missed_lines)}"
        for fc in patch.file_breakdown
        if fc.missed_lines
    ]
