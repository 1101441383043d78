"""Canonical coverage data model.

File-centric model for coverage data: every format converts to this
representation. Rates are percentages (0-100) rounded to two decimals and
are 0 when the denominator is 0.

Result structures serialize to plain JSON-compatible dicts with ``to_dict``;
the ones that travel between runs (the base snapshot) also load back with
``from_dict``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


def calculate_rate(covered: int, total: int) -> float:
    """Percentage of covered over total, 2 decimals, 0.0 for an empty total."""
    if total <= 0:
        return 0.0
    return round(covered / total * 100, 2)


class LineKind(str, Enum):
    """What an instrumented line represents."""

    STATEMENT = "stmt"
    CONDITIONAL = "cond"
    METHOD = "method"


@dataclass(slots=True)
class LineCoverage:
    """Coverage of one instrumented source line.

    ``true_count``/``false_count`` are only set for conditional lines; their
    meaning is format-specific (taken/not-taken branch counts).
    """

    line_number: int
    count: int
    kind: LineKind = LineKind.STATEMENT
    true_count: int | None = None
    false_count: int | None = None

    @property
    def is_covered(self) -> bool:
        return self.count > 0

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "line_number": self.line_number,
            "count": self.count,
            "kind": self.kind.value,
        }
        if self.true_count is not None:
            data["true_count"] = self.true_count
        if self.false_count is not None:
            data["false_count"] = self.false_count
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LineCoverage:
        return cls(
            line_number=int(data["line_number"]),
            count=int(data.get("count", 0)),
            kind=LineKind(data.get("kind", LineKind.STATEMENT.value)),
            true_count=data.get("true_count"),
            false_count=data.get("false_count"),
        )


@dataclass(slots=True)
class FileCoverage:
    """Coverage data for a single source file.

    ``path`` is whatever the report says (absolute or relative); it is never
    normalized across formats. Lines are ordered by line number.
    """

    path: str
    name: str = ""
    statements: int = 0
    covered_statements: int = 0
    conditionals: int = 0
    covered_conditionals: int = 0
    methods: int = 0
    covered_methods: int = 0
    lines: list[LineCoverage] = field(default_factory=list)
    missing_lines: list[int] | None = None
    partial_lines: list[int] | None = None

    def __post_init__(self) -> None:
        if not self.name:
            self.name = os.path.basename(self.path.replace("\\", "/")) or self.path

    @property
    def line_rate(self) -> float:
        return calculate_rate(self.covered_statements, self.statements)

    @property
    def branch_rate(self) -> float:
        return calculate_rate(self.covered_conditionals, self.conditionals)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "path": self.path,
            "statements": self.statements,
            "covered_statements": self.covered_statements,
            "conditionals": self.conditionals,
            "covered_conditionals": self.covered_conditionals,
            "methods": self.methods,
            "covered_methods": self.covered_methods,
            "line_rate": self.line_rate,
            "branch_rate": self.branch_rate,
            "lines": [line.to_dict() for line in self.lines],
        }
        if self.missing_lines is not None:
            data["missing_lines"] = list(self.missing_lines)
        if self.partial_lines is not None:
            data["partial_lines"] = list(self.partial_lines)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileCoverage:
        missing = data.get("missing_lines")
        partial = data.get("partial_lines")
        return cls(
            path=str(data["path"]),
            name=str(data.get("name") or ""),
            statements=int(data.get("statements", 0)),
            covered_statements=int(data.get("covered_statements", 0)),
            conditionals=int(data.get("conditionals", 0)),
            covered_conditionals=int(data.get("covered_conditionals", 0)),
            methods=int(data.get("methods", 0)),
            covered_methods=int(data.get("covered_methods", 0)),
            lines=[LineCoverage.from_dict(line) for line in data.get("lines", [])],
            missing_lines=[int(n) for n in missing] if missing is not None else None,
            partial_lines=[int(n) for n in partial] if partial is not None else None,
        )


@dataclass(frozen=True, slots=True)
class CoverageMetrics:
    """Summary counters of one parsed report."""

    statements: int = 0
    covered_statements: int = 0
    conditionals: int = 0
    covered_conditionals: int = 0
    methods: int = 0
    covered_methods: int = 0
    line_rate: float = 0.0
    branch_rate: float = 0.0

    @classmethod
    def from_counts(
        cls,
        statements: int = 0,
        covered_statements: int = 0,
        conditionals: int = 0,
        covered_conditionals: int = 0,
        methods: int = 0,
        covered_methods: int = 0,
    ) -> CoverageMetrics:
        """Build metrics with rates derived from the counters."""
        return cls(
            statements=statements,
            covered_statements=covered_statements,
            conditionals=conditionals,
            covered_conditionals=covered_conditionals,
            methods=methods,
            covered_methods=covered_methods,
            line_rate=calculate_rate(covered_statements, statements),
            branch_rate=calculate_rate(covered_conditionals, conditionals),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "statements": self.statements,
            "covered_statements": self.covered_statements,
            "conditionals": self.conditionals,
            "covered_conditionals": self.covered_conditionals,
            "methods": self.methods,
            "covered_methods": self.covered_methods,
            "line_rate": self.line_rate,
            "branch_rate": self.branch_rate,
        }


@dataclass(slots=True)
class CoverageResult:
    """Output of one parser invocation."""

    format_id: str
    metrics: CoverageMetrics
    files: list[FileCoverage] = field(default_factory=list)
    timestamp: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format_id,
            "timestamp": self.timestamp,
            "metrics": self.metrics.to_dict(),
            "files": [f.to_dict() for f in self.files],
        }


@dataclass(frozen=True, slots=True)
class CoverageComparison:
    """Delta of a current run against a base snapshot."""

    delta_line_rate: float
    delta_branch_rate: float
    files_added: list[str] = field(default_factory=list)
    files_removed: list[str] = field(default_factory=list)
    files_changed: list[str] = field(default_factory=list)
    improvement: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "delta_line_rate": self.delta_line_rate,
            "delta_branch_rate": self.delta_branch_rate,
            "files_added": list(self.files_added),
            "files_removed": list(self.files_removed),
            "files_changed": list(self.files_changed),
            "improvement": self.improvement,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CoverageComparison:
        return cls(
            delta_line_rate=float(data.get("delta_line_rate", 0.0)),
            delta_branch_rate=float(data.get("delta_branch_rate", 0.0)),
            files_added=list(data.get("files_added", [])),
            files_removed=list(data.get("files_removed", [])),
            files_changed=list(data.get("files_changed", [])),
            improvement=bool(data.get("improvement", True)),
        )


@dataclass(slots=True)
class AggregatedCoverageResults:
    """Cross-report totals.

    ``comparison``, ``patch_coverage_rate`` and ``total_misses`` stay None
    until a comparison or patch analysis has run.
    """

    statements: int = 0
    covered_statements: int = 0
    conditionals: int = 0
    covered_conditionals: int = 0
    methods: int = 0
    covered_methods: int = 0
    line_rate: float = 0.0
    branch_rate: float = 0.0
    files: list[FileCoverage] = field(default_factory=list)
    comparison: CoverageComparison | None = None
    patch_coverage_rate: float | None = None
    total_misses: int | None = None
    flags: list[str] = field(default_factory=list)
    name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "statements": self.statements,
            "covered_statements": self.covered_statements,
            "conditionals": self.conditionals,
            "covered_conditionals": self.covered_conditionals,
            "methods": self.methods,
            "covered_methods": self.covered_methods,
            "line_rate": self.line_rate,
            "branch_rate": self.branch_rate,
            "files": [f.to_dict() for f in self.files],
            "flags": list(self.flags),
        }
        if self.comparison is not None:
            data["comparison"] = self.comparison.to_dict()
        if self.patch_coverage_rate is not None:
            data["patch_coverage_rate"] = self.patch_coverage_rate
        if self.total_misses is not None:
            data["total_misses"] = self.total_misses
        if self.name is not None:
            data["name"] = self.name
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AggregatedCoverageResults:
        """Load a snapshot written by ``to_dict``.

        Missing counters default to 0; rates are taken as stored.
        """
        comparison = data.get("comparison")
        patch_rate = data.get("patch_coverage_rate")
        total_misses = data.get("total_misses")
        return cls(
            statements=int(data.get("statements", 0)),
            covered_statements=int(data.get("covered_statements", 0)),
            conditionals=int(data.get("conditionals", 0)),
            covered_conditionals=int(data.get("covered_conditionals", 0)),
            methods=int(data.get("methods", 0)),
            covered_methods=int(data.get("covered_methods", 0)),
            line_rate=float(data.get("line_rate", 0.0)),
            branch_rate=float(data.get("branch_rate", 0.0)),
            files=[FileCoverage.from_dict(f) for f in data.get("files", [])],
            comparison=CoverageComparison.from_dict(comparison) if comparison else None,
            patch_coverage_rate=float(patch_rate) if patch_rate is not None else None,
            total_misses=int(total_misses) if total_misses is not None else None,
            flags=[str(flag) for flag in data.get("flags", [])],
            name=data.get("name"),
        )


@dataclass(frozen=True, slots=True)
class PatchFileCoverage:
    """Patch coverage of one changed file: the added executable line numbers."""

    path: str
    covered_lines: list[int]
    missed_lines: list[int]
    percentage: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "covered_lines": list(self.covered_lines),
            "missed_lines": list(self.missed_lines),
            "percentage": self.percentage,
        }


@dataclass(slots=True)
class PatchCoverageResults:
    """Coverage of the executable lines a diff adds."""

    covered_lines: int = 0
    missed_lines: int = 0
    total_lines: int = 0
    percentage: float = 100.0
    file_breakdown: list[PatchFileCoverage] = field(default_factory=list)
    changed_files: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "covered_lines": self.covered_lines,
            "missed_lines": self.missed_lines,
            "total_lines": self.total_lines,
            "percentage": self.percentage,
            "file_breakdown": [f.to_dict() for f in self.file_breakdown],
            "changed_files": list(self.changed_files),
        }
