"""Tests for coverage summaries."""

import pytest

from covgate.coverage.models import (
    AggregatedCoverageResults,
    CoverageComparison,
    FileCoverage,
    LineCoverage,
    PatchCoverageResults,
    PatchFileCoverage,
)
from covgate.coverage.report import (
    build_summary,
    build_text_summary,
    compress_ranges,
    compute_file_stats,
    select_comment_files,
    uncovered_patch_lines,
)


@pytest.fixture
def aggregated() -> AggregatedCoverageResults:
    return AggregatedCoverageResults(
        statements=30,
        covered_statements=20,
        conditionals=4,
        covered_conditionals=2,
        line_rate=66.67,
        branch_rate=50.0,
        files=[
            FileCoverage(
                path="src/b.py",
                statements=10,
                covered_statements=10,
                missing_lines=[],
            ),
            FileCoverage(
                path="src/a.py",
                statements=20,
                covered_statements=10,
                conditionals=4,
                covered_conditionals=2,
                missing_lines=list(range(1, 31)),
                partial_lines=[40],
            ),
        ],
        flags=["unit"],
        name="backend",
    )


class TestCompressRanges:
    """Tests for compress_ranges."""

    @pytest.mark.parametrize(
        ("numbers", "expected"),
        [
            ([], ""),
            ([5], "5"),
            ([1, 2], "1-2"),
            ([1, 5], "1, 5"),
            ([9, 1, 2, 3, 5], "1-3, 5, 9"),
            ([4, 4, 5], "4-5"),
        ],
    )
    def test_ranges(self, numbers: list[int], expected: str) -> None:
        assert compress_ranges(numbers) == expected


class TestComputeFileStats:
    """Tests for compute_file_stats."""

    def test_sorted_by_path(self, aggregated: AggregatedCoverageResults) -> None:
        stats = compute_file_stats(aggregated.files)
        assert [s["path"] for s in stats] == ["src/a.py", "src/b.py"]

    def test_branch_fields_only_with_branches(self, aggregated: AggregatedCoverageResults) -> None:
        a_stats, b_stats = compute_file_stats(aggregated.files)
        assert a_stats["branch_rate"] == 50.0
        assert a_stats["partial_lines"] == [40]
        assert "branch_rate" not in b_stats

    def test_missed_lines_fall_back_to_line_counts(self) -> None:
        fc = FileCoverage(
            path="x.py",
            lines=[LineCoverage(line_number=2, count=0), LineCoverage(line_number=1, count=0)],
        )
        assert compute_file_stats([fc])[0]["missed_lines"] == [1, 2]


class TestBuildSummary:
    """Tests for build_summary."""

    def test_summary_block(self, aggregated: AggregatedCoverageResults) -> None:
        summary = build_summary(aggregated)["summary"]
        assert summary["total_files"] == 2
        assert summary["line_rate"] == 66.67
        assert summary["patch_coverage_rate"] is None

    def test_files_lowest_rate_first_and_truncated(
        self, aggregated: AggregatedCoverageResults
    ) -> None:
        files = build_summary(aggregated)["files"]

        assert [f["path"] for f in files] == ["src/a.py", "src/b.py"]
        assert len(files[0]["missed_lines"]) == 20
        assert files[0]["missed_lines_truncated"] is True
        assert "missed_lines_truncated" not in files[1]

    def test_max_files(self, aggregated: AggregatedCoverageResults) -> None:
        assert len(build_summary(aggregated, max_files=1)["files"]) == 1

    def test_without_files(self, aggregated: AggregatedCoverageResults) -> None:
        assert "files" not in build_summary(aggregated, include_files=False)

    def test_comparison_included_when_present(
        self, aggregated: AggregatedCoverageResults
    ) -> None:
        aggregated.comparison = CoverageComparison(delta_line_rate=1.0, delta_branch_rate=0.0)
        assert build_summary(aggregated)["comparison"]["delta_line_rate"] == 1.0

    def test_name_and_flags(self, aggregated: AggregatedCoverageResults) -> None:
        result = build_summary(aggregated)
        assert result["name"] == "backend"
        assert result["flags"] == ["unit"]


class TestBuildTextSummary:
    """Tests for build_text_summary."""

    def test_no_data(self) -> None:
        assert build_text_summary(AggregatedCoverageResults()) == "No coverage data"

    def test_lines_and_branches(self, aggregated: AggregatedCoverageResults) -> None:
        assert build_text_summary(aggregated) == (
            "Coverage: 66.67% (20/30 lines), branches 50.00% (2/4)"
        )

    def test_patch_rate(self) -> None:
        aggregated = AggregatedCoverageResults(
            statements=4, covered_statements=4, line_rate=100.0, patch_coverage_rate=75.0
        )
        assert build_text_summary(aggregated) == "Coverage: 100.00% (4/4 lines), patch 75.00%"


class TestSelectCommentFiles:
    """Tests for select_comment_files."""

    def test_all(self, aggregated: AggregatedCoverageResults) -> None:
        assert len(select_comment_files(aggregated, None, "all")) == 2

    def test_none(self, aggregated: AggregatedCoverageResults) -> None:
        assert select_comment_files(aggregated, None, "none") == []

    def test_changed(self, aggregated: AggregatedCoverageResults) -> None:
        patch = PatchCoverageResults(changed_files=["src/b.py", "docs/readme.md"])
        selected = select_comment_files(aggregated, patch, "changed")
        assert [f.path for f in selected] == ["src/b.py"]

    def test_changed_without_diff(self, aggregated: AggregatedCoverageResults) -> None:
        assert select_comment_files(aggregated, None, "changed") == []


class TestUncoveredPatchLines:
    """Tests for uncovered_patch_lines."""

    def test_only_files_with_misses_as_ranges(self) -> None:
        patch = PatchCoverageResults(
            file_breakdown=[
                PatchFileCoverage(
                    path="src/a.py", covered_lines=[2], missed_lines=[3, 4, 5, 9], percentage=20.0
                ),
                PatchFileCoverage(
                    path="src/b.py", covered_lines=[1], missed_lines=[], percentage=100.0
                ),
            ]
        )
        assert uncovered_patch_lines(patch) == ["src/a.py: 3-5, 9"]

    def test_empty_patch(self) -> None:
        assert uncovered_patch_lines(PatchCoverageResults()) == []
