"""Tests for unified diff parsing and patch coverage."""

import pytest

from covgate.coverage.models import AggregatedCoverageResults, FileCoverage, LineCoverage
from covgate.coverage.patch import (
    ChangeKind,
    DiffFile,
    analyze_patch_coverage,
    attach_patch_coverage,
    parse_unified_diff,
)

GIT_DIFF = "\n".join(
    [
        "diff --git a/src/app.py b/src/app.py",
        "index 1111111..2222222 100644",
        "--- a/src/app.py",
        "+++ b/src/app.py",
        "@@ -1,3 +1,5 @@ import os",
        " import os",
        "+import sys",
        "+",
        " def main():",
        "-    pass",
        "+    return 0",
        "diff --git a/src/new.py b/src/new.py",
        "new file mode 100644",
        "index 0000000..3333333",
        "--- /dev/null",
        "+++ b/src/new.py",
        "@@ -0,0 +1,2 @@",
        "+x = 1",
        "+y = 2",
        "",
    ]
)


def _coverage(*files: tuple[str, dict[int, int]]) -> AggregatedCoverageResults:
    return AggregatedCoverageResults(
        files=[
            FileCoverage(
                path=path,
                lines=[LineCoverage(line_number=n, count=c) for n, c in sorted(hits.items())],
            )
            for path, hits in files
        ]
    )


class TestParseUnifiedDiff:
    """Tests for parse_unified_diff."""

    def test_git_diff_files(self) -> None:
        files = parse_unified_diff(GIT_DIFF)

        assert [(f.old_path, f.new_path) for f in files] == [
            ("src/app.py", "src/app.py"),
            (None, "src/new.py"),
        ]
        assert files[1].new_file is True

    def test_added_line_numbers(self) -> None:
        files = parse_unified_diff(GIT_DIFF)

        assert files[0].added_lines == [2, 3, 5]
        assert files[1].added_lines == [1, 2]

    def test_hunk_header_and_changes(self) -> None:
        hunk = parse_unified_diff(GIT_DIFF)[0].hunks[0]

        assert (hunk.old_start, hunk.old_lines, hunk.new_start, hunk.new_lines) == (1, 3, 1, 5)
        assert hunk.section == "import os"
        kinds = [change.kind for change in hunk.changes]
        assert kinds.count(ChangeKind.DELETE) == 1
        deleted = next(c for c in hunk.changes if c.kind is ChangeKind.DELETE)
        assert (deleted.old_line, deleted.new_line) == (3, None)

    def test_deleted_file(self) -> None:
        diff = "\n".join(
            [
                "diff --git a/old.txt b/old.txt",
                "deleted file mode 100644",
                "--- a/old.txt",
                "+++ /dev/null",
                "@@ -1,2 +0,0 @@",
                "-a",
                "-b",
            ]
        )
        (diff_file,) = parse_unified_diff(diff)
        assert diff_file.deleted is True
        assert diff_file.new_path is None
        assert diff_file.added_lines == []

    def test_rename(self) -> None:
        diff = "\n".join(
            [
                "diff --git a/old_name.py b/new_name.py",
                "similarity index 90%",
                "rename from old_name.py",
                "rename to new_name.py",
            ]
        )
        (diff_file,) = parse_unified_diff(diff)
        assert diff_file.renamed is True
        assert (diff_file.old_path, diff_file.new_path) == ("old_name.py", "new_name.py")

    def test_quoted_paths(self) -> None:
        diff = "\n".join(
            [
                'diff --git "a/caf\\303\\251.py" "b/caf\\303\\251.py"',
                '--- "a/caf\\303\\251.py"',
                '+++ "b/caf\\303\\251.py"',
                "@@ -1 +1 @@",
                "-old",
                "+new",
            ]
        )
        (diff_file,) = parse_unified_diff(diff)
        assert diff_file.new_path == "café.py"
        assert diff_file.added_lines == [1]

    def test_paths_with_spaces(self) -> None:
        diff = "\n".join(
            [
                "diff --git a/my file.py b/my file.py",
                "--- a/my file.py",
                "+++ b/my file.py",
                "@@ -1 +1,2 @@",
                " x",
                "+y",
            ]
        )
        (diff_file,) = parse_unified_diff(diff)
        assert diff_file.new_path == "my file.py"
        assert diff_file.added_lines == [2]

    def test_plain_diff_u_with_timestamps(self) -> None:
        diff = "\n".join(
            [
                "--- a.txt\t2024-01-01 00:00:00.000000000 +0000",
                "+++ a.txt\t2024-01-02 00:00:00.000000000 +0000",
                "@@ -1 +1 @@",
                "-x",
                "+y",
                "--- b.txt\t2024-01-01 00:00:00.000000000 +0000",
                "+++ b.txt\t2024-01-02 00:00:00.000000000 +0000",
                "@@ -1,0 +2 @@",
                "+z",
            ]
        )
        files = parse_unified_diff(diff)

        assert [f.new_path for f in files] == ["a.txt", "b.txt"]
        assert files[0].added_lines == [1]
        assert files[1].added_lines == [2]

    def test_no_newline_marker_ignored(self) -> None:
        diff = "\n".join(
            [
                "--- a/x.py",
                "+++ b/x.py",
                "@@ -1 +1,2 @@",
                " a",
                "\\ No newline at end of file",
                "+b",
                "\\ No newline at end of file",
            ]
        )
        (diff_file,) = parse_unified_diff(diff)
        assert diff_file.added_lines == [2]

    def test_removed_line_looking_like_header_stays_in_hunk(self) -> None:
        diff = "\n".join(
            [
                "--- a/notes.md",
                "+++ b/notes.md",
                "@@ -1,2 +1,1 @@",
                "--- a heading rule",
                " text",
            ]
        )
        (diff_file,) = parse_unified_diff(diff)
        changes = diff_file.hunks[0].changes
        assert changes[0].kind is ChangeKind.DELETE
        assert changes[0].content == "-- a heading rule"

    def test_empty_diff(self) -> None:
        assert parse_unified_diff("") == []


class TestAnalyzePatchCoverage:
    """Tests for analyze_patch_coverage."""

    def test_covered_and_missed_added_lines(self) -> None:
        coverage = _coverage(("src/app.py", {1: 1, 2: 1, 4: 1, 5: 0}))

        patch = analyze_patch_coverage(GIT_DIFF, coverage)

        # line 3 is blank and has no coverage entry
        assert (patch.covered_lines, patch.missed_lines, patch.total_lines) == (1, 1, 2)
        assert patch.percentage == 50.0
        assert patch.changed_files == ["src/app.py", "src/new.py"]
        (breakdown,) = patch.file_breakdown
        assert breakdown.path == "src/app.py"
        assert breakdown.covered_lines == [2]
        assert breakdown.missed_lines == [5]
        assert breakdown.percentage == 50.0

    def test_no_executable_lines_is_full_coverage(self) -> None:
        patch = analyze_patch_coverage(GIT_DIFF, _coverage(("other.py", {1: 1})))

        assert patch.total_lines == 0
        assert patch.percentage == 100.0
        assert patch.file_breakdown == []

    def test_path_match_is_exact(self) -> None:
        coverage = _coverage(("/abs/checkout/src/app.py", {2: 1, 5: 1}))
        assert analyze_patch_coverage(GIT_DIFF, coverage).total_lines == 0

    def test_deleted_files_are_not_changed_files(self) -> None:
        diff = "\n".join(
            [
                "diff --git a/gone.py b/gone.py",
                "deleted file mode 100644",
                "--- a/gone.py",
                "+++ /dev/null",
                "@@ -1 +0,0 @@",
                "-x",
            ]
        )
        patch = analyze_patch_coverage(diff, _coverage(("gone.py", {1: 0})))
        assert patch.changed_files == []

    def test_accepts_parsed_diff(self) -> None:
        files = parse_unified_diff(GIT_DIFF)
        coverage = _coverage(("src/new.py", {1: 1, 2: 1}))

        patch = analyze_patch_coverage(files, coverage)

        assert patch.covered_lines == 2
        assert patch.percentage == 100.0

    def test_duplicate_coverage_entries_keep_max(self) -> None:
        coverage = AggregatedCoverageResults(
            files=[
                FileCoverage(path="src/new.py", lines=[LineCoverage(line_number=1, count=0)]),
                FileCoverage(path="src/new.py", lines=[LineCoverage(line_number=1, count=4)]),
            ]
        )
        patch = analyze_patch_coverage(GIT_DIFF, coverage)
        assert (patch.covered_lines, patch.missed_lines) == (1, 0)

    def test_given_same_path_in_two_blocks_when_analyze_then_listed_once(self) -> None:
        """Concatenated diffs can touch a file twice; both blocks' lines count."""
        # Given
        diff = "\n".join(
            [
                "diff --git a/x.py b/x.py",
                "--- a/x.py",
                "+++ b/x.py",
                "@@ -1,1 +1,2 @@",
                " a",
                "+b",
                "diff --git a/x.py b/x.py",
                "--- a/x.py",
                "+++ b/x.py",
                "@@ -10,1 +11,2 @@",
                " y",
                "+z",
            ]
        )
        coverage = _coverage(("x.py", {2: 1, 12: 0}))

        # When
        patch = analyze_patch_coverage(diff, coverage)

        # Then
        assert patch.changed_files == ["x.py"]
        assert (patch.covered_lines, patch.missed_lines) == (1, 1)
        assert patch.percentage == 50.0

    @pytest.mark.parametrize(("hits", "expected"), [((1, 1, 0), 66.67), ((0, 0, 0), 0.0)])
    def test_percentage_rounding(self, hits: tuple[int, int, int], expected: float) -> None:
        diff = "\n".join(
            ["--- /dev/null", "+++ b/n.py", "@@ -0,0 +1,3 @@", "+a", "+b", "+c"]
        )
        coverage = _coverage(("n.py", dict(enumerate(hits, start=1))))
        assert analyze_patch_coverage(diff, coverage).percentage == expected


class TestAttachPatchCoverage:
    """Tests for attach_patch_coverage."""

    def test_copies_rate_and_misses(self) -> None:
        aggregated = _coverage(("src/app.py", {2: 1, 5: 0}))
        patch = analyze_patch_coverage(GIT_DIFF, aggregated)

        attached = attach_patch_coverage(aggregated, patch)

        assert attached.patch_coverage_rate == 50.0
        assert attached.total_misses == 1
        assert aggregated.patch_coverage_rate is None

    def test_diff_file_defaults(self) -> None:
        assert DiffFile().added_lines == []
