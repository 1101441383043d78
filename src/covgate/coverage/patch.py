"""Patch coverage: intersect a unified diff with line coverage.

Only lines the diff *adds* count, and only when the coverage report knows
the line (a line without a coverage entry is not executable and is left
out). Matching is exact on both path and new-file line number; there is no
fuzzy path or offset correction.

The diff parser understands git extended headers (new/deleted file mode,
renames, quoted paths) as well as plain ``diff -u`` output.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from enum import Enum

import structlog

from covgate.coverage.aggregate import index_line_hits
from covgate.coverage.models import (
    AggregatedCoverageResults,
    PatchCoverageResults,
    PatchFileCoverage,
    calculate_rate,
)

log = structlog.get_logger(__name__)

_HUNK_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@(.*)$")
_DEV_NULL = "/dev/null"
_ESCAPES = {"a": "\a", "b": "\b", "f": "\f", "n": "\n", "r": "\r", "t": "\t", "v": "\v"}


class ChangeKind(str, Enum):
    ADD = "add"
    DELETE = "del"
    NORMAL = "normal"


@dataclass(frozen=True, slots=True)
class DiffChange:
    """One body line of a hunk, with its old/new file line numbers."""

    kind: ChangeKind
    content: str
    old_line: int | None
    new_line: int | None


@dataclass(slots=True)
class DiffHunk:
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    section: str = ""
    changes: list[DiffChange] = field(default_factory=list)


@dataclass(slots=True)
class DiffFile:
    """One file-patch of a diff.

    ``new_path`` is None for a deletion and ``old_path`` is None for an
    added file. ``a/``/``b/`` prefixes are stripped.
    """

    old_path: str | None = None
    new_path: str | None = None
    new_file: bool = False
    deleted: bool = False
    renamed: bool = False
    hunks: list[DiffHunk] = field(default_factory=list)

    @property
    def added_lines(self) -> list[int]:
        """New-file line numbers of added lines, in diff order."""
        return [
            change.new_line
            for hunk in self.hunks
            for change in hunk.changes
            if change.kind is ChangeKind.ADD and change.new_line is not None
        ]


def _unquote(path: str) -> str:
    """Decode a git C-style quoted path ("a/caf\\303\\251.txt")."""
    if len(path) < 2 or not (path.startswith('"') and path.endswith('"')):
        return path
    body = path[1:-1]
    raw = bytearray()
    i = 0
    while i < len(body):
        ch = body[i]
        if ch == "\\" and i + 1 < len(body):
            nxt = body[i + 1]
            octal = body[i + 1 : i + 4]
            if len(octal) == 3 and all(c in "01234567" for c in octal):
                raw.append(int(octal, 8) & 0xFF)
                i += 4
                continue
            raw.extend(_ESCAPES.get(nxt, nxt).encode("utf-8"))
            i += 2
            continue
        raw.extend(ch.encode("utf-8"))
        i += 1
    return raw.decode("utf-8", errors="replace")


def _strip_prefix(path: str) -> str:
    if path.startswith(("a/", "b/")):
        return path[2:]
    return path


def _header_path(value: str) -> str | None:
    """Path from a ---/+++ header, None for /dev/null."""
    value = value.rstrip("\r\n")
    if not value.startswith('"'):
        # diff -u appends a tab-separated timestamp
        value = value.split("\t", 1)[0]
    value = value.strip()
    if value.startswith('"'):
        end = _closing_quote(value)
        value = _unquote(value[: end + 1]) if end > 0 else value
    if value == _DEV_NULL:
        return None
    return _strip_prefix(value)


def _closing_quote(value: str, start: int = 0) -> int:
    i = start + 1
    while i < len(value):
        if value[i] == "\\":
            i += 2
            continue
        if value[i] == '"':
            return i
        i += 1
    return -1


def _git_header_paths(rest: str) -> tuple[str | None, str | None]:
    """Old/new paths from the remainder of a ``diff --git`` line."""
    rest = rest.strip()
    if rest.startswith('"'):
        end = _closing_quote(rest)
        if end > 0:
            old = _unquote(rest[: end + 1])
            new_part = rest[end + 1 :].strip()
            return _strip_prefix(old), _strip_prefix(_unquote(new_part))
    if rest.endswith('"'):
        start = rest.rfind(' "')
        if start > 0:
            return _strip_prefix(rest[:start]), _strip_prefix(_unquote(rest[start + 1 :]))

    # "a/X b/X": split in the middle when both halves name the same file
    if len(rest) % 2 == 1:
        mid = len(rest) // 2
        old, new = rest[:mid], rest[mid + 1 :]
        if rest[mid] == " " and _strip_prefix(old) == _strip_prefix(new):
            return _strip_prefix(old), _strip_prefix(new)
    idx = rest.rfind(" b/")
    if idx > 0:
        return _strip_prefix(rest[:idx]), _strip_prefix(rest[idx + 1 :])
    parts = rest.split(" ", 1)
    if len(parts) == 2:
        return _strip_prefix(parts[0]), _strip_prefix(parts[1])
    return None, None


def parse_unified_diff(text: str) -> list[DiffFile]:
    """Parse unified diff text into per-file hunks.

    Lines that belong to no recognizable structure (``index``, ``similarity``,
    ``Binary files ...``) are ignored.
    """
    files: list[DiffFile] = []
    current: DiffFile | None = None
    saw_old_header = False
    hunk: DiffHunk | None = None
    old_line = new_line = 0
    old_remaining = new_remaining = 0

    for raw_line in text.splitlines():
        line = raw_line.rstrip("\r")

        if hunk is not None and (old_remaining > 0 or new_remaining > 0):
            if line.startswith("\\"):
                continue  # \ No newline at end of file
            tag = line[:1]
            if tag == "+":
                hunk.changes.append(DiffChange(ChangeKind.ADD, line[1:], None, new_line))
                new_line += 1
                new_remaining -= 1
                continue
            if tag == "-":
                hunk.changes.append(DiffChange(ChangeKind.DELETE, line[1:], old_line, None))
                old_line += 1
                old_remaining -= 1
                continue
            if tag == " " or line == "":
                hunk.changes.append(DiffChange(ChangeKind.NORMAL, line[1:], old_line, new_line))
                old_line += 1
                new_line += 1
                old_remaining -= 1
                new_remaining -= 1
                continue
            # Truncated hunk; treat the line as a header
            hunk = None

        if line.startswith("\\"):
            continue

        if line.startswith("diff --git "):
            old_path, new_path = _git_header_paths(line[len("diff --git ") :])
            current = DiffFile(old_path=old_path, new_path=new_path)
            files.append(current)
            saw_old_header = False
            hunk = None
            continue

        if line.startswith("--- "):
            if current is None or saw_old_header or current.hunks:
                # Plain unified diff: every file starts with its --- header
                current = DiffFile()
                files.append(current)
            current.old_path = _header_path(line[4:])
            if current.old_path is None:
                current.new_file = True
            saw_old_header = True
            hunk = None
            continue

        if line.startswith("+++ ") and current is not None:
            current.new_path = _header_path(line[4:])
            if current.new_path is None:
                current.deleted = True
            continue

        if current is None:
            if line.startswith("@@"):
                current = DiffFile()
                files.append(current)
            else:
                continue

        if line.startswith("new file mode"):
            current.new_file = True
            current.old_path = None
        elif line.startswith("deleted file mode"):
            current.deleted = True
            current.new_path = None
        elif line.startswith("rename from "):
            current.old_path = _unquote(line[len("rename from ") :].strip())
            current.renamed = True
        elif line.startswith("rename to "):
            current.new_path = _unquote(line[len("rename to ") :].strip())
            current.renamed = True
        elif line.startswith("@@"):
            match = _HUNK_RE.match(line)
            if match is None:
                log.debug("diff_invalid_hunk_header", line=line)
                continue
            old_start, new_start = int(match.group(1)), int(match.group(3))
            old_count = int(match.group(2)) if match.group(2) is not None else 1
            new_count = int(match.group(4)) if match.group(4) is not None else 1
            hunk = DiffHunk(
                old_start=old_start,
                old_lines=old_count,
                new_start=new_start,
                new_lines=new_count,
                section=match.group(5).strip(),
            )
            current.hunks.append(hunk)
            old_line, new_line = old_start, new_start
            old_remaining, new_remaining = old_count, new_count

    return files


def analyze_patch_coverage(
    diff: str | Sequence[DiffFile],
    coverage: AggregatedCoverageResults,
) -> PatchCoverageResults:
    """Coverage of the executable lines a diff adds.

    Args:
        diff: Unified diff text, or already parsed file-patches.
        coverage: Aggregate whose per-line data is matched by exact path.

    Returns:
        Totals plus a per-file breakdown; percentage is 100 when the diff
        adds no executable line.
    """
    diff_files = parse_unified_diff(diff) if isinstance(diff, str) else list(diff)
    line_index = index_line_hits(coverage.files)

    changed_files: list[str] = []
    seen: set[str] = set()
    breakdown: list[PatchFileCoverage] = []
    total_covered = total_missed = 0

    for diff_file in diff_files:
        path = diff_file.new_path
        if diff_file.deleted or not path:
            continue
        if path not in seen:
            seen.add(path)
            changed_files.append(path)

        line_hits = line_index.get(path)
        if line_hits is None:
            log.debug("patch_file_without_coverage", path=path)
            continue

        covered: list[int] = []
        missed: list[int] = []
        for number in diff_file.added_lines:
            hits = line_hits.get(number)
            if hits is None:
                continue
            (covered if hits > 0 else missed).append(number)

        if covered or missed:
            breakdown.append(
                PatchFileCoverage(
                    path=path,
                    covered_lines=covered,
                    missed_lines=missed,
                    percentage=calculate_rate(len(covered), len(covered) + len(missed)),
                )
            )
            total_covered += len(covered)
            total_missed += len(missed)

    total = total_covered + total_missed
    percentage = 100.0 if total == 0 else calculate_rate(total_covered, total)
    log.info(
        "patch_coverage",
        covered=total_covered,
        missed=total_missed,
        percentage=percentage,
        files=len(changed_files),
    )
    return PatchCoverageResults(
        covered_lines=total_covered,
        missed_lines=total_missed,
        total_lines=total,
        percentage=percentage,
        file_breakdown=breakdown,
        changed_files=changed_files,
    )


def attach_patch_coverage(
    aggregated: AggregatedCoverageResults, patch: PatchCoverageResults
) -> AggregatedCoverageResults:
    """Copy of the aggregate with the patch rate and miss count filled in."""
    return replace(
        aggregated,
        files=list(aggregated.files),
        flags=list(aggregated.flags),
        patch_coverage_rate=patch.percentage,
        total_misses=patch.missed_lines,
    )
