"""Istanbul/NYC JSON format parser.

Istanbul is the standard coverage tool for JavaScript/TypeScript.
Used by: nyc, jest --coverage, vitest, c8 (json reporter).

Structure (coverage-final.json):
{
  "/path/to/file.js": {
    "path": "/path/to/file.js",
    "statementMap": {"0": {"start": {"line": 1, "column": 0}, "end": {...}}},
    "fnMap": {"0": {"name": "foo", "decl": {...}, "loc": {...}, "line": 3}},
    "branchMap": {"0": {"loc": {...}, "type": "if", "locations": [...], "line": 5}},
    "s": {"0": 1},       # statement hits
    "f": {"0": 1},       # function hits
    "b": {"0": [1, 0]}   # branch hits per location
  }
}

Older reporters wrap each entry as {"path": {"data": {...}}}.
"""

import json
from typing import Any

from covgate.core.errors import CoverageParseError
from covgate.coverage.models import CoverageResult, FileCoverage, LineCoverage, LineKind

from .base import file_extension, missing_lines, sum_metrics, to_int

_MARKERS = ('"statementMap"', '"fnMap"', '"branchMap"')


def _start_line(location: Any) -> int:
    if isinstance(location, dict):
        start = location.get("start")
        if isinstance(start, dict):
            return to_int(start.get("line"))
    return 0


def _branch_line(branch: dict[str, Any]) -> int:
    line = to_int(branch.get("line"))
    if line > 0:
        return line
    line = _start_line(branch.get("loc"))
    if line > 0:
        return line
    locations = branch.get("locations") or []
    return _start_line(locations[0]) if locations else 0


class IstanbulParser:
    """Parser for Istanbul coverage-final.json."""

    @property
    def format_id(self) -> str:
        return "istanbul"

    def can_parse(self, content: str, path_hint: str | None = None) -> bool:
        """Istanbul JSON carries statementMap/fnMap/branchMap per file."""
        if path_hint:
            lowered = path_hint.lower()
            if lowered.endswith("coverage-final.json"):
                return True
            if file_extension(lowered) != "json":
                return False
        return all(marker in content for marker in _MARKERS) and (
            '"s"' in content or '"f"' in content
        )

    def parse_content(self, content: str) -> CoverageResult:
        """Parse Istanbul JSON into a CoverageResult."""
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise CoverageParseError.malformed(self.format_id, str(e)) from e
        if not isinstance(data, dict):
            raise CoverageParseError.malformed(self.format_id, "top-level value must be an object")

        files: list[FileCoverage] = []
        for key, entry in data.items():
            if isinstance(entry, dict) and isinstance(entry.get("data"), dict):
                entry = entry["data"]
            if not isinstance(entry, dict):
                raise CoverageParseError.malformed(
                    self.format_id, f"entry for {key!r} is not an object"
                )
            files.append(self._parse_file(str(entry.get("path") or key), entry))

        return CoverageResult(format_id=self.format_id, metrics=sum_metrics(files), files=files)

    def _parse_file(self, path: str, entry: dict[str, Any]) -> FileCoverage:
        statement_map: dict[str, Any] = entry.get("statementMap") or {}
        statement_hits: dict[str, Any] = entry.get("s") or {}
        fn_map: dict[str, Any] = entry.get("fnMap") or {}
        fn_hits: dict[str, Any] = entry.get("f") or {}
        branch_map: dict[str, Any] = entry.get("branchMap") or {}
        branch_hits: dict[str, Any] = entry.get("b") or {}

        # Hit count per line: max over statements starting on it
        line_hits: dict[int, int] = {}
        covered_statements = 0
        for stmt_id, location in statement_map.items():
            hits = to_int(statement_hits.get(stmt_id))
            if hits > 0:
                covered_statements += 1
            line = _start_line(location)
            if line > 0:
                line_hits[line] = max(line_hits.get(line, 0), hits)

        # line -> [covered, missed] branch locations
        branch_lines: dict[int, list[int]] = {}
        conditionals = covered_conditionals = 0
        for branch_id, branch in branch_map.items():
            if not isinstance(branch, dict):
                continue
            total = len(branch.get("locations") or [])
            hits = branch_hits.get(branch_id) or []
            covered = sum(1 for h in hits if to_int(h) > 0)
            conditionals += total
            covered_conditionals += covered
            line = _branch_line(branch)
            if line > 0:
                outcome = branch_lines.setdefault(line, [0, 0])
                outcome[0] += covered
                outcome[1] += max(total - covered, 0)

        lines: list[LineCoverage] = []
        partial: list[int] = []
        for number in sorted(line_hits):
            outcome = branch_lines.get(number)
            if outcome is None:
                lines.append(LineCoverage(line_number=number, count=line_hits[number]))
                continue
            lines.append(
                LineCoverage(
                    line_number=number,
                    count=line_hits[number],
                    kind=LineKind.CONDITIONAL,
                    true_count=outcome[0],
                    false_count=outcome[1],
                )
            )
            if outcome[0] > 0 and outcome[1] > 0:
                partial.append(number)

        return FileCoverage(
            path=path,
            statements=len(statement_map),
            covered_statements=covered_statements,
            conditionals=conditionals,
            covered_conditionals=covered_conditionals,
            methods=len(fn_map),
            covered_methods=sum(1 for fn_id in fn_map if to_int(fn_hits.get(fn_id)) > 0),
            lines=lines,
            missing_lines=missing_lines(lines),
            partial_lines=partial,
        )
