"""Codecov custom JSON coverage format parser.

Emitted by cargo-llvm-cov --codecov and other tools targeting Codecov's
custom upload format.

Structure:
{
  "coverage": {
    "src/main.rs": {
      "1": 0,       # line 1 missed
      "2": 1,       # line 2 hit once
      "3": "1/2",   # line 3 branch line, 1 of 2 branches covered
      "4": null,    # line 4 not executable
      "7": 5
    }
  }
}

A branch line also counts once as a statement, covered when at least one
branch is. Methods are not tracked by this format.
"""

import json
import re
from typing import Any

from covgate.core.errors import CoverageParseError
from covgate.coverage.models import CoverageResult, FileCoverage, LineCoverage, LineKind

from .base import file_extension, sum_metrics

_BRANCH_RE = re.compile(r"^(\d+)/(\d+)$")
_LINE_KEY_RE = re.compile(r"^\d+$")
_ISTANBUL_MARKERS = ('"statementMap"', '"fnMap"', '"branchMap"')


class CodecovParser:
    """Parser for Codecov custom JSON."""

    @property
    def format_id(self) -> str:
        return "codecov"

    def can_parse(self, content: str, path_hint: str | None = None) -> bool:
        """A top-level "coverage" object keyed by path, then by line number."""
        if path_hint:
            lowered = path_hint.lower()
            if lowered.endswith("codecov.json"):
                return True
            if file_extension(lowered) != "json":
                return False
        if any(marker in content for marker in _ISTANBUL_MARKERS):
            return False
        try:
            data = json.loads(content)
        except ValueError:
            return False
        if not isinstance(data, dict) or not isinstance(data.get("coverage"), dict):
            return False

        files = list(data["coverage"].values())
        if not files:
            return True
        first = files[0]
        if not isinstance(first, dict):
            return False
        return not first or any(_LINE_KEY_RE.match(key) for key in first)

    def parse_content(self, content: str) -> CoverageResult:
        """Parse Codecov JSON into a CoverageResult."""
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise CoverageParseError.malformed(self.format_id, str(e)) from e
        if not isinstance(data, dict) or not isinstance(data.get("coverage"), dict):
            raise CoverageParseError.missing_element(self.format_id, "coverage")

        files: list[FileCoverage] = []
        for path, line_values in data["coverage"].items():
            if not isinstance(line_values, dict):
                raise CoverageParseError.malformed(
                    self.format_id, f"coverage for {path!r} is not an object"
                )
            files.append(self._parse_file(path, line_values))

        return CoverageResult(format_id=self.format_id, metrics=sum_metrics(files), files=files)

    def _parse_file(self, path: str, line_values: dict[str, Any]) -> FileCoverage:
        lines: list[LineCoverage] = []
        missing: list[int] = []
        partial: list[int] = []
        statements = covered_statements = 0
        conditionals = covered_conditionals = 0

        for key, value in line_values.items():
            if not _LINE_KEY_RE.match(key):
                continue
            number = int(key)

            # null, booleans and unrecognized strings are not executable
            if value is None or isinstance(value, bool):
                continue
            if isinstance(value, int | float):
                hits = int(value)
                statements += 1
                lines.append(LineCoverage(line_number=number, count=hits))
                if hits > 0:
                    covered_statements += 1
                else:
                    missing.append(number)
                continue
            if not isinstance(value, str):
                continue
            match = _BRANCH_RE.match(value.strip())
            if match is None:
                continue

            covered, total = int(match.group(1)), int(match.group(2))
            statements += 1
            conditionals += total
            covered_conditionals += covered
            lines.append(
                LineCoverage(
                    line_number=number,
                    count=covered,
                    kind=LineKind.CONDITIONAL,
                    true_count=covered,
                    false_count=max(total - covered, 0),
                )
            )
            if covered > 0:
                covered_statements += 1
                if covered < total:
                    partial.append(number)
            else:
                missing.append(number)

        lines.sort(key=lambda ln: ln.line_number)
        return FileCoverage(
            path=path,
            statements=statements,
            covered_statements=covered_statements,
            conditionals=conditionals,
            covered_conditionals=covered_conditionals,
            lines=lines,
            missing_lines=sorted(missing),
            partial_lines=sorted(partial),
        )
