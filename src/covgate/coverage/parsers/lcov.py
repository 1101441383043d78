"""LCOV tracefile format parser.

LCOV is a line-based text format used by:
- C/C++: lcov/gcov, llvm-cov export -format=lcov
- JS/TS: istanbul/nyc, c8
- Rust: grcov, cargo-llvm-cov
- Dart/Flutter: flutter test --coverage

Record structure (one per source file):
TN:<test name>
SF:<source file path>
FN:<line>,<function name>
FNDA:<hit count>,<function name>
FNF:<functions found>
FNH:<functions hit>
BRDA:<line>,<block>,<branch>,<taken or ->
BRF:<branches found>
BRH:<branches hit>
DA:<line>,<hit count>[,<checksum>]
LF:<lines found>
LH:<lines hit>
end_of_record

The LF/LH, FNF/FNH and BRF/BRH summaries win over the detail records when
present; otherwise totals are derived from DA, FN/FNDA and BRDA.

Per-line entries come from DA only. A BRDA on a line without DA still counts
towards the branch totals and can make the line partial, but adds no line
entry: without a hit count the line cannot be called covered or missed.
"""

from dataclasses import dataclass, field

import structlog

from covgate.core.errors import CoverageParseError
from covgate.coverage.models import CoverageResult, FileCoverage, LineCoverage, LineKind

from .base import file_extension, missing_lines, sum_metrics

log = structlog.get_logger(__name__)

_SUMMARY_KEYS = ("LF", "LH", "FNF", "FNH", "BRF", "BRH")


def _int_or_none(value: str) -> int | None:
    try:
        return int(value.strip())
    except ValueError:
        return None


@dataclass(slots=True)
class _Record:
    source: str = ""
    hits: dict[int, int] = field(default_factory=dict)
    functions: dict[str, int] = field(default_factory=dict)  # name -> hits
    # line -> [covered, missed] branch outcomes
    branches: dict[int, list[int]] = field(default_factory=dict)
    summary: dict[str, int | None] = field(default_factory=dict)


class LcovParser:
    """Parser for LCOV tracefiles."""

    @property
    def format_id(self) -> str:
        return "lcov"

    def can_parse(self, content: str, path_hint: str | None = None) -> bool:
        """LCOV has SF:/DA: records terminated by end_of_record."""
        if path_hint:
            lowered = path_hint.lower()
            if (
                file_extension(lowered) == "info"
                or lowered.endswith("lcov.info")
                or lowered.endswith(".lcov")
            ):
                return True
        return (
            "SF:" in content
            and ("DA:" in content or "LF:" in content)
            and "end_of_record" in content
        )

    def parse_content(self, content: str) -> CoverageResult:
        """Parse an LCOV tracefile into a CoverageResult."""
        files: list[FileCoverage] = []
        for chunk in content.split("end_of_record"):
            if not chunk.strip():
                continue
            record = self._parse_record(chunk)
            if record.source:
                files.append(self._build_file(record))

        if not files and content.strip():
            raise CoverageParseError.missing_element(self.format_id, "SF")

        return CoverageResult(format_id=self.format_id, metrics=sum_metrics(files), files=files)

    def _parse_record(self, chunk: str) -> _Record:
        record = _Record()
        for raw_line in chunk.splitlines():
            line = raw_line.strip()
            if not line or ":" not in line:
                continue
            key, _, value = line.partition(":")

            if key == "SF":
                record.source = value
            elif key == "DA":
                parts = value.split(",")
                if len(parts) < 2:
                    continue
                number, hits = _int_or_none(parts[0]), _int_or_none(parts[1])
                if number is None or hits is None:
                    log.debug("lcov_invalid_entry", entry=line)
                    continue
                record.hits[number] = max(record.hits.get(number, 0), hits)
            elif key == "FN":
                parts = value.split(",", 1)
                if len(parts) == 2:
                    record.functions.setdefault(parts[1], 0)
            elif key == "FNDA":
                parts = value.split(",", 1)
                hits = _int_or_none(parts[0]) if len(parts) == 2 else None
                if hits is not None:
                    record.functions[parts[1]] = max(record.functions.get(parts[1], 0), hits)
            elif key == "BRDA":
                parts = value.split(",")
                if len(parts) < 4:
                    continue
                number = _int_or_none(parts[0])
                taken = 0 if parts[3].strip() == "-" else _int_or_none(parts[3])
                if number is None or taken is None:
                    log.debug("lcov_invalid_entry", entry=line)
                    continue
                outcome = record.branches.setdefault(number, [0, 0])
                outcome[0 if taken > 0 else 1] += 1
            elif key in _SUMMARY_KEYS:
                record.summary[key] = _int_or_none(value)
        return record

    def _build_file(self, record: _Record) -> FileCoverage:
        lines: list[LineCoverage] = []
        partial = sorted(
            number for number, (covered, missed) in record.branches.items() if covered and missed
        )
        for number in sorted(record.hits):
            outcome = record.branches.get(number)
            if outcome is None:
                lines.append(LineCoverage(line_number=number, count=record.hits[number]))
                continue
            covered, missed = outcome
            lines.append(
                LineCoverage(
                    line_number=number,
                    count=record.hits[number],
                    kind=LineKind.CONDITIONAL,
                    true_count=covered,
                    false_count=missed,
                )
            )

        summary = record.summary
        statements = summary.get("LF")
        covered_statements = summary.get("LH")
        if statements is None:
            statements = len(record.hits)
        if covered_statements is None:
            covered_statements = sum(1 for hits in record.hits.values() if hits > 0)

        methods = summary.get("FNF")
        covered_methods = summary.get("FNH")
        if methods is None:
            methods = len(record.functions)
        if covered_methods is None:
            covered_methods = sum(1 for hits in record.functions.values() if hits > 0)

        conditionals = summary.get("BRF")
        covered_conditionals = summary.get("BRH")
        if conditionals is None:
            conditionals = sum(c + m for c, m in record.branches.values())
        if covered_conditionals is None:
            covered_conditionals = sum(c for c, _ in record.branches.values())

        return FileCoverage(
            path=record.source,
            statements=statements,
            covered_statements=covered_statements,
            conditionals=conditionals,
            covered_conditionals=covered_conditionals,
            methods=methods,
            covered_methods=covered_methods,
            lines=lines,
            missing_lines=missing_lines(lines),
            partial_lines=partial,
        )
