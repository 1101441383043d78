"""Cobertura XML format parser.

Cobertura XML is used by many coverage tools across languages:
- Python: coverage.py
- .NET: coverlet
- Go: gocover-cobertura
- PHP: phpunit --coverage-cobertura

Structure:
<coverage line-rate="0.85" branch-rate="0.50" timestamp="...">
  <packages>
    <package name="...">
      <classes>
        <class name="..." filename="..." line-rate="...">
          <methods>
            <method name="..." signature="...">
              <lines>
                <line number="1" hits="1"/>
              </lines>
            </method>
          </methods>
          <lines>
            <line number="1" hits="1" branch="false"/>
            <line number="2" hits="0" branch="true" condition-coverage="50% (1/2)"/>
          </lines>
        </class>
      </classes>
    </package>
  </packages>
</coverage>

Several <class> elements may point at the same filename (inner classes,
partial classes); they collapse into one FileCoverage.
"""

import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field

from covgate.core.errors import CoverageParseError
from covgate.coverage.models import CoverageResult, FileCoverage, LineCoverage, LineKind

from .base import file_extension, missing_lines, parse_xml, sum_metrics, to_int

_CONDITION_RE = re.compile(r"\((\d+)/(\d+)\)")


@dataclass(slots=True)
class _FileAccumulator:
    hits: dict[int, int] = field(default_factory=dict)
    # line -> (covered, total) branch outcomes
    conditions: dict[int, tuple[int, int]] = field(default_factory=dict)
    methods: int = 0
    covered_methods: int = 0


class CoberturaParser:
    """Parser for Cobertura XML format."""

    @property
    def format_id(self) -> str:
        return "cobertura"

    def can_parse(self, content: str, path_hint: str | None = None) -> bool:
        """Cobertura has a <coverage line-rate=...> root with <packages>."""
        if path_hint and file_extension(path_hint) != "xml":
            return False
        return (
            "<coverage" in content
            and "line-rate" in content
            and "<packages" in content
            and "<project" not in content  # Clover
            and "<report" not in content  # JaCoCo
        )

    def parse_content(self, content: str) -> CoverageResult:
        """Parse Cobertura XML into a CoverageResult."""
        root = parse_xml(content, self.format_id)
        if root.tag != "coverage":
            raise CoverageParseError.missing_element(self.format_id, "coverage")

        accumulators: dict[str, _FileAccumulator] = {}
        for cls in root.iter("class"):
            filename = cls.get("filename", "")
            if not filename:
                continue
            acc = accumulators.setdefault(filename, _FileAccumulator())
            self._collect_class(cls, acc)

        files = [self._build_file(path, acc) for path, acc in accumulators.items()]
        return CoverageResult(
            format_id=self.format_id,
            metrics=sum_metrics(files),
            files=files,
            timestamp=to_int(root.get("timestamp")),
        )

    def _collect_class(self, cls: ET.Element, acc: _FileAccumulator) -> None:
        for method in cls.findall("./methods/method"):
            acc.methods += 1
            if any(to_int(ln.get("hits")) > 0 for ln in method.iter("line")):
                acc.covered_methods += 1

        # Class-level lines only; method-level lines repeat them
        for line in cls.findall("./lines/line"):
            number = to_int(line.get("number"))
            if number <= 0:
                continue
            hits = to_int(line.get("hits"))
            acc.hits[number] = max(acc.hits.get(number, 0), hits)

            if line.get("branch", "").lower() != "true":
                continue
            match = _CONDITION_RE.search(line.get("condition-coverage", ""))
            if match:
                outcome = (int(match.group(1)), int(match.group(2)))
            else:
                # No detail: assume a two-way branch, one side taken when hit
                outcome = (1 if hits > 0 else 0, 2)
            previous = acc.conditions.get(number)
            if previous is None or outcome > previous:
                acc.conditions[number] = outcome

    def _build_file(self, path: str, acc: _FileAccumulator) -> FileCoverage:
        lines: list[LineCoverage] = []
        partial: list[int] = []
        for number in sorted(acc.hits):
            condition = acc.conditions.get(number)
            if condition is None:
                lines.append(LineCoverage(line_number=number, count=acc.hits[number]))
                continue
            covered, total = condition
            lines.append(
                LineCoverage(
                    line_number=number,
                    count=acc.hits[number],
                    kind=LineKind.CONDITIONAL,
                    true_count=covered,
                    false_count=max(total - covered, 0),
                )
            )
            if 0 < covered < total:
                partial.append(number)

        covered_statements = sum(1 for hits in acc.hits.values() if hits > 0)
        methods, covered_methods = acc.methods, acc.covered_methods
        if methods == 0:
            # No method info: treat the file as one method
            methods, covered_methods = 1, int(covered_statements > 0)

        return FileCoverage(
            path=path,
            statements=len(acc.hits),
            covered_statements=covered_statements,
            conditionals=sum(total for _, total in acc.conditions.values()),
            covered_conditionals=sum(covered for covered, _ in acc.conditions.values()),
            methods=methods,
            covered_methods=covered_methods,
            lines=lines,
            missing_lines=missing_lines(lines),
            partial_lines=partial,
        )
