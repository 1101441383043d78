"""JaCoCo XML format parser.

JaCoCo is the standard coverage tool for JVM languages (Java, Kotlin, Scala).

Structure:
<report name="project">
  <sessioninfo id="..." start="1700000000000" dump="..."/>
  <package name="com/example">
    <class name="com/example/MyClass" sourcefilename="MyClass.java">
      <method name="myMethod" desc="()V" line="10">
        <counter type="LINE" missed="0" covered="5"/>
      </method>
    </class>
    <sourcefile name="MyClass.java">
      <line nr="10" mi="0" ci="3" mb="0" cb="0"/>
      <line nr="11" mi="0" ci="4" mb="1" cb="1"/>
      <counter type="LINE" missed="2" covered="20"/>
      <counter type="BRANCH" missed="1" covered="3"/>
      <counter type="METHOD" missed="0" covered="4"/>
    </sourcefile>
  </package>
  <counter type="LINE" missed="100" covered="1000"/>
</report>

Line attributes:
- nr: line number
- mi/ci: missed/covered instructions
- mb/cb: missed/covered branches
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass

from covgate.core.errors import CoverageParseError
from covgate.coverage.models import (
    CoverageMetrics,
    CoverageResult,
    FileCoverage,
    LineCoverage,
    LineKind,
)

from .base import missing_lines, parse_xml, sum_metrics, to_int


@dataclass(frozen=True, slots=True)
class _Counter:
    missed: int = 0
    covered: int = 0

    @property
    def total(self) -> int:
        return self.missed + self.covered


def _parse_counters(elem: ET.Element) -> dict[str, _Counter]:
    """Direct <counter> children keyed by lowercased type."""
    counters: dict[str, _Counter] = {}
    for counter in elem.findall("counter"):
        kind = counter.get("type", "").lower()
        if kind:
            counters[kind] = _Counter(
                missed=to_int(counter.get("missed")),
                covered=to_int(counter.get("covered")),
            )
    return counters


def _metrics_from_counters(counters: dict[str, _Counter]) -> CoverageMetrics:
    line = counters.get("line", _Counter())
    branch = counters.get("branch", _Counter())
    method = counters.get("method", _Counter())
    return CoverageMetrics.from_counts(
        statements=line.total,
        covered_statements=line.covered,
        conditionals=branch.total,
        covered_conditionals=branch.covered,
        methods=method.total,
        covered_methods=method.covered,
    )


class JacocoParser:
    """Parser for JaCoCo XML format."""

    @property
    def format_id(self) -> str:
        return "jacoco"

    def can_parse(self, content: str, path_hint: str | None = None) -> bool:
        """JaCoCo has a <report> root with <counter type="..."> elements."""
        if path_hint:
            lowered = path_hint.lower()
            if lowered.endswith("jacoco.xml"):
                return True
            if not lowered.endswith(".xml"):
                return False
        return (
            "<report" in content
            and '<counter type="' in content
            and "<coverage" not in content  # Cobertura/Clover
        )

    def parse_content(self, content: str) -> CoverageResult:
        """Parse JaCoCo XML into a CoverageResult."""
        root = parse_xml(content, self.format_id)
        if root.tag != "report":
            raise CoverageParseError.missing_element(self.format_id, "report")

        files: list[FileCoverage] = []
        for package in root.iter("package"):
            package_path = package.get("name", "").replace(".", "/")
            for source in package.findall("sourcefile"):
                files.append(self._parse_sourcefile(source, package_path))

        counters = _parse_counters(root)
        metrics = _metrics_from_counters(counters) if counters else sum_metrics(files)

        session = root.find("sessioninfo")
        timestamp = to_int(session.get("start")) if session is not None else 0
        return CoverageResult(
            format_id=self.format_id, metrics=metrics, files=files, timestamp=timestamp
        )

    def _parse_sourcefile(self, source: ET.Element, package_path: str) -> FileCoverage:
        name = source.get("name", "")
        path = f"{package_path}/{name}" if package_path else name

        lines: list[LineCoverage] = []
        partial: list[int] = []
        for line in source.findall("line"):
            number = to_int(line.get("nr"))
            if number <= 0:
                continue
            covered_instructions = to_int(line.get("ci"))
            missed_branches = to_int(line.get("mb"))
            covered_branches = to_int(line.get("cb"))
            has_branches = missed_branches > 0 or covered_branches > 0
            lines.append(
                LineCoverage(
                    line_number=number,
                    count=covered_instructions,
                    kind=LineKind.CONDITIONAL if has_branches else LineKind.STATEMENT,
                    true_count=covered_branches if has_branches else None,
                    false_count=missed_branches if has_branches else None,
                )
            )
            if covered_branches > 0 and missed_branches > 0:
                partial.append(number)
        lines.sort(key=lambda ln: ln.line_number)

        counters = _parse_counters(source)
        totals = _metrics_from_counters(counters) if counters else _derive_counts(lines)
        return FileCoverage(
            path=path,
            name=name,
            statements=totals.statements,
            covered_statements=totals.covered_statements,
            conditionals=totals.conditionals,
            covered_conditionals=totals.covered_conditionals,
            methods=totals.methods,
            covered_methods=totals.covered_methods,
            lines=lines,
            missing_lines=missing_lines(lines),
            partial_lines=sorted(partial),
        )


def _derive_counts(lines: list[LineCoverage]) -> CoverageMetrics:
    return CoverageMetrics.from_counts(
        statements=len(lines),
        covered_statements=sum(1 for ln in lines if ln.count > 0),
        conditionals=sum((ln.true_count or 0) + (ln.false_count or 0) for ln in lines),
        covered_conditionals=sum(ln.true_count or 0 for ln in lines),
    )
