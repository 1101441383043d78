"""Clover XML format parser.

Clover is used by multiple tools:
- JS/TS: istanbul/nyc clover reporter
- PHP: phpunit --coverage-clover
- Java: OpenClover

Structure:
<coverage generated="..." clover="...">
  <project timestamp="...">
    <metrics ...aggregate stats.../>
    <package name="com.example">
      <file name="Foo.php" path="/path/to/Foo.php">
        <metrics statements="..." coveredstatements="..." .../>
        <line num="1" type="stmt" count="1"/>
        <line num="5" type="cond" count="0" truecount="1" falsecount="0"/>
        <line num="10" type="method" name="bar" count="3"/>
      </file>
    </package>
  </project>
</coverage>

Line types:
- stmt: statement line
- cond: conditional (branch)
- method: method declaration
"""

import xml.etree.ElementTree as ET

from covgate.core.errors import CoverageParseError
from covgate.coverage.models import (
    CoverageMetrics,
    CoverageResult,
    FileCoverage,
    LineCoverage,
    LineKind,
)

from .base import missing_lines, parse_xml, sum_metrics, to_int

_LINE_KINDS = {kind.value: kind for kind in LineKind}


class CloverParser:
    """Parser for Clover XML format."""

    @property
    def format_id(self) -> str:
        return "clover"

    def can_parse(self, content: str, path_hint: str | None = None) -> bool:
        """Clover XML has a <coverage> root with a <project> child."""
        if path_hint:
            lowered = path_hint.lower()
            if lowered.endswith("clover.xml"):
                return True
            if not lowered.endswith(".xml"):
                return False
        return "<coverage" in content and "<project" in content and "clover" in content

    def parse_content(self, content: str) -> CoverageResult:
        """Parse Clover XML into a CoverageResult."""
        root = parse_xml(content, self.format_id)
        if root.tag != "coverage":
            raise CoverageParseError.missing_element(self.format_id, "coverage")

        project = root.find("project")
        if project is None:
            raise CoverageParseError.missing_element(self.format_id, "project")

        files = [self._parse_file(elem) for elem in project.iter("file")]

        if any(f.lines for f in files):
            metrics = sum_metrics(files)
        else:
            metrics = self._parse_metrics(project.find("metrics"))

        return CoverageResult(
            format_id=self.format_id,
            metrics=metrics,
            files=files,
            timestamp=to_int(root.get("generated")),
        )

    def _parse_metrics(self, elem: ET.Element | None) -> CoverageMetrics:
        if elem is None:
            return CoverageMetrics()
        return CoverageMetrics.from_counts(
            statements=to_int(elem.get("statements")),
            covered_statements=to_int(elem.get("coveredstatements")),
            conditionals=to_int(elem.get("conditionals")),
            covered_conditionals=to_int(elem.get("coveredconditionals")),
            methods=to_int(elem.get("methods")),
            covered_methods=to_int(elem.get("coveredmethods")),
        )

    def _parse_file(self, file_elem: ET.Element) -> FileCoverage:
        lines: list[LineCoverage] = []
        partial: list[int] = []

        for line in file_elem.findall("line"):
            num = to_int(line.get("num"))
            if num <= 0:
                continue
            kind = _LINE_KINDS.get(line.get("type", "stmt"), LineKind.STATEMENT)
            true_count = line.get("truecount")
            false_count = line.get("falsecount")
            entry = LineCoverage(
                line_number=num,
                count=to_int(line.get("count")),
                kind=kind,
                true_count=to_int(true_count) if true_count is not None else None,
                false_count=to_int(false_count) if false_count is not None else None,
            )
            lines.append(entry)
            if kind is LineKind.CONDITIONAL and _is_partial(entry):
                partial.append(num)

        lines.sort(key=lambda ln: ln.line_number)
        path = file_elem.get("path") or file_elem.get("name", "")
        metrics_elem = file_elem.find("metrics")
        if metrics_elem is not None:
            counts = self._parse_metrics(metrics_elem)
        else:
            counts = _derive_counts(lines)

        return FileCoverage(
            path=path,
            name=file_elem.get("name", ""),
            statements=counts.statements,
            covered_statements=counts.covered_statements,
            conditionals=counts.conditionals,
            covered_conditionals=counts.covered_conditionals,
            methods=counts.methods,
            covered_methods=counts.covered_methods,
            lines=lines,
            missing_lines=missing_lines(lines),
            partial_lines=sorted(set(partial)),
        )


def _is_partial(line: LineCoverage) -> bool:
    # exactly one side of the condition was taken
    return ((line.true_count or 0) > 0) != ((line.false_count or 0) > 0)


def _derive_counts(lines: list[LineCoverage]) -> CoverageMetrics:
    """Counters for a <file> without a <metrics> child."""
    statements = covered_statements = 0
    conditionals = covered_conditionals = 0
    methods = covered_methods = 0
    for line in lines:
        if line.kind is LineKind.METHOD:
            methods += 1
            covered_methods += line.count > 0
        elif line.kind is LineKind.CONDITIONAL:
            conditionals += 2
            covered_conditionals += ((line.true_count or 0) > 0) + ((line.false_count or 0) > 0)
        else:
            statements += 1
            covered_statements += line.count > 0
    return CoverageMetrics.from_counts(
        statements=statements,
        covered_statements=covered_statements,
        conditionals=conditionals,
        covered_conditionals=covered_conditionals,
        methods=methods,
        covered_methods=covered_methods,
    )
