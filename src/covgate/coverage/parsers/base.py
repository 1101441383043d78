"""Coverage parser protocol and helpers shared by the format parsers."""

import xml.etree.ElementTree as ET
from collections.abc import Iterable
from typing import Any, Protocol

from covgate.core.errors import CoverageParseError
from covgate.coverage.models import (
    CoverageMetrics,
    CoverageResult,
    FileCoverage,
    LineCoverage,
    calculate_rate,
)

__all__ = [
    "CoverageParser",
    "basename",
    "calculate_rate",
    "file_extension",
    "missing_lines",
    "parse_xml",
    "sum_metrics",
    "to_int",
]


class CoverageParser(Protocol):
    """Protocol for coverage format parsers.

    Each parser handles one coverage format and converts a raw payload to the
    canonical CoverageResult model. Parsers hold no state between calls.
    """

    @property
    def format_id(self) -> str:
        """Format identifier (e.g., 'lcov', 'cobertura')."""
        ...

    def can_parse(self, content: str, path_hint: str | None = None) -> bool:
        """Check if this parser can handle the given content.

        Cheap structural sniff; the optional path hint can claim or reject
        the content by filename. Never raises.
        """
        ...

    def parse_content(self, content: str) -> CoverageResult:
        """Parse raw content into the canonical model.

        Raises:
            CoverageParseError: If the payload is malformed or a required
                element is missing.
        """
        ...


def file_extension(path: str) -> str:
    """Lowercased extension without the dot ('' when there is none)."""
    name = basename(path)
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def basename(path: str) -> str:
    """Last path component, accepting both separators."""
    return path.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]


def to_int(value: Any, default: int = 0) -> int:
    """Lenient integer conversion for attribute values ("12", "1.0", None)."""
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return default


def parse_xml(content: str, format_id: str) -> ET.Element:
    """Parse XML text and strip namespaces from every tag."""
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise CoverageParseError.malformed(format_id, str(e)) from e

    for elem in root.iter():
        if isinstance(elem.tag, str) and "}" in elem.tag:
            elem.tag = elem.tag.split("}", 1)[1]
    return root


def missing_lines(lines: Iterable[LineCoverage]) -> list[int]:
    """Sorted line numbers of executable lines with zero hits."""
    return sorted({line.line_number for line in lines if line.count <= 0})


def sum_metrics(files: Iterable[FileCoverage]) -> CoverageMetrics:
    """Report-level metrics summed from per-file counters."""
    statements = covered_statements = 0
    conditionals = covered_conditionals = 0
    methods = covered_methods = 0
    for f in files:
        statements += f.statements
        covered_statements += f.covered_statements
        conditionals += f.conditionals
        covered_conditionals += f.covered_conditionals
        methods += f.methods
        covered_methods += f.covered_methods
    return CoverageMetrics.from_counts(
        statements=statements,
        covered_statements=covered_statements,
        conditionals=conditionals,
        covered_conditionals=covered_conditionals,
        methods=methods,
        covered_methods=covered_methods,
    )
