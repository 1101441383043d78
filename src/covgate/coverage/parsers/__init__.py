"""Coverage parser registry and auto-detection.

This module provides:
- ParserRegistry: an immutable, ordered set of parsers with detection
- build_registry: the default registry (all seven formats)
- detect_format_from_path: filename/extension lookup used as a fallback
- parse_artifact: read a file and parse it with auto-detection
"""

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import structlog

from covgate.core.errors import CoverageParseError, UnsupportedFormatError
from covgate.coverage.models import CoverageResult

from .base import CoverageParser
from .clover import CloverParser
from .cobertura import CoberturaParser
from .codecov import CodecovParser
from .gocov import GocovParser
from .istanbul import IstanbulParser
from .jacoco import JacocoParser
from .lcov import LcovParser

log = structlog.get_logger(__name__)

AUTO = "auto"

__all__ = [
    "AUTO",
    "ParserRegistry",
    "build_registry",
    "detect_format_from_path",
    "parse_artifact",
    "CoverageParser",
    "CloverParser",
    "CoberturaParser",
    "CodecovParser",
    "GocovParser",
    "IstanbulParser",
    "JacocoParser",
    "LcovParser",
]


def detect_format_from_path(path_hint: str) -> str | None:
    """Map a well-known coverage filename to its format id."""
    lowered = path_hint.lower()
    if lowered.endswith("clover.xml"):
        return "clover"
    if "cobertura" in lowered:
        return "cobertura"
    if "jacoco" in lowered:
        return "jacoco"
    if lowered.endswith("lcov.info") or lowered.endswith(".lcov"):
        return "lcov"
    if lowered.endswith("coverage-final.json") or "istanbul" in lowered:
        return "istanbul"
    if lowered.endswith("codecov.json"):
        return "codecov"
    if lowered.endswith(".out") or lowered.endswith(".coverprofile"):
        return "go"
    return None


@dataclass(frozen=True, slots=True)
class ParserRegistry:
    """Ordered parsers; detection tries them in order, first match wins."""

    parsers: tuple[CoverageParser, ...]

    @property
    def formats(self) -> list[str]:
        """Supported format ids in detection order."""
        return [p.format_id for p in self.parsers]

    def get_parser(self, format_id: str) -> CoverageParser:
        """Direct lookup by format id.

        Raises:
            UnsupportedFormatError: If no parser handles format_id.
        """
        for parser in self.parsers:
            if parser.format_id == format_id:
                return parser
        raise UnsupportedFormatError.unsupported(format_id, self.formats)

    def detect_parser(self, content: str, path_hint: str | None = None) -> CoverageParser | None:
        """Auto-detect the parser for a payload.

        Detection strategy:
        1. Try each parser's content sniff in registry order
        2. Fall back to the filename lookup when a path hint is given
        Returns None when nothing matches.
        """
        for parser in self.parsers:
            if parser.can_parse(content, path_hint):
                return parser

        if path_hint:
            format_id = detect_format_from_path(path_hint)
            if format_id is not None and format_id in self.formats:
                return self.get_parser(format_id)
        return None

    def parse_content(
        self,
        content: str,
        path_hint: str | None = None,
        format_id: str = AUTO,
    ) -> CoverageResult:
        """Parse with an explicit format id, or auto-detect.

        Raises:
            CoverageParseError: If detection fails or the payload is malformed.
            UnsupportedFormatError: If an explicit format_id is unknown.
        """
        if format_id and format_id != AUTO:
            parser = self.get_parser(format_id)
        else:
            detected = self.detect_parser(content, path_hint)
            if detected is None:
                raise CoverageParseError.undetected(path_hint, self.formats)
            parser = detected

        log.debug("coverage_parse", format=parser.format_id, path=path_hint)
        return parser.parse_content(content)


def build_registry(parsers: Sequence[CoverageParser] | None = None) -> ParserRegistry:
    """Registry with the given parsers, or all formats in default order.

    The default order puts the most specific content signatures first.
    """
    if parsers is None:
        parsers = (
            CloverParser(),  # <coverage> + <project>
            CoberturaParser(),  # <coverage line-rate> + <packages>
            JacocoParser(),  # <report> + <counter>
            LcovParser(),  # SF:/DA:/end_of_record
            IstanbulParser(),  # statementMap/fnMap/branchMap
            GocovParser(),  # mode: line or block grammar
            CodecovParser(),  # {"coverage": {path: {line: value}}}
        )
    return ParserRegistry(parsers=tuple(parsers))


def parse_artifact(
    path: Path,
    *,
    format_id: str | None = None,
    registry: ParserRegistry | None = None,
) -> CoverageResult:
    """Read a coverage file and parse it.

    Args:
        path: Coverage file.
        format_id: Force a format (skip auto-detection).
        registry: Parser registry; the default registry when None.

    Raises:
        CoverageParseError: If the format is unknown or parsing fails.
        OSError: If the file cannot be read.
    """
    registry = registry or build_registry()
    content = path.read_text(encoding="utf-8", errors="replace")
    return registry.parse_content(content, path_hint=str(path), format_id=format_id or AUTO)
