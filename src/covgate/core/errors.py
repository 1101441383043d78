"""covgate error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Coverage parsing and format detection
- 4xxx: Test results (JUnit XML)
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Coverage (3xxx)
    COVERAGE_MALFORMED = 3001
    COVERAGE_MISSING_ELEMENT = 3002
    COVERAGE_FORMAT_UNDETECTED = 3003
    COVERAGE_FORMAT_UNSUPPORTED = 3004

    # Test results (4xxx)
    TEST_RESULTS_MALFORMED = 4001
    TEST_RESULTS_MISSING_ROOT = 4002


@dataclass(frozen=True, slots=True)
class CovGateError(Exception):
    """Base error with structured context for CLI and JSON output."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(CovGateError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class CoverageParseError(CovGateError):
    """A coverage payload could not be parsed or classified.

    Raised per file. The format that rejected the payload is kept in
    ``details["format"]`` (``None`` when detection itself failed).
    """

    @property
    def format_id(self) -> str | None:
        return self.details.get("format")

    @classmethod
    def malformed(cls, format_id: str, reason: str) -> "CoverageParseError":
        return cls(
            code=ErrorCode.COVERAGE_MALFORMED,
            message=f"Invalid {format_id} coverage: {reason}",
            details={"format": format_id, "reason": reason},
        )

    @classmethod
    def missing_element(cls, format_id: str, element: str) -> "CoverageParseError":
        return cls(
            code=ErrorCode.COVERAGE_MISSING_ELEMENT,
            message=f"Invalid {format_id} coverage: missing {element} element",
            details={"format": format_id, "element": element},
        )

    @classmethod
    def undetected(cls, path_hint: str | None, supported: list[str]) -> "CoverageParseError":
        hint = f" for file: {path_hint}" if path_hint else ""
        return cls(
            code=ErrorCode.COVERAGE_FORMAT_UNDETECTED,
            message=(
                f"Unable to detect coverage format{hint}. "
                f"Supported formats: {', '.join(supported)}"
            ),
            details={"format": None, "path": path_hint, "supported": supported},
        )


class UnsupportedFormatError(CovGateError):
    """Lookup of a format token no parser is registered for."""

    @classmethod
    def unsupported(cls, format_id: str, supported: list[str]) -> "UnsupportedFormatError":
        return cls(
            code=ErrorCode.COVERAGE_FORMAT_UNSUPPORTED,
            message=f"Unsupported coverage format: {format_id!r}. Valid formats: "
            + ", ".join(supported),
            details={"format": format_id, "supported": supported},
        )



class JUnitParseError(CovGateError):
    """A JUnit XML report could not be parsed."""

    @classmethod
    def malformed(cls, reason: str) -> "JUnitParseError":
        return cls(
            code=ErrorCode.TEST_RESULTS_MALFORMED,
            message=f"Invalid JUnit XML: {reason}",
            details={"reason": reason},
        )

    @classmethod
    def missing_root(cls, root: str) -> "JUnitParseError":
        return cls(
            code=ErrorCode.TEST_RESULTS_MISSING_ROOT,
            message=f"Invalid JUnit XML: expected a testsuites or testsuite root, got <{root}>",
            details={"root": root},
        )
