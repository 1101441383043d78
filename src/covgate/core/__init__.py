"""Core module exports."""

from covgate.core.errors import (
    ConfigError,
    CoverageParseError,
    CovGateError,
    ErrorCode,
    JUnitParseError,
    UnsupportedFormatError,
)
from covgate.core.logging import (
    apply_cli_flags,
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "CovGateError",
    "ConfigError",
    "CoverageParseError",
    "ErrorCode",
    "JUnitParseError",
    "UnsupportedFormatError",
    # Logging
    "apply_cli_flags",
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
