"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Inline overrides passed to load_config() (CLI flags)
2. Environment variables (COVGATE__SECTION__KEY)
3. Repo YAML (.github/coverage.yml, codecov.yml, ...)
4. Built-in defaults (this file)

Environment Variable Format:
    COVGATE__<SECTION>__<KEY>=<VALUE>

Examples:
    COVGATE__LOGGING__LEVEL=DEBUG
    COVGATE__STATUS__PROJECT__TARGET=auto
    COVGATE__STATUS__PROJECT__THRESHOLD=2%
    COVGATE__FAIL_FAST=true

Malformed threshold/target/comment values never fail validation: they fall
back to a safe default and a warning is logged so the caller can surface it.
"""

import re
from pathlib import Path
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field, field_validator

log = structlog.get_logger(__name__)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
CommentFiles = Literal["all", "changed", "none"]

DEFAULT_PATCH_TARGET = 80.0

_PERCENTAGE_RE = re.compile(r"^(\d+(?:\.\d+)?)%?$")


def parse_percentage(value: Any) -> float | None:
    """Parse ``10``, ``10.5``, ``"10"`` or ``"10%"`` into a float.

    Returns None for anything else (including booleans).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        match = _PERCENTAGE_RE.match(value.strip())
        if match:
            return float(match.group(1))
    return None


def _parse_threshold(field_name: str, value: Any) -> float | None:
    if value is None:
        return None
    parsed = parse_percentage(value)
    if parsed is None:
        log.warning("invalid_threshold", field=field_name, value=value, fallback=None)
    return parsed


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        COVGATE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every parsed file and skipped diff entry.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ProjectStatusConfig(BaseModel):
    """Project-wide coverage status check.

    Env vars:
        COVGATE__STATUS__PROJECT__TARGET: Percentage or "auto"
        COVGATE__STATUS__PROJECT__THRESHOLD: Allowed drop vs base ("1" or "1%")
        COVGATE__STATUS__PROJECT__INFORMATIONAL: Report only, never block
    """

    target: float | Literal["auto"] = Field(
        default="auto",
        description='Absolute line-rate target, or "auto" to compare against the base report.',
    )
    threshold: float | None = Field(
        default=None,
        description='Allowed drop in percentage points when target is "auto".',
    )
    informational: bool = Field(
        default=False,
        description="When true a failing check is reported but does not break the build.",
    )

    @field_validator("target", mode="before")
    @classmethod
    def parse_target(cls, v: Any) -> Any:
        if v is None:
            return "auto"
        if isinstance(v, str) and v.strip().lower() == "auto":
            return "auto"
        parsed = parse_percentage(v)
        if parsed is None:
            log.warning("invalid_target", field="status.project.target", value=v, fallback="auto")
            return "auto"
        return parsed

    @field_validator("threshold", mode="before")
    @classmethod
    def parse_threshold(cls, v: Any) -> float | None:
        return _parse_threshold("status.project.threshold", v)


class PatchStatusConfig(BaseModel):
    """Changed-lines coverage status check.

    Env vars:
        COVGATE__STATUS__PATCH__TARGET: Percentage
        COVGATE__STATUS__PATCH__THRESHOLD: Allowed drop ("1" or "1%")
        COVGATE__STATUS__PATCH__INFORMATIONAL: Report only, never block
    """

    target: float = Field(
        default=DEFAULT_PATCH_TARGET,
        description="Patch coverage target. Anything that is not a percentage resolves to 80.",
    )
    threshold: float | None = None
    informational: bool = False

    @field_validator("target", mode="before")
    @classmethod
    def parse_target(cls, v: Any) -> float:
        parsed = parse_percentage(v)
        if parsed is None:
            if v is not None and v != "auto":
                log.warning(
                    "invalid_target",
                    field="status.patch.target",
                    value=v,
                    fallback=DEFAULT_PATCH_TARGET,
                )
            return DEFAULT_PATCH_TARGET
        return parsed

    @field_validator("threshold", mode="before")
    @classmethod
    def parse_threshold(cls, v: Any) -> float | None:
        return _parse_threshold("status.patch.threshold", v)


class StatusConfig(BaseModel):
    """Both status checks."""

    project: ProjectStatusConfig = Field(default_factory=ProjectStatusConfig)
    patch: PatchStatusConfig = Field(default_factory=PatchStatusConfig)


class CommentConfig(BaseModel):
    """PR comment settings consumed by the reporting layer.

    Env vars:
        COVGATE__COMMENT__ENABLED: Post a PR comment
        COVGATE__COMMENT__FILES: Which files the comment lists (all, changed, none)
    """

    enabled: bool = False
    files: CommentFiles = "all"

    @field_validator("files", mode="before")
    @classmethod
    def parse_files(cls, v: Any) -> str:
        if isinstance(v, str) and v.strip().lower() in ("all", "changed", "none"):
            return v.strip().lower()
        if v is not None:
            log.warning("invalid_comment_files", value=v, fallback="all")
        return "all"


class CovGateConfig(BaseModel):
    """Root configuration for covgate.

    All settings can be configured via:
    1. Inline overrides (CLI flags)
    2. Environment variables: COVGATE__SECTION__KEY
    3. A Codecov-style YAML file in the repository
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    status: StatusConfig = Field(default_factory=StatusConfig)
    ignore: list[str] = Field(
        default_factory=list,
        description="Glob patterns of source paths excluded from the aggregate.",
    )
    comment: CommentConfig = Field(default_factory=CommentConfig)
    fail_fast: bool = Field(
        default=False,
        description="Abort the run on the first unparsable coverage file instead of skipping it.",
    )
