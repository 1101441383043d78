"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (COVGATE__SECTION__KEY)
3. Repository YAML (Codecov-compatible layout)
4. Built-in defaults (lowest priority)

The repository file is searched in this order and the first hit wins:
.github/coverage.yml, .github/coverage.yaml, .github/codecov.yml,
.github/codecov.yaml, coverage.yml, codecov.yml.
"""

import os
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from covgate.config.models import (
    CommentConfig,
    CovGateConfig,
    LoggingConfig,
    StatusConfig,
)
from covgate.core.errors import ConfigError

log = structlog.get_logger(__name__)

CONFIG_CANDIDATES: tuple[str, ...] = (
    ".github/coverage.yml",
    ".github/coverage.yaml",
    ".github/codecov.yml",
    ".github/codecov.yaml",
    "coverage.yml",
    "codecov.yml",
)

_STATUS_KEYS = ("target", "threshold", "informational")


def find_config_path(repo_root: Path) -> Path | None:
    """Return the first existing config candidate under repo_root."""
    for candidate in CONFIG_CANDIDATES:
        path = repo_root / candidate
        if path.is_file():
            return path
    return None


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level YAML value must be a mapping")
    return data


def _extract_status(raw: Any) -> dict[str, Any]:
    # Codecov nests per-flag settings under a `default` key
    if not isinstance(raw, dict):
        return {}
    source = raw.get("default") if isinstance(raw.get("default"), dict) else raw
    return {key: source[key] for key in _STATUS_KEYS if key in source}


def _normalize_comment(raw: Any) -> dict[str, Any]:
    if isinstance(raw, bool):
        return {"enabled": raw}
    if isinstance(raw, dict):
        comment: dict[str, Any] = {"enabled": raw.get("enabled", True)}
        if "files" in raw:
            comment["files"] = raw["files"]
        return comment
    if raw is not None:
        log.warning("invalid_comment_config", value=raw, fallback=False)
    return {"enabled": False}


def normalize_raw_config(raw: dict[str, Any]) -> dict[str, Any]:
    """Map a Codecov-style YAML document onto the CovGateConfig field layout.

    Unknown keys are dropped. Sections absent from the document are left out
    so lower-precedence defaults apply.
    """
    coverage = raw.get("coverage")
    if not isinstance(coverage, dict):
        coverage = {}
    status = coverage.get("status")
    if not isinstance(status, dict):
        status = {}

    normalized: dict[str, Any] = {}
    status_config = {
        key: _extract_status(status[key]) for key in ("project", "patch") if key in status
    }
    if status_config:
        normalized["status"] = status_config

    ignore = coverage.get("ignore", raw.get("ignore"))
    if isinstance(ignore, str):
        normalized["ignore"] = [ignore]
    elif isinstance(ignore, list):
        normalized["ignore"] = [str(pattern) for pattern in ignore]

    if "comment" in raw:
        normalized["comment"] = _normalize_comment(raw["comment"])

    for key in ("logging", "fail_fast"):
        if key in raw:
            normalized[key] = raw[key]
    return normalized


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class with instance-based YAML source (thread-safe)."""

    class CovGateSettings(BaseSettings):
        """Root config. Env vars: COVGATE__LOGGING__LEVEL, COVGATE__STATUS__PATCH__TARGET, etc."""

        model_config = SettingsConfigDict(
            env_prefix="COVGATE__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        status: StatusConfig = StatusConfig()
        ignore: list[str] = []
        comment: CommentConfig = CommentConfig()
        fail_fast: bool = False

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml file
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return CovGateSettings


def load_config(
    repo_root: Path | None = None,
    *,
    config_path: Path | None = None,
    **kwargs: Any,
) -> CovGateConfig:
    """Load config: defaults < repository YAML < env vars < kwargs.

    Args:
        repo_root: Repository root searched for a config file. Defaults to
                   $GITHUB_WORKSPACE, then the current working directory.
        config_path: Explicit config file; must exist.
        **kwargs: Override values (highest precedence).

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On a missing explicit file, invalid YAML syntax or
                     validation errors.
    """
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigError.file_not_found(str(config_path))
        path: Path | None = config_path
    else:
        repo_root = repo_root or Path(os.environ.get("GITHUB_WORKSPACE") or Path.cwd())
        path = find_config_path(repo_root)

    yaml_config = normalize_raw_config(_load_yaml(path)) if path else {}
    log.debug("config_source", path=str(path) if path else None)

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return CovGateConfig.model_validate(settings.model_dump())
