"""Structured logging for coverage runs.

Every event of one CI job carries the same ``run_id``. On GitHub Actions or
GitLab CI the id is taken from the runner so log lines can be matched to the
workflow run; elsewhere a random id is generated.

The ``logging`` section of the repository config picks renderers and
destinations. The CLI flags ``-v`` and ``--json-logs`` are layered on top of
it with ``apply_cli_flags``.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from covgate.config.models import LoggingConfig

_run_id: ContextVar[str | None] = ContextVar("run_id", default=None)


def ci_run_id(environ: Mapping[str, str] | None = None) -> str | None:
    """Identifier of the surrounding CI run, if any."""
    env: Mapping[str, str] = os.environ if environ is None else environ
    if github := env.get("GITHUB_RUN_ID"):
        attempt = env.get("GITHUB_RUN_ATTEMPT")
        return f"{github}-{attempt}" if attempt else github
    return env.get("CI_PIPELINE_ID") or None


def get_run_id() -> str | None:
    return _run_id.get()


def set_run_id(run_id: str | None = None) -> str:
    """Set the run id: explicit value, then the CI run, then a random hex id."""
    rid = run_id or ci_run_id() or uuid4().hex[:12]
    _run_id.set(rid)
    return rid


def clear_run_id() -> None:
    _run_id.set(None)


def _add_run_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if rid := get_run_id():
        event_dict["run_id"] = rid
    return event_dict


_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def apply_cli_flags(
    config: LoggingConfig, *, verbose: bool = False, json_format: bool = False
) -> LoggingConfig:
    """Layer ``-v`` and ``--json-logs`` over a configured logging section.

    ``verbose`` lowers the root level to DEBUG. ``json_format`` switches the
    stderr outputs to JSON; file outputs keep their configured renderer.
    """
    update: dict[str, Any] = {}
    if verbose:
        update["level"] = "DEBUG"
    if json_format:
        update["outputs"] = [
            output.model_copy(update={"format": "json"})
            if output.destination == "stderr"
            else output
            for output in config.outputs
        ]
    return config.model_copy(update=update) if update else config


def _formatter(
    fmt: str, shared: list[structlog.types.Processor], colors: bool
) -> logging.Formatter:
    renderer: structlog.types.Processor
    if fmt == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=colors, pad_event_to=0, pad_level=False)
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared)


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Route structlog events through stdlib handlers.

    Args:
        config: Logging section with one or more outputs. When omitted a
            single stderr output is built from ``json_format`` and ``level``.
        json_format: Render the default output as JSON lines.
        level: Root level for the default output.
    """
    from covgate.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level.upper(),  # type: ignore[arg-type]
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )

    root_level = _LEVELS.get(config.level.upper(), logging.INFO)
    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_run_id,  # type: ignore[list-item]
    ]

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # check reconfigures after loading the repository config
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(root_level)

    for output in config.outputs:
        handler = _create_handler(output.destination)
        handler.setLevel(_LEVELS.get((output.level or config.level).upper(), root_level))
        colors = output.destination == "stderr" and sys.stderr.isatty()
        handler.setFormatter(_formatter(output.format, shared, colors))
        root.addHandler(handler)


def _create_handler(destination: str) -> logging.Handler:
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a")


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
