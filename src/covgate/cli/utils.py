"""CLI utilities."""

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import click

from covgate.coverage.parsers import AUTO, build_registry
from covgate.pipeline import CoverageInput

FORMAT_CHOICES = [AUTO, *build_registry().formats]


def read_text(path: Path, what: str) -> str:
    """Read a UTF-8 file or fail with a ClickException naming it."""
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise click.ClickException(f"Cannot read {what} {path}: {e.strerror or e}") from e


def read_inputs(paths: Sequence[Path], what: str = "coverage file") -> list[CoverageInput]:
    """Inputs for the given files, in argument order."""
    return [CoverageInput(path=str(path), content=read_text(path, what)) for path in paths]


def read_json(path: Path, what: str) -> dict[str, Any]:
    """Load a JSON object from a file."""
    text = read_text(path, what)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON in {what} {path}: {e}") from e
    if not isinstance(data, dict):
        raise click.ClickException(f"Invalid {what} {path}: expected a JSON object")
    return data


def echo_json(data: Any) -> None:
    """Write JSON to stdout."""
    click.echo(json.dumps(data, indent=2))
