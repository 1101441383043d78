"""covgate parse command - parse and aggregate coverage reports."""

from pathlib import Path

import click

from covgate.cli.utils import FORMAT_CHOICES, echo_json, read_inputs
from covgate.core.errors import CovGateError
from covgate.core.progress import pluralize, rate_markup, status
from covgate.coverage.aggregate import aggregate_results
from covgate.coverage.parsers import build_registry
from covgate.coverage.report import build_summary
from covgate.pipeline import parse_inputs


@click.command()
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--format",
    "format_id",
    type=click.Choice(FORMAT_CHOICES),
    default="auto",
    show_default=True,
    help="Coverage format of every FILE",
)
@click.option("--ignore-errors", is_flag=True, help="Skip unparsable files instead of failing")
@click.option("--name", default=None, help="Label stored on the aggregate")
@click.option("--flag", "flags", multiple=True, help="Grouping tag (repeatable)")
@click.option("--max-files", type=int, default=None, help="List at most N files, lowest first")
def parse_command(
    files: tuple[Path, ...],
    format_id: str,
    ignore_errors: bool,
    name: str | None,
    flags: tuple[str, ...],
    max_files: int | None,
) -> None:
    """Parse coverage FILES and print the aggregate summary as JSON."""
    inputs = read_inputs(files)
    try:
        results, failures = parse_inputs(
            inputs,
            registry=build_registry(),
            format_id=format_id,
            fail_fast=not ignore_errors,
        )
    except CovGateError as e:
        raise click.ClickException(str(e)) from e

    for failure in failures:
        status(f"Skipped {failure.path}: {failure.error.message}", style="warning")
    if not results:
        raise click.ClickException("No coverage data could be parsed")

    aggregated = aggregate_results(results, name=name, flags=flags)
    status(
        f"Parsed {pluralize(len(results), 'report')}, "
        f"{pluralize(len(aggregated.files), 'file')}: {rate_markup(aggregated.line_rate)} lines",
        style="success",
    )
    echo_json(build_summary(aggregated, max_files=max_files))
