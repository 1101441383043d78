"""covgate patch command - coverage of the lines a diff adds."""

from pathlib import Path

import click

from covgate.cli.utils import FORMAT_CHOICES, echo_json, read_inputs, read_text
from covgate.core.errors import CovGateError
from covgate.coverage.aggregate import aggregate_results
from covgate.coverage.parsers import build_registry
from covgate.coverage.patch import analyze_patch_coverage
from covgate.pipeline import parse_inputs


@click.command()
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--diff",
    "diff_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Unified diff of the change (e.g. git diff origin/main...HEAD)",
)
@click.option(
    "--format",
    "format_id",
    type=click.Choice(FORMAT_CHOICES),
    default="auto",
    show_default=True,
    help="Coverage format of every FILE",
)
def patch_command(files: tuple[Path, ...], diff_path: Path, format_id: str) -> None:
    """Print patch coverage of DIFF against coverage FILES as JSON."""
    inputs = read_inputs(files)
    try:
        results, _ = parse_inputs(
            inputs, registry=build_registry(), format_id=format_id, fail_fast=True
        )
    except CovGateError as e:
        raise click.ClickException(str(e)) from e

    patch = analyze_patch_coverage(read_text(diff_path, "diff"), aggregate_results(results))
    echo_json(patch.to_dict())
