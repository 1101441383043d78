"""covgate check command - run the coverage gate."""

import json
from pathlib import Path
from typing import Any

import click
from rich.markup import escape
from rich.table import Table

from covgate.cli.utils import FORMAT_CHOICES, echo_json, read_inputs, read_json, read_text
from covgate.config.loader import load_config
from covgate.core.errors import CovGateError
from covgate.core.logging import apply_cli_flags, configure_logging
from covgate.core.progress import get_console, pluralize, rate_markup, status
from covgate.coverage.report import build_text_summary, uncovered_patch_lines
from covgate.coverage.thresholds import StatusCheckResult, blocking_failures
from covgate.pipeline import RunOutcome, run_pipeline
from covgate.testresults import AggregatedTestResults

_STATUS_STYLE = {"success": "[green]✓ success[/green]", "failure": "[red]✗ failure[/red]"}


def _status_table(outcome: RunOutcome) -> Table:
    table = Table(title="Coverage status", show_lines=False)
    table.add_column("check", style="cyan")
    table.add_column("status")
    table.add_column("description")
    rows: list[tuple[str, StatusCheckResult | None]] = [
        ("project", outcome.project_status),
        ("patch", outcome.patch_status),
    ]
    for label, result in rows:
        if result is None:
            continue
        cell = _STATUS_STYLE[result.status]
        if result.informational and not result.passed:
            cell += " [dim](informational)[/dim]"
        table.add_row(label, cell, result.description)
    return table


def _report_tests(tests: AggregatedTestResults, output_path: Path | None) -> None:
    status(
        f"Tests: {tests.passed_tests} passed, {tests.failed_tests} failed, "
        f"{tests.skipped_tests} skipped of {pluralize(tests.total_tests, 'test')} "
        f"({rate_markup(tests.pass_rate)})",
        style="info",
    )
    for case in tests.failed_cases:
        status(f"Failed: {escape(case.label)}", style="error", indent=2)
    if tests.comparison is not None:
        for case in tests.comparison.tests_broken:
            status(f"Broken since base: {escape(case.label)}", style="warning", indent=2)
        for case in tests.comparison.tests_fixed:
            status(f"Fixed since base: {escape(case.label)}", style="success", indent=2)
    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(tests.to_dict(), indent=2) + "\n")
        status(f"Wrote {output_path}", style="info")


def _overrides(
    fail_fast: bool | None,
    project_target: str | None,
    patch_target: str | None,
) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if fail_fast is not None:
        overrides["fail_fast"] = fail_fast
    status_overrides: dict[str, Any] = {}
    if project_target is not None:
        status_overrides["project"] = {"target": project_target}
    if patch_target is not None:
        status_overrides["patch"] = {"target": patch_target}
    if status_overrides:
        overrides["status"] = status_overrides
    return overrides


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
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Unified diff of the change; enables the patch check",
)
@click.option(
    "--base",
    "base_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Aggregate JSON of the base branch (from a previous --output)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: search .github/coverage.yml, codecov.yml, ...)",
)
@click.option(
    "--format",
    "format_id",
    type=click.Choice(FORMAT_CHOICES),
    default="auto",
    show_default=True,
    help="Coverage format of every FILE",
)
@click.option(
    "--fail-fast/--skip-invalid",
    default=None,
    help="Abort on the first unparsable file, or skip it (default from config)",
)
@click.option("--project-target", default=None, help='Project target, e.g. "80", "80%" or "auto"')
@click.option("--patch-target", default=None, help='Patch target, e.g. "90" or "90%"')
@click.option("--name", default=None, help="Label stored on the aggregate")
@click.option("--flag", "flags", multiple=True, help="Grouping tag (repeatable)")
@click.option(
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the aggregate JSON here (usable as --base later)",
)
@click.option(
    "--junit",
    "junit_files",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JUnit XML test report (repeatable); reported, never gating",
)
@click.option(
    "--base-tests",
    "base_tests_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Test results JSON of the base branch (from a previous --tests-output)",
)
@click.option(
    "--tests-output",
    "tests_output_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the test results JSON here (usable as --base-tests later)",
)
@click.option("--json", "as_json", is_flag=True, help="Print the full outcome as JSON")
@click.pass_context
def check_command(
    ctx: click.Context,
    files: tuple[Path, ...],
    diff_path: Path | None,
    base_path: Path | None,
    config_path: Path | None,
    format_id: str,
    fail_fast: bool | None,
    project_target: str | None,
    patch_target: str | None,
    name: str | None,
    flags: tuple[str, ...],
    output_path: Path | None,
    junit_files: tuple[Path, ...],
    base_tests_path: Path | None,
    tests_output_path: Path | None,
    as_json: bool,
) -> None:
    """Evaluate coverage FILES against the configured targets.

    Exits 1 when a check that is not informational fails. JUnit results
    given with --junit are summarized but do not affect the exit code.
    """
    try:
        config = load_config(
            config_path=config_path,
            **_overrides(fail_fast, project_target, patch_target),
        )
    except CovGateError as e:
        raise click.ClickException(str(e)) from e
    cli_flags = ctx.obj or {}
    configure_logging(
        config=apply_cli_flags(
            config.logging,
            verbose=cli_flags.get("verbose", False),
            json_format=cli_flags.get("json_logs", False),
        )
    )

    inputs = read_inputs(files)
    diff = read_text(diff_path, "diff") if diff_path else None
    base = read_json(base_path, "base report") if base_path else None
    test_inputs = read_inputs(junit_files, "JUnit report")
    base_tests = read_json(base_tests_path, "base test results") if base_tests_path else None

    try:
        outcome = run_pipeline(
            inputs,
            config=config,
            diff=diff,
            base=base,
            format_id=format_id,
            name=name,
            flags=flags,
            test_inputs=test_inputs,
            base_tests=base_tests,
        )
    except CovGateError as e:
        raise click.ClickException(str(e)) from e

    for failure in outcome.skipped:
        status(f"Skipped {failure.path}: {failure.error.message}", style="warning")
    if outcome.tests is not None:
        _report_tests(outcome.tests, tests_output_path)
    if outcome.results is None:
        raise click.ClickException("No coverage data could be parsed")

    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(outcome.results.to_dict(), indent=2) + "\n")
        status(f"Wrote {output_path}", style="info")

    if as_json:
        echo_json(outcome.to_dict())

    console = get_console()
    console.print(build_text_summary(outcome.results), highlight=False)
    console.print(_status_table(outcome))
    if outcome.patch is not None:
        for entry in uncovered_patch_lines(outcome.patch):
            status(f"Uncovered patch lines in {entry}", style="warning")

    failures = blocking_failures(outcome.checks)
    if failures:
        status(f"{len(failures)} blocking check(s) failed", style="error")
        ctx.exit(1)
    status("Coverage gate passed", style="success")
