"""covgate CLI - coverage gate for CI."""

import click

from covgate import __version__
from covgate.cli.check import check_command
from covgate.cli.parse import parse_command
from covgate.cli.patch import patch_command
from covgate.core.logging import configure_logging, set_run_id


@click.group()
@click.version_option(version=__version__, prog_name="covgate")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines on stderr")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, json_logs: bool) -> None:
    """covgate - parse coverage reports, compute patch coverage, enforce targets."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["json_logs"] = json_logs
    configure_logging(json_format=json_logs, level="DEBUG" if verbose else "INFO")
    set_run_id()


cli.add_command(parse_command, name="parse")
cli.add_command(patch_command, name="patch")
cli.add_command(check_command, name="check")


if __name__ == "__main__":
    cli()
