"""User-facing CLI feedback on stderr.

stdout stays reserved for machine-readable output (JSON) so that
``covgate check --json ... > out.json`` works; everything human goes through
the shared Rich console here.

Usage::

    from covgate.core.progress import status, rate_markup

    status("Parsed 3 coverage files", style="success")  # ✓ Parsed 3 ...
    status(f"Lines: {rate_markup(71.5)}")                # yellow 71.50%
"""

from __future__ import annotations

from rich.console import Console

_console = Console(stderr=True)

_STYLES = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}

# Lower bounds of the colour bands, highest first
_RATE_BANDS: tuple[tuple[float, str], ...] = ((80.0, "green"), (60.0, "yellow"), (0.0, "red"))


def get_console() -> Console:
    return _console


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """Print a styled status line to stderr and mirror it as a DEBUG event."""
    from covgate.core.logging import get_logger

    _console.print(f"{' ' * indent}{_STYLES.get(style, '')}{message}", highlight=False)
    get_logger("progress").debug("status", message=message, style=style)


def rate_markup(rate: float | None) -> str:
    """Rich markup for a coverage percentage; ``None`` renders as N/A."""
    if rate is None:
        return "[dim]N/A[/dim]"
    colour = next(c for floor, c in _RATE_BANDS if rate >= floor or floor == 0.0)
    return f"[{colour}]{rate:.2f}%[/{colour}]"


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return "1 file" / "3 files"."""
    word = singular if count == 1 else (plural or singular + "s")
    return f"{count} {word}"
