"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich, and the
logging handler that renders log records on the stderr console.
"""

import logging
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from sshsetup.core.theme import get_theme


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def configure_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Route log records through Rich on stderr.

    Records carry a timestamp and level column; the logger name stands in
    for the calling module.

    Args:
        verbose: Emit DEBUG records.
        quiet: Emit only WARNING and above. Ignored when verbose is set.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=err_console,
        show_time=True,
        show_level=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        log_time_format="[%Y-%m-%dT%H:%M:%S]",
    )
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        handlers=[handler],
        force=True,
    )


def create_table(title: str) -> Table:
    """Create a table with the shared header and border styles.

    Args:
        title: Table title.

    Returns:
        Rich Table with no columns yet.
    """
    return Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
