"""Main CLI application entry point.

Defines the Typer application, its options, and the single top-level
error handler that maps failures to exit codes.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer

from sshsetup import __version__
from sshsetup.cli.display import print_report
from sshsetup.core.config import ConfigError, load_config
from sshsetup.core.errors import SelectionAbortedError, SetupError
from sshsetup.core.keys import parse_key_input
from sshsetup.core.orchestrator import run_setup
from sshsetup.utils.formatting import configure_logging
from sshsetup.utils.shell import is_interactive

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="ssh-agent-setup",
    help="Run ssh-agent as a systemd user service and auto-load SSH keys.",
    rich_markup_mode="rich",
    add_completion=False,
)


def _usage(ctx: typer.Context) -> None:
    """Print help to stderr and exit with status 1."""
    typer.echo(ctx.get_help(), err=True)
    raise typer.Exit(code=1)


def help_callback(ctx: typer.Context, value: bool) -> None:
    """Print help and exit non-zero."""
    if value:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=1)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"ssh-agent-setup version {__version__}")
        raise typer.Exit()


def _prompt_for_keys(ctx: typer.Context) -> list[str]:
    """Ask for key paths, or exit via usage when no TTY is attached."""
    if not is_interactive():
        _usage(ctx)

    raw = typer.prompt("Enter SSH key path(s) (space-separated)", default="", show_default=False)
    try:
        keys = parse_key_input(raw)
    except ValueError as e:
        logger.error("Could not parse key paths: %s", e)
        raise typer.Exit(code=1) from e

    if not keys:
        _usage(ctx)
    return keys


@app.command(add_help_option=False)
def setup(
    ctx: typer.Context,
    keys: Annotated[
        list[str] | None,
        typer.Argument(
            help="SSH private key files to load at login.",
            show_default=False,
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would change without writing files or starting services.",
        ),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Configuration file (default: ~/.config/ssh-agent-setup/config.toml).",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    help_: Annotated[
        bool | None,
        typer.Option(
            "--help",
            "-h",
            callback=help_callback,
            is_eager=True,
            expose_value=False,
            help="Show this message and exit.",
        ),
    ] = None,
) -> None:
    """Set up ssh-agent and ssh-add as systemd user services.

    Links ssh-agent.service and generates ssh-add.service in
    ~/.config/systemd/user, adds SSH_AUTH_SOCK to the startup files of
    the shells you pick, then enables and starts both services.

    If no keys are given, the keys from the config file are used, or you
    are prompted for them.

    Examples:
        ssh-agent-setup ~/.ssh/id_ed25519
        ssh-agent-setup --dry-run ~/.ssh/id_ed25519 ~/.ssh/work_rsa
        ssh-agent-setup -- -key-starting-with-dash
    """
    configure_logging(verbose=verbose, quiet=quiet)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        logger.error("%s", e)
        raise typer.Exit(code=1) from e

    raw_keys = list(keys or []) or list(config.keys)
    if not raw_keys:
        raw_keys = _prompt_for_keys(ctx)

    try:
        report = run_setup(raw_keys, config, dry_run=dry_run)
    except SelectionAbortedError:
        logger.warning("Shell selection aborted. Exiting.")
        return
    except (SetupError, OSError, RuntimeError) as e:
        logger.error("%s", e)
        raise typer.Exit(code=1) from e

    print_report(report)


if __name__ == "__main__":
    app()
