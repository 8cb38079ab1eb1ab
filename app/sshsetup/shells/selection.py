"""Interactive selection of the shells to wire up.

Selection goes through fzf when it is installed, otherwise through a
numbered prompt. Declining the prompt raises SelectionAbortedError, which
ends the run successfully without changes to RC files.
"""

import logging
import os
import re
from collections.abc import Collection
from pathlib import PurePosixPath

import typer
from rich.markup import escape
from rich.table import Table

from sshsetup.core.errors import SelectionAbortedError
from sshsetup.shells.registry import EXPORT_LINES, ShellDescriptor
from sshsetup.utils.formatting import console, create_table
from sshsetup.utils.shell import command_exists, is_interactive, run_command, run_filter

logger = logging.getLogger(__name__)

PICKER = "fzf"
PICKER_ARGS = [PICKER, "--multi", "--prompt=Select shells: "]

# fzf exit status when the user presses Esc or Ctrl-C
PICKER_CANCELLED = 130

_INDEX_PATTERN = re.compile(r"[0-9]+")


def _clean_shell_name(raw: str) -> str | None:
    # Login shells report themselves as '-bash'
    name = PurePosixPath(raw.strip().lstrip("-")).name
    return name or None


def get_current_shell_name(known: Collection[str] = EXPORT_LINES.keys()) -> str | None:
    """Infer the shell this program was launched from.

    Asks ``ps`` for the parent process name. When that is not a known
    shell (e.g. a wrapper such as ``uv run``), falls back to $SHELL.

    Args:
        known: Shell names the parent process is matched against.

    Returns:
        Shell basename (e.g., 'zsh'), or None if it cannot be determined.
    """
    try:
        result = run_command(["ps", "-p", str(os.getppid()), "-o", "comm="], timeout=10.0)
        if result.success:
            name = _clean_shell_name(result.stdout)
            if name in known:
                return name
            logger.debug("Parent process %s is not a known shell", name)
    except OSError as e:
        logger.debug("ps lookup failed: %s", e)

    shell_env = os.environ.get("SHELL")
    if shell_env:
        return _clean_shell_name(shell_env)
    return None


def create_selection_table(enabled: dict[str, ShellDescriptor]) -> Table:
    """Create the numbered listing of selectable shells.

    Args:
        enabled: Enabled shells keyed by name.

    Returns:
        Rich Table with one row per shell, sorted by name.
    """
    table = create_table("Available shells")
    table.add_column("#", justify="right", width=3)
    table.add_column("Shell", style="shell.name", no_wrap=True)
    table.add_column("RC file", style="path")

    for index, name in enumerate(sorted(enabled), start=1):
        table.add_row(str(index), name, escape(str(enabled[name].rc_path)))

    return table


class ShellSelector:
    """Asks the user which enabled shells to configure.

    Attributes:
        _use_picker: If False, fzf is never used even when installed.
    """

    def __init__(self, *, use_picker: bool = True) -> None:
        """Initialize the selector.

        Args:
            use_picker: Allow fzf when it is available.
        """
        self._use_picker = use_picker

    def select(self, enabled: dict[str, ShellDescriptor]) -> dict[str, ShellDescriptor]:
        """Select shells to configure.

        Args:
            enabled: Enabled shells keyed by name.

        Returns:
            Selected shells keyed by name. May be empty when the picker
            returns nothing or every entered index was invalid.

        Raises:
            SelectionAbortedError: If the user cancels or declines, or no
                interactive input is possible.
        """
        console.print(create_selection_table(enabled))

        if self._use_picker and command_exists(PICKER):
            picked = self._select_with_picker(enabled)
            if picked is not None:
                return picked

        if not is_interactive():
            logger.warning("Non-interactive session detected and %s is not available", PICKER)
            logger.warning("Skipping shell RC update because no interactive input is possible")
            raise SelectionAbortedError("No interactive input available")

        logger.info("Using manual selection prompt")
        return self._select_manually(enabled)

    def _select_with_picker(
        self, enabled: dict[str, ShellDescriptor]
    ) -> dict[str, ShellDescriptor] | None:
        """Run fzf over the shell names.

        Returns:
            Selected shells, or None if fzf failed and the manual prompt
            should be used instead.
        """
        logger.info("%s detected. Launching interactive selector...", PICKER)
        names = sorted(enabled)

        try:
            result = run_filter(PICKER_ARGS, "\n".join(names) + "\n")
        except OSError as e:
            logger.warning("Could not run %s: %s", PICKER, e)
            return None

        if result.returncode == PICKER_CANCELLED:
            raise SelectionAbortedError(f"{PICKER} selection cancelled")
        if result.returncode not in (0, 1):
            logger.warning("%s exited with status %d", PICKER, result.returncode)
            return None

        selected: dict[str, ShellDescriptor] = {}
        for line in result.stdout.splitlines():
            name = line.strip()
            if not name:
                continue
            if name not in enabled:
                logger.warning("Ignoring unknown selection from %s: %s", PICKER, name)
                continue
            selected[name] = enabled[name]

        return selected

    def _select_manually(self, enabled: dict[str, ShellDescriptor]) -> dict[str, ShellDescriptor]:
        names = sorted(enabled)
        raw = typer.prompt(
            "Enter the number(s) of the shells to modify (e.g., 1 3)",
            default="",
            show_default=False,
        )
        tokens = raw.split()

        if not tokens:
            return self._default_selection(enabled)

        selected: dict[str, ShellDescriptor] = {}
        for token in tokens:
            if not _INDEX_PATTERN.fullmatch(token):
                logger.warning("Invalid input (not a number): %s", token)
                continue

            index = int(token)
            if not 1 <= index <= len(names):
                logger.warning("No shell mapped to index: %s", token)
                continue

            name = names[index - 1]
            selected[name] = enabled[name]

        return selected

    def _default_selection(self, enabled: dict[str, ShellDescriptor]) -> dict[str, ShellDescriptor]:
        current = get_current_shell_name()

        if current is not None and current in enabled:
            logger.info("No selection made; defaulting to current shell: %s", current)
            return {current: enabled[current]}

        if typer.confirm("Unable to detect shell. Apply to all available shells?", default=False):
            return dict(enabled)

        logger.info("Skipping shell RC update")
        raise SelectionAbortedError("User declined to select shells")
