"""Shell execution utilities.

Provides safe subprocess execution with proper error handling.
"""

import shutil
import subprocess
import sys
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0


def run_command(
    args: list[str],
    *,
    check: bool = False,
    timeout: float | None = 60.0,
    cwd: str | None = None,
    input_text: str | None = None,
) -> CommandResult:
    """Execute a shell command and return the result.

    Args:
        args: Command and arguments to execute.
        check: If True, raise CalledProcessError on non-zero exit.
        timeout: Maximum time in seconds to wait for command. None waits forever.
        cwd: Working directory for the command. If None, uses current directory.
        input_text: Text piped to the command's stdin.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.CalledProcessError: If check=True and command fails.
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        check=check,
        timeout=timeout,
        cwd=cwd,
        input=input_text,
    )
    return CommandResult(
        stdout=result.stdout,
        stderr=result.stderr,
        returncode=result.returncode,
    )


def run_filter(args: list[str], input_text: str) -> CommandResult:
    """Pipe text through an interactive filter command.

    Only stdout is captured. stderr stays attached to the terminal so
    full-screen selectors (e.g., fzf) can draw their interface there.
    No timeout is applied.

    Args:
        args: Command and arguments to execute.
        input_text: Candidate lines fed to the command's stdin.

    Returns:
        CommandResult with stdout and returncode; stderr is always empty.

    Raises:
        FileNotFoundError: If command executable is not found.
    """
    result = subprocess.run(
        args,
        input=input_text,
        stdout=subprocess.PIPE,
        text=True,
        check=False,
    )
    return CommandResult(stdout=result.stdout, stderr="", returncode=result.returncode)


def command_exists(name: str) -> bool:
    """Check if a command exists in the system PATH.

    Args:
        name: Command name to check.

    Returns:
        True if command exists, False otherwise.
    """
    return shutil.which(name) is not None


def missing_commands(names: list[str]) -> list[str]:
    """Return the subset of ``names`` that are not on PATH, in input order."""
    return [name for name in names if not command_exists(name)]


def is_interactive() -> bool:
    """Check whether stdin is attached to a terminal."""
    try:
        return sys.stdin.isatty()
    except (AttributeError, ValueError):
        # Closed or replaced stdin
        return False
