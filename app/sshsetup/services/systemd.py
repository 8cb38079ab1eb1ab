"""systemd user-scope service activation."""

import logging

from sshsetup.core.errors import ActivationError
from sshsetup.utils.shell import CommandResult, run_command

logger = logging.getLogger(__name__)

SYSTEMCTL = ["systemctl", "--user"]


class SystemdActivator:
    """Reloads the user manager and enables the agent units.

    Both steps must succeed: an agent without loaded keys, or a loader
    without an agent, is reported as a failure.

    Attributes:
        _dry_run: If True, log the commands without running them.
    """

    def __init__(self, *, dry_run: bool = False) -> None:
        """Initialize the activator.

        Args:
            dry_run: If True, report what would be done without doing it.
        """
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        """Check if activator is in dry-run mode."""
        return self._dry_run

    def _run(self, args: list[str], failure: str) -> None:
        command = [*SYSTEMCTL, *args]

        if self._dry_run:
            logger.info("Dry-run: would run %s", " ".join(command))
            return

        try:
            result: CommandResult = run_command(command, timeout=None)
        except OSError as e:
            raise ActivationError(f"{failure}: {e}") from e

        if not result.success:
            detail = result.stderr.strip() or f"exit code {result.returncode}"
            raise ActivationError(f"{failure}: {detail}")

    def reload(self) -> None:
        """Reload the systemd user manager configuration.

        Raises:
            ActivationError: If daemon-reload fails.
        """
        self._run(["daemon-reload"], "daemon-reload failed. Check your systemd setup")

    def enable_and_start(self, units: list[str]) -> None:
        """Enable units and start them immediately.

        Args:
            units: Unit names, enabled in a single systemctl call.

        Raises:
            ActivationError: If enabling or starting fails.
        """
        self._run(
            ["enable", "--now", *units],
            f"Failed to enable/start {' and/or '.join(units)}",
        )

    def activate(self, units: list[str]) -> None:
        """Reload, then enable and start ``units``.

        Args:
            units: Unit names to enable.

        Raises:
            ActivationError: If either step fails.
        """
        self.reload()
        self.enable_and_start(units)
        if not self._dry_run:
            logger.info("Enabled and started %s", " & ".join(units))
