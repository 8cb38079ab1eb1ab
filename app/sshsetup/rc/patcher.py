"""Idempotent SSH_AUTH_SOCK patching of shell startup files.

A file is only ever appended to. Re-running against the same file, or
against one file shared by several shells, never duplicates the export
line, and an existing SSH_AUTH_SOCK line written by someone else is left
for the user to review.
"""

import logging
from pathlib import Path

import typer
from rich.markup import escape

from sshsetup.rc.models import PatchResult, PatchStatus, SkipReason
from sshsetup.shells.registry import AUTH_SOCK_VAR
from sshsetup.utils.formatting import console

logger = logging.getLogger(__name__)

ATTRIBUTION = "# Added by ssh-agent-setup"


def block_separator(content: str) -> str:
    """Return what must be appended so ``content`` ends with one blank line.

    Empty content needs no separator. Only an empty last line already
    separates; whitespace counts as content.
    """
    if not content:
        return ""
    if not content.endswith("\n"):
        return "\n\n"
    if content.splitlines()[-1]:
        return "\n"
    return ""


class RCPatcher:
    """Appends the export line for a shell to its RC file.

    Attributes:
        _dry_run: If True, report what would happen without prompting or writing.
        _env_var: Variable name whose presence marks a conflicting line.
    """

    def __init__(self, *, dry_run: bool = False, env_var: str = AUTH_SOCK_VAR) -> None:
        """Initialize the patcher.

        Args:
            dry_run: If True, report what would be done without doing it.
            env_var: Variable name used for conflict detection.
        """
        self._dry_run = dry_run
        self._env_var = env_var

    def patch(self, shell: str, target: Path, export_line: str) -> PatchResult:
        """Patch a single RC file.

        Steps:
        1. Missing file: ask to create it; decline prints manual instructions
        2. Exact export line present: nothing to do
        3. Other line mentioning the variable: skip with a warning
        4. Otherwise append a blank separator, attribution and export line

        Args:
            shell: Shell name, for messages.
            target: Resolved RC file.
            export_line: Line to append.

        Returns:
            PatchResult describing the outcome.
        """
        logger.info("Setting up %s for %s", self._env_var, shell)
        created = False

        if not target.exists():
            if self._dry_run:
                logger.info("Dry-run: would create %s and append the %s line", target, self._env_var)
                return PatchResult(
                    shell=shell,
                    path=target,
                    status=PatchStatus.APPENDED,
                    dry_run=True,
                    created=True,
                )

            if not self._confirm_create(target):
                logger.warning("Skipped creating %s", target)
                self._print_manual_instructions(target, export_line)
                logger.warning("Skipped configuring %s for %s (no RC file)", self._env_var, shell)
                return PatchResult(
                    shell=shell,
                    path=target,
                    status=PatchStatus.SKIPPED,
                    reason=SkipReason.DECLINED,
                )

            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.touch()
            except OSError as e:
                return self._unwritable(shell, target, e)
            created = True
            logger.info("Created new RC file: %s", target)

        try:
            content = target.read_text()
        except (OSError, UnicodeDecodeError) as e:
            return self._unwritable(shell, target, e)

        lines = content.splitlines()

        if export_line in lines:
            logger.info("Exact %s already present in %s; skipping", self._env_var, target)
            return PatchResult(
                shell=shell,
                path=target,
                status=PatchStatus.ALREADY_PRESENT,
                created=created,
            )

        if any(self._env_var in line for line in lines):
            logger.warning(
                "Another %s appears in %s; please verify manually", self._env_var, target
            )
            return PatchResult(
                shell=shell,
                path=target,
                status=PatchStatus.SKIPPED,
                reason=SkipReason.CONFLICT,
                created=created,
            )

        if self._dry_run:
            logger.info("Dry-run: would append %s to %s", self._env_var, target)
            return PatchResult(
                shell=shell,
                path=target,
                status=PatchStatus.APPENDED,
                dry_run=True,
            )

        block = f"{block_separator(content)}{ATTRIBUTION}\n{export_line}\n"
        try:
            with open(target, "a") as f:
                f.write(block)
        except OSError as e:
            return self._unwritable(shell, target, e)

        logger.info("Appended %s to %s", self._env_var, target)
        return PatchResult(
            shell=shell,
            path=target,
            status=PatchStatus.APPENDED,
            created=created,
        )

    def _confirm_create(self, target: Path) -> bool:
        return typer.confirm(f"RC file '{target}' does not exist. Create it?", default=False)

    def _print_manual_instructions(self, target: Path, export_line: str) -> None:
        console.print()
        console.print(
            f"To enable SSH agent support for this shell, add the following lines to "
            f"[path]{escape(str(target))}[/path]:"
        )
        console.print()
        console.print(escape(ATTRIBUTION), highlight=False)
        console.print(escape(export_line), highlight=False)
        console.print()

    def _unwritable(self, shell: str, target: Path, error: Exception) -> PatchResult:
        logger.warning("Cannot update %s for %s: %s", target, shell, error)
        return PatchResult(
            shell=shell,
            path=target,
            status=PatchStatus.SKIPPED,
            reason=SkipReason.UNWRITABLE,
        )
