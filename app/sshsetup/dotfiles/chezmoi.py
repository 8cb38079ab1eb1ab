"""chezmoi-aware RC file resolution.

When a startup file is deployed by chezmoi, edits to the deployed copy
are overwritten by the next ``chezmoi apply``. The source file in the
chezmoi repository is patched instead.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sshsetup.core.paths import resolve_file_path
from sshsetup.shells.registry import ShellDescriptor
from sshsetup.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

MANAGED_COMMAND = [
    "chezmoi",
    "managed",
    "--include=files",
    "--path-style=all",
    "--format=json",
]


@dataclass(frozen=True, slots=True)
class ResolvedRCTarget:
    """Final location to patch for a shell.

    Attributes:
        shell: The shell being configured.
        path: File that will be patched.
        managed: True if ``path`` is a chezmoi source file.
    """

    shell: ShellDescriptor
    path: Path
    managed: bool = False


class ChezmoiInventoryError(Exception):
    """Raised when chezmoi's managed-file inventory cannot be parsed."""


def parse_managed_inventory(output: str) -> dict[Path, Path]:
    """Parse ``chezmoi managed --path-style=all --format=json`` output.

    The output is a JSON object keyed by target-relative path. Each value
    is a record with at least ``absolute`` (deployed path) and
    ``sourceAbsolute`` (source path). Records missing either field are
    ignored.

    Args:
        output: Raw stdout from chezmoi.

    Returns:
        Mapping of deployed path to source path.

    Raises:
        ChezmoiInventoryError: If the output is not a JSON object.
    """
    if not output.strip():
        return {}

    try:
        data: Any = json.loads(output)
    except json.JSONDecodeError as e:
        raise ChezmoiInventoryError(f"Invalid JSON from chezmoi: {e}") from e

    if not isinstance(data, dict):
        raise ChezmoiInventoryError("Expected a JSON object from chezmoi managed")

    mapping: dict[Path, Path] = {}
    for record in data.values():
        if not isinstance(record, dict):
            continue
        real = record.get("absolute")
        source = record.get("sourceAbsolute")
        if not real or not source:
            continue
        mapping[Path(real)] = Path(source)

    return mapping


class ChezmoiMapper:
    """Maps deployed RC files to their chezmoi source files.

    Attributes:
        _enabled: If False, chezmoi is treated as unavailable.
    """

    def __init__(self, *, enabled: bool = True) -> None:
        """Initialize the mapper.

        Args:
            enabled: Consult chezmoi when it is installed.
        """
        self._enabled = enabled

    def is_available(self) -> bool:
        """Check if chezmoi lookups can be performed."""
        return self._enabled and command_exists("chezmoi")

    def build_mapping(self) -> dict[Path, Path] | None:
        """Query chezmoi for its managed-file inventory.

        Returns:
            Mapping of deployed path to source path, or None when chezmoi
            is unavailable or the query failed.
        """
        if not self.is_available():
            logger.info("chezmoi not available; skipping dotfile management checks")
            return None

        try:
            result = run_command(MANAGED_COMMAND, timeout=None)
        except OSError as e:
            logger.warning("chezmoi managed failed: %s", e)
            return None

        if not result.success:
            logger.warning("chezmoi managed failed: %s", result.stderr.strip())
            return None

        try:
            mapping = parse_managed_inventory(result.stdout)
        except ChezmoiInventoryError as e:
            logger.warning("%s", e)
            return None

        logger.debug("chezmoi manages %d file(s)", len(mapping))
        return mapping

    def resolve(
        self,
        shell: ShellDescriptor,
        mapping: dict[Path, Path] | None,
    ) -> ResolvedRCTarget:
        """Determine the file to patch for a shell.

        Args:
            shell: Shell whose RC file is being resolved.
            mapping: Inventory from :meth:`build_mapping`, or None.

        Returns:
            ResolvedRCTarget pointing at the chezmoi source file when the
            resolved RC path is managed and its source exists, otherwise at
            the resolved RC path.

        Raises:
            UnresolvableSymlinkError: If the RC path is an unresolvable symlink.
        """
        resolved = resolve_file_path(shell.rc_path)

        if mapping is not None:
            source = mapping.get(resolved)
            if source is not None and source.is_file():
                logger.info("%s RC file %s is managed by chezmoi: %s", shell.name, resolved, source)
                return ResolvedRCTarget(shell=shell, path=source, managed=True)

        return ResolvedRCTarget(shell=shell, path=resolved)
