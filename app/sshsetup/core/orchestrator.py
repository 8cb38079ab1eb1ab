"""Setup workflow orchestration.

Runs the provisioning steps in order, passing each step's output to the
next:

1. Preconditions: interactive stdin, required commands
2. Key validation (before anything is written)
3. Unit installation: agent symlink and rendered loader unit
4. Shell discovery and selection
5. RC file resolution (chezmoi-aware) and patching
6. systemd activation

Fatal conditions raise :class:`~sshsetup.core.errors.SetupError`.
A declined shell selection raises
:class:`~sshsetup.core.errors.SelectionAbortedError` after the units are
installed but before any RC file is touched or service activated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sshsetup.core.config import SetupConfig
from sshsetup.core.errors import MissingDependencyError, NotInteractiveError
from sshsetup.core.keys import validate_keys
from sshsetup.core.paths import (
    AGENT_UNIT,
    LOADER_UNIT,
    build_path_set,
    ensure_service_dir,
)
from sshsetup.dotfiles.chezmoi import ChezmoiMapper, ResolvedRCTarget
from sshsetup.rc.patcher import RCPatcher
from sshsetup.services.systemd import SystemdActivator
from sshsetup.services.units import link_agent_unit, locate_agent_binary, write_loader_unit
from sshsetup.shells.discovery import discover_shells
from sshsetup.shells.registry import build_catalogue
from sshsetup.shells.selection import ShellSelector
from sshsetup.utils.shell import is_interactive, missing_commands

if TYPE_CHECKING:
    from pathlib import Path

    from sshsetup.rc.models import PatchResult
    from sshsetup.shells.registry import ShellDescriptor

logger = logging.getLogger(__name__)

REQUIRED_COMMANDS = ["systemctl", "ssh-add"]


@dataclass(frozen=True, slots=True)
class SetupReport:
    """Outcome of a completed setup run.

    Attributes:
        keys: Validated key paths, in the order written to the unit.
        agent_unit: Installed agent unit symlink.
        loader_unit: Installed key loader unit.
        selected: Names of the shells chosen for RC patching.
        results: One patch result per selected shell.
        activated: Whether systemd activation ran (False only in dry-run).
        dry_run: Whether this was a dry-run.
    """

    keys: list[Path]
    agent_unit: Path
    loader_unit: Path
    selected: list[str] = field(default_factory=list)
    results: list[PatchResult] = field(default_factory=list)
    activated: bool = False
    dry_run: bool = False


def check_preconditions() -> None:
    """Verify the run can proceed.

    Raises:
        NotInteractiveError: If stdin is not a TTY.
        MissingDependencyError: If a required command is not on PATH.
    """
    if not is_interactive():
        raise NotInteractiveError("This program must be run interactively (stdin is not a tty)")

    missing = missing_commands(REQUIRED_COMMANDS)
    if missing:
        raise MissingDependencyError(missing)


def resolve_rc_targets(
    selected: dict[str, ShellDescriptor],
    mapper: ChezmoiMapper,
) -> list[ResolvedRCTarget]:
    """Resolve the file to patch for every selected shell.

    The chezmoi inventory is queried once for all shells.

    Args:
        selected: Selected shells keyed by name.
        mapper: chezmoi mapper; unavailable chezmoi degrades to plain paths.

    Returns:
        Resolved targets sorted by shell name.
    """
    if not selected:
        return []

    mapping = mapper.build_mapping()
    return [mapper.resolve(selected[name], mapping) for name in sorted(selected)]


def run_setup(
    raw_keys: list[str],
    config: SetupConfig | None = None,
    *,
    dry_run: bool = False,
    selector: ShellSelector | None = None,
    mapper: ChezmoiMapper | None = None,
    patcher: RCPatcher | None = None,
    activator: SystemdActivator | None = None,
) -> SetupReport:
    """Provision the SSH agent units and wire up shells.

    Args:
        raw_keys: Key paths as given by the user.
        config: User configuration. Defaults to :class:`SetupConfig` defaults.
        dry_run: Report what would change without writing or activating.
        selector: Shell selector (default built from config).
        mapper: chezmoi mapper (default built from config).
        patcher: RC patcher (default honours dry_run).
        activator: systemd activator (default honours dry_run).

    Returns:
        SetupReport of the completed run.

    Raises:
        SetupError: On any fatal precondition, validation or activation failure.
        SelectionAbortedError: If the user declines shell selection.
        OSError: If a unit file cannot be written.
    """
    config = config or SetupConfig()
    selector = selector or ShellSelector(use_picker=config.use_picker)
    mapper = mapper or ChezmoiMapper(enabled=config.use_dotfile_manager)
    patcher = patcher or RCPatcher(dry_run=dry_run)
    activator = activator or SystemdActivator(dry_run=dry_run)

    check_preconditions()

    keys = validate_keys(raw_keys)
    agent_binary = locate_agent_binary()
    logger.debug("Using %s for key loading", agent_binary)

    paths = build_path_set(config.template_dir)
    if not dry_run:
        ensure_service_dir(paths)
    agent_unit = link_agent_unit(paths, dry_run=dry_run)
    loader_unit = write_loader_unit(paths, keys, agent_binary, dry_run=dry_run)

    enabled = discover_shells(build_catalogue(), config.shells_file)
    if enabled:
        selected = selector.select(enabled)
    else:
        logger.warning("No supported shell is installed and declared in %s", config.shells_file)
        selected = {}

    if not selected:
        logger.warning("No shells selected; RC files will not be updated")
    for name in sorted(selected):
        logger.info("Will update %s RC file at %s", name, selected[name].rc_path)

    results = [
        patcher.patch(target.shell.name, target.path, target.shell.export_line)
        for target in resolve_rc_targets(selected, mapper)
    ]

    activator.activate([AGENT_UNIT, LOADER_UNIT])

    return SetupReport(
        keys=keys,
        agent_unit=agent_unit,
        loader_unit=loader_unit,
        selected=sorted(selected),
        results=results,
        activated=not dry_run,
        dry_run=dry_run,
    )
