"""XDG-compliant path management for ssh-agent-setup.

This module computes every filesystem location the setup touches and
resolves symlinks to canonical paths.

XDG defaults:
- App config: ~/.config/ssh-agent-setup/
- systemd user units: ~/.config/systemd/user/
"""

import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from importlib import resources
from pathlib import Path

from sshsetup.core.errors import UnresolvableSymlinkError
from sshsetup.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

# Application identifier for directory naming
APP_NAME = "ssh-agent-setup"

# Unit file names, shared by the bundled templates and the generated output
AGENT_UNIT = "ssh-agent.service"
LOADER_UNIT = "ssh-add.service"


def get_config_home() -> Path:
    """Get the XDG config home.

    Returns:
        $XDG_CONFIG_HOME if set and non-empty, otherwise ~/.config.
    """
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base)
    return Path.home() / ".config"


def get_app_config_dir() -> Path:
    """Get the application configuration directory path.

    Returns:
        Path to ~/.config/ssh-agent-setup/ (or XDG_CONFIG_HOME/ssh-agent-setup/).
    """
    return get_config_home() / APP_NAME


def get_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to ~/.config/ssh-agent-setup/config.toml.
    """
    return get_app_config_dir() / "config.toml"


def get_service_dir() -> Path:
    """Get the systemd user unit directory.

    Returns:
        Path to ~/.config/systemd/user/ (or XDG_CONFIG_HOME/systemd/user/).
    """
    return get_config_home() / "systemd" / "user"


def get_bundled_template_dir() -> Path:
    """Get the directory holding the bundled unit templates."""
    return Path(str(resources.files("sshsetup.data")))


@dataclass(frozen=True, slots=True)
class PathSet:
    """Locations used by a single setup run.

    Attributes:
        service_dir: systemd user unit directory receiving the output units.
        template_dir: Directory holding the unit templates.
    """

    service_dir: Path
    template_dir: Path

    @property
    def agent_template(self) -> Path:
        """Template linked as the agent unit."""
        return self.template_dir / AGENT_UNIT

    @property
    def loader_template(self) -> Path:
        """Template rendered into the key loader unit."""
        return self.template_dir / LOADER_UNIT

    @property
    def agent_unit(self) -> Path:
        """Installed agent unit (a symlink)."""
        return self.service_dir / AGENT_UNIT

    @property
    def loader_unit(self) -> Path:
        """Installed key loader unit (a generated file)."""
        return self.service_dir / LOADER_UNIT


def build_path_set(template_dir: Path | None = None) -> PathSet:
    """Build the PathSet from the environment.

    Args:
        template_dir: Override for the template directory. Defaults to the
            templates bundled with the package.

    Returns:
        PathSet for this run.
    """
    return PathSet(
        service_dir=get_service_dir(),
        template_dir=(template_dir or get_bundled_template_dir()).expanduser(),
    )


def ensure_service_dir(paths: PathSet) -> Path:
    """Create the systemd user unit directory if it doesn't exist.

    Args:
        paths: PathSet of the current run.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    try:
        paths.service_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        msg = f"Cannot create service directory {paths.service_dir}: {e}"
        raise RuntimeError(msg) from e
    logger.info("Service directory ensured: %s", paths.service_dir)
    return paths.service_dir


# =============================================================================
# Symlink resolution
# =============================================================================


def _resolve_in_process(path: Path) -> Path | None:
    try:
        resolved = path.resolve()
    except (OSError, RuntimeError):
        return None
    # A symlink loop resolves to a path that is still a link
    if resolved.is_symlink():
        return None
    return resolved


def _resolve_with_command(args: list[str]) -> Path | None:
    if not command_exists(args[0]):
        return None
    try:
        result = run_command(args, timeout=None)
    except OSError:
        return None
    output = result.stdout.strip()
    if not result.success or not output:
        return None
    return Path(output)


def _resolve_with_realpath(path: Path) -> Path | None:
    return _resolve_with_command(["realpath", "--", str(path)])


def _resolve_with_readlink(path: Path) -> Path | None:
    return _resolve_with_command(["readlink", "-f", "--", str(path)])


# Tried in order; the first non-None result wins
_RESOLVERS: tuple[Callable[[Path], Path | None], ...] = (
    _resolve_in_process,
    _resolve_with_realpath,
    _resolve_with_readlink,
)


def resolve_file_path(path: Path) -> Path:
    """Resolve symlinks to a canonical path.

    Each resolution strategy is tried in turn. If none succeeds, a path
    that is not itself a symlink is returned unchanged.

    Args:
        path: Path to resolve. Need not exist.

    Returns:
        Canonical path.

    Raises:
        UnresolvableSymlinkError: If ``path`` is a symlink and no strategy
            could resolve it.
    """
    for resolver in _RESOLVERS:
        resolved = resolver(path)
        if resolved is not None:
            return resolved

    if path.is_symlink():
        raise UnresolvableSymlinkError(path)

    logger.debug("No resolver handled %s; using it as-is", path)
    return path
