"""Catalogue of supported shells.

Each shell knows where its login-time startup file lives and the single
line that points SSH_AUTH_SOCK at the systemd-managed agent socket.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

# Variable every export line sets; also used to detect conflicting lines
AUTH_SOCK_VAR = "SSH_AUTH_SOCK"

# Shell name -> export line
EXPORT_LINES: dict[str, str] = {
    "bash": 'export SSH_AUTH_SOCK="$XDG_RUNTIME_DIR/ssh-agent.socket"',
    "zsh": 'export SSH_AUTH_SOCK="$XDG_RUNTIME_DIR/ssh-agent.socket"',
    "fish": "set -x SSH_AUTH_SOCK $XDG_RUNTIME_DIR/ssh-agent.socket",
    "elvish": "env:SSH_AUTH_SOCK = (path join $E:xdg_runtime_dir ssh-agent.socket)",
    "nu": "$env.SSH_AUTH_SOCK = ($env.XDG_RUNTIME_DIR | path join ssh-agent.socket)",
}


@dataclass(frozen=True, slots=True)
class ShellDescriptor:
    """A shell that can be wired to the agent.

    Attributes:
        name: Executable name (e.g., 'bash').
        rc_path: Startup file to patch, before symlink/dotfile resolution.
        export_line: Line that sets SSH_AUTH_SOCK in this shell's syntax.
    """

    name: str
    rc_path: Path
    export_line: str

    def __post_init__(self) -> None:
        """Validate descriptor data after initialization."""
        if not self.name:
            msg = "Shell name cannot be empty"
            raise ValueError(msg)
        if AUTH_SOCK_VAR not in self.export_line:
            msg = f"Export line for {self.name} does not set {AUTH_SOCK_VAR}"
            raise ValueError(msg)


def _rc_paths(env: Mapping[str, str], home: Path) -> dict[str, Path]:
    config_home = Path(env["XDG_CONFIG_HOME"]) if env.get("XDG_CONFIG_HOME") else home / ".config"
    zdotdir = Path(env["ZDOTDIR"]) if env.get("ZDOTDIR") else home

    return {
        "bash": home / ".bash_profile",
        "zsh": zdotdir / ".zprofile",
        "fish": config_home / "fish" / "conf.d" / "ssh_agent.fish",
        "elvish": config_home / "elvish" / "rc.elv",
        "nu": config_home / "nushell" / "env.nu",
    }


def build_catalogue(
    env: Mapping[str, str] | None = None,
    home: Path | None = None,
) -> dict[str, ShellDescriptor]:
    """Build the catalogue of known shells.

    Args:
        env: Environment to read XDG_CONFIG_HOME and ZDOTDIR from.
            Defaults to the process environment.
        home: Home directory. Defaults to the current user's home.

    Returns:
        Mapping of shell name to descriptor.
    """
    rc_paths = _rc_paths(os.environ if env is None else env, home or Path.home())

    return {
        name: ShellDescriptor(name=name, rc_path=rc_paths[name], export_line=line)
        for name, line in EXPORT_LINES.items()
    }
