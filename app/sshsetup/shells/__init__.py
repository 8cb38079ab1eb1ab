"""Shell catalogue, discovery and selection."""

from sshsetup.shells.discovery import discover_shells, load_valid_shells, parse_valid_shells
from sshsetup.shells.registry import AUTH_SOCK_VAR, ShellDescriptor, build_catalogue
from sshsetup.shells.selection import ShellSelector, get_current_shell_name

__all__ = [
    "AUTH_SOCK_VAR",
    "ShellDescriptor",
    "ShellSelector",
    "build_catalogue",
    "discover_shells",
    "get_current_shell_name",
    "load_valid_shells",
    "parse_valid_shells",
]
