"""systemd unit generation and activation."""

from sshsetup.services.systemd import SystemdActivator
from sshsetup.services.units import (
    KEYS_MARKER,
    link_agent_unit,
    locate_agent_binary,
    render_loader_unit,
    write_loader_unit,
)

__all__ = [
    "KEYS_MARKER",
    "SystemdActivator",
    "link_agent_unit",
    "locate_agent_binary",
    "render_loader_unit",
    "write_loader_unit",
]
