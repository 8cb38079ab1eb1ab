"""ssh-agent-setup - systemd-managed SSH agent provisioning.

Sets up ssh-agent and ssh-add as systemd user services and wires
SSH_AUTH_SOCK into the user's shell startup files.
"""

__version__ = "0.1.0"
