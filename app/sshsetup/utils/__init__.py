"""Utility modules for ssh-agent-setup.

This module exports the subprocess helpers. Console helpers live in
:mod:`sshsetup.utils.formatting`.
"""

from sshsetup.utils.shell import (
    CommandResult,
    command_exists,
    is_interactive,
    missing_commands,
    run_command,
)

__all__ = [
    "CommandResult",
    "command_exists",
    "is_interactive",
    "missing_commands",
    "run_command",
]
