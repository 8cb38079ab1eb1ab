"""CLI package for ssh-agent-setup.

This package contains the Typer application and its display helpers.
"""

from sshsetup.cli.main import app

__all__ = ["app"]
