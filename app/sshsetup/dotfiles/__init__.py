"""Dotfile manager integration.

Resolves RC files through chezmoi so managed files are patched at their
source.
"""

from sshsetup.dotfiles.chezmoi import (
    ChezmoiInventoryError,
    ChezmoiMapper,
    ResolvedRCTarget,
    parse_managed_inventory,
)

__all__ = [
    "ChezmoiInventoryError",
    "ChezmoiMapper",
    "ResolvedRCTarget",
    "parse_managed_inventory",
]
