"""Discovery of installed, host-approved shells.

A catalogue shell is enabled only when its binary is on PATH and that
binary is a canonical path declared in /etc/shells.
"""

import logging
import shutil
from collections.abc import Callable
from pathlib import Path, PurePosixPath

from sshsetup.core.errors import NoValidShellsError
from sshsetup.shells.registry import ShellDescriptor

logger = logging.getLogger(__name__)

# Merged-/usr hosts list a shell in both; the general directory wins
MINIMAL_BIN_DIR = PurePosixPath("/bin")
GENERAL_BIN_DIR = PurePosixPath("/usr/bin")


def parse_valid_shells(text: str) -> list[str]:
    """Parse a valid-shells declaration into canonical shell paths.

    Grammar: one entry per line; blank lines, ``#`` comments and lines
    that are not absolute paths are ignored. An entry in ``/bin`` is
    dropped when the same shell is also declared in ``/usr/bin``. Every
    other entry, e.g. ``/usr/local/bin/zsh``, stays canonical on its own.

    Args:
        text: Contents of /etc/shells.

    Returns:
        Canonical shell paths in declaration order, without duplicates.
    """
    declared: list[PurePosixPath] = []

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line.startswith("/"):
            continue
        path = PurePosixPath(line)
        if path not in declared:
            declared.append(path)

    general = {path.name for path in declared if path.parent == GENERAL_BIN_DIR}
    return [
        str(path)
        for path in declared
        if not (path.parent == MINIMAL_BIN_DIR and path.name in general)
    ]


def load_valid_shells(shells_file: Path) -> list[str]:
    """Read and parse the host's valid-shells declaration.

    Args:
        shells_file: Path to the declaration, usually /etc/shells.

    Returns:
        Canonical shell paths.

    Raises:
        NoValidShellsError: If the file is unreadable or declares no shells.
    """
    try:
        text = shells_file.read_text()
    except (OSError, UnicodeDecodeError) as e:
        msg = f"No valid shells found in {shells_file} (unreadable: {e})"
        raise NoValidShellsError(msg) from e

    valid = parse_valid_shells(text)
    if not valid:
        msg = f"No valid shells found in {shells_file} (empty list)"
        raise NoValidShellsError(msg)

    return valid


def discover_shells(
    catalogue: dict[str, ShellDescriptor],
    shells_file: Path = Path("/etc/shells"),
    which: Callable[[str], str | None] = shutil.which,
) -> dict[str, ShellDescriptor]:
    """Filter the catalogue down to shells usable on this host.

    Args:
        catalogue: Known shells keyed by name.
        shells_file: Host declaration of valid login shells.
        which: PATH lookup returning the binary path or None.

    Returns:
        Enabled shells keyed by name; a subset of ``catalogue``.

    Raises:
        NoValidShellsError: If the declaration is empty or unreadable.
    """
    valid_paths = set(load_valid_shells(shells_file))
    enabled: dict[str, ShellDescriptor] = {}

    for name, shell in catalogue.items():
        shell_path = which(name)
        if shell_path is None:
            logger.warning("Skipping %s (not installed)", name)
            continue

        if shell_path not in valid_paths:
            logger.warning("Skipping %s (%s not found in %s)", name, shell_path, shells_file)
            continue

        enabled[name] = shell

    return enabled
