"""SSH key path expansion and validation.

ssh-add receives key paths verbatim from the generated unit, so every
path is home-expanded and made absolute before it is written anywhere.
"""

import logging
import os
import shlex
from pathlib import Path

from sshsetup.core.errors import KeyUnreadableError

logger = logging.getLogger(__name__)


def parse_key_input(text: str) -> list[str]:
    """Split interactively entered key paths.

    Paths are separated by whitespace; shell-style quoting keeps a path
    containing spaces together.

    Args:
        text: Raw line typed by the user.

    Returns:
        Key path strings in entry order.

    Raises:
        ValueError: If the quoting is unbalanced.
    """
    return shlex.split(text)


def expand_key_path(raw: str) -> Path:
    """Expand a leading ``~`` and make the path absolute."""
    return Path(os.path.expanduser(raw)).absolute()


def validate_keys(raw_paths: list[str]) -> list[Path]:
    """Expand and validate key paths.

    Fails fast: the first unreadable key aborts validation, so a bad key
    can never end up in a half-correct unit file.

    Args:
        raw_paths: Key paths as given by the user.

    Returns:
        Absolute key paths in input order.

    Raises:
        KeyUnreadableError: If a path is not an existing, readable regular file.
    """
    keys: list[Path] = []

    for raw in raw_paths:
        key = expand_key_path(raw)
        if not key.is_file() or not os.access(key, os.R_OK):
            raise KeyUnreadableError(key)
        if key.suffix == ".pub":
            logger.warning("%s looks like a public key; ssh-add expects the private key", key)
        keys.append(key)

    return keys
