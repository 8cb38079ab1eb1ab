"""systemd unit installation.

The agent unit is a symlink to the bundled template. The key loader unit
is rendered from its template by replacing a marker line with one
``ExecStart=`` line per key.
"""

import logging
import os
import re
import shutil
from pathlib import Path
from tempfile import NamedTemporaryFile

from sshsetup.core.errors import AgentBinaryNotFoundError, TemplateMissingError
from sshsetup.core.paths import PathSet

logger = logging.getLogger(__name__)

KEYS_MARKER = "# INSERT KEYS HERE"
AGENT_BINARY = "ssh-add"

# Owner read/write only: the unit embeds key paths
UNIT_MODE = 0o600

_NEEDS_QUOTING = re.compile(r"[\s\"'\\;]")


def _system_path() -> str:
    try:
        return os.confstr("CS_PATH") or os.defpath
    except (AttributeError, ValueError, OSError):
        return os.defpath


def locate_agent_binary() -> Path:
    """Find the ssh-add executable.

    The default system PATH is searched first so a user-local shim is
    never baked into the unit, then the user's PATH.

    Returns:
        Absolute path to ssh-add.

    Raises:
        AgentBinaryNotFoundError: If ssh-add cannot be found.
    """
    found = shutil.which(AGENT_BINARY, path=_system_path()) or shutil.which(AGENT_BINARY)
    if found is None:
        raise AgentBinaryNotFoundError(f"{AGENT_BINARY} not found on the system or user PATH")
    return Path(found).absolute()


def quote_exec_arg(arg: str) -> str:
    """Quote a single argument for a systemd ``ExecStart=`` line.

    ``%`` and ``$`` are always doubled because systemd expands specifiers
    and environment variables inside command lines. Arguments containing
    whitespace, quotes, backslashes or semicolons are double-quoted with
    C-style escapes.
    """
    arg = arg.replace("%", "%%").replace("$", "$$")
    if not _NEEDS_QUOTING.search(arg):
        return arg
    escaped = arg.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def render_loader_unit(template: str, key_paths: list[Path], agent_binary: Path) -> str:
    """Render the key loader unit.

    Every template line is copied verbatim except the first line equal to
    :data:`KEYS_MARKER`, which is replaced by one ``ExecStart=`` line per
    key in ``key_paths`` order. A template without the marker is returned
    unchanged.

    Args:
        template: Template text.
        key_paths: Validated key paths.
        agent_binary: Absolute path to ssh-add.

    Returns:
        Rendered unit text.
    """
    binary = quote_exec_arg(str(agent_binary))
    rendered: list[str] = []
    replaced = False

    for line in template.splitlines(keepends=True):
        if not replaced and line.rstrip("\r\n") == KEYS_MARKER:
            rendered.extend(f"ExecStart={binary} {quote_exec_arg(str(key))}\n" for key in key_paths)
            replaced = True
            continue
        rendered.append(line)

    if not replaced:
        logger.warning("Marker %r not found in template; no keys were inserted", KEYS_MARKER)

    return "".join(rendered)


def _write_private(path: Path, content: str) -> None:
    """Atomically write ``content`` to ``path`` with mode 0600."""
    tmp_path: Path | None = None
    try:
        # NamedTemporaryFile creates the file with mode 0600
        with NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            delete=False,
            prefix=f".{path.name}.",
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            f.write(content)
        os.chmod(tmp_path, UNIT_MODE)
        os.replace(tmp_path, path)
    except OSError:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise


def write_loader_unit(
    paths: PathSet,
    key_paths: list[Path],
    agent_binary: Path,
    *,
    dry_run: bool = False,
) -> Path:
    """Render the loader template and install it in the service directory.

    Args:
        paths: PathSet of the current run.
        key_paths: Validated key paths.
        agent_binary: Absolute path to ssh-add.
        dry_run: If True, render but do not write.

    Returns:
        Path of the installed loader unit.

    Raises:
        TemplateMissingError: If the loader template does not exist.
        OSError: If the unit cannot be written.
    """
    template_path = paths.loader_template
    if not template_path.is_file():
        raise TemplateMissingError(template_path)

    content = render_loader_unit(template_path.read_text(), key_paths, agent_binary)

    if dry_run:
        logger.info("Dry-run: would write %s with %d key(s)", paths.loader_unit, len(key_paths))
        return paths.loader_unit

    _write_private(paths.loader_unit, content)
    logger.info(
        "Created %s with keys: %s",
        paths.loader_unit.name,
        " ".join(str(key) for key in key_paths),
    )
    return paths.loader_unit


def link_agent_unit(paths: PathSet, *, dry_run: bool = False) -> Path:
    """Symlink the agent template into the service directory.

    An existing file or link at the destination is replaced.

    Args:
        paths: PathSet of the current run.
        dry_run: If True, do not touch the filesystem.

    Returns:
        Path of the installed agent unit.

    Raises:
        TemplateMissingError: If the agent template does not exist.
        OSError: If the link cannot be created.
    """
    source = paths.agent_template
    target = paths.agent_unit

    if not source.is_file():
        raise TemplateMissingError(source)

    if dry_run:
        logger.info("Dry-run: would link %s -> %s", target, source)
        return target

    if target.is_symlink() or target.exists():
        target.unlink()
    target.symlink_to(source)
    logger.info("Linked %s -> %s", target.name, source)
    return target
