"""Exception hierarchy for the setup workflow.

Fatal conditions derive from :class:`SetupError` so the CLI can report
them through a single handler. Soft skips are never raised; they are
returned as values by the component that detected them.
"""

from pathlib import Path


class SetupError(Exception):
    """Base exception for conditions that abort the whole run."""


class FatalPreconditionError(SetupError):
    """Raised when a required tool, template or host setting is missing."""


class MissingDependencyError(FatalPreconditionError):
    """Raised when required external commands are not on PATH."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Missing required commands: {' '.join(missing)}")


class NotInteractiveError(FatalPreconditionError):
    """Raised when stdin is not a TTY but interactivity is required."""


class TemplateMissingError(FatalPreconditionError):
    """Raised when a bundled unit template cannot be found."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Template missing: {path}")


class AgentBinaryNotFoundError(FatalPreconditionError):
    """Raised when the ssh-add executable cannot be located."""


class NoValidShellsError(FatalPreconditionError):
    """Raised when the host's valid-shells declaration is empty or unreadable."""


class UnresolvableSymlinkError(FatalPreconditionError):
    """Raised when a symlink cannot be resolved by any available strategy."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Cannot resolve symlink '{path}' and no suitable tool is available")


class KeyUnreadableError(SetupError):
    """Raised when a key path does not exist or cannot be read."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"SSH key not found or unreadable: {path}")


class ActivationError(SetupError):
    """Raised when systemd reload or enable/start fails."""


class SelectionAbortedError(Exception):
    """Raised when the user declines shell selection.

    This is not a failure: the run ends successfully without touching
    RC files or activating services.
    """
