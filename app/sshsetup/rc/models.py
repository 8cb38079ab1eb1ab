"""RC patch outcome models."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class PatchStatus(str, Enum):
    """Outcome of patching one RC file.

    Attributes:
        APPENDED: The export line was added.
        ALREADY_PRESENT: The exact export line was already there.
        SKIPPED: Nothing was written; see :class:`SkipReason`.
    """

    APPENDED = "appended"
    ALREADY_PRESENT = "already_present"
    SKIPPED = "skipped"


class SkipReason(str, Enum):
    """Why an RC file was left untouched.

    Attributes:
        DECLINED: The file did not exist and the user declined to create it.
        CONFLICT: Another SSH_AUTH_SOCK line exists and needs manual review.
        UNWRITABLE: The file could not be read, created or appended to.
    """

    DECLINED = "declined"
    CONFLICT = "conflict"
    UNWRITABLE = "unwritable"


@dataclass(frozen=True, slots=True)
class PatchResult:
    """Result of a single RC patch operation.

    Attributes:
        shell: Name of the shell the file belongs to.
        path: File that was (or would have been) patched.
        status: What happened.
        reason: Why the file was skipped, None unless status is SKIPPED.
        dry_run: Whether this was a dry-run (nothing written).
        created: Whether the file was created by this operation.
    """

    shell: str
    path: Path
    status: PatchStatus
    reason: SkipReason | None = None
    dry_run: bool = False
    created: bool = False

    def __post_init__(self) -> None:
        """Validate that a reason accompanies skips and only skips."""
        if (self.status == PatchStatus.SKIPPED) != (self.reason is not None):
            msg = f"Skip reason must be set exactly when status is skipped, got {self.status.value}"
            raise ValueError(msg)

    @property
    def changed(self) -> bool:
        """Check if the file was modified (or would be, in dry-run)."""
        return self.status == PatchStatus.APPENDED
