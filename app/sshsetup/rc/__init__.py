"""Shell RC file patching."""

from sshsetup.rc.models import PatchResult, PatchStatus, SkipReason
from sshsetup.rc.patcher import ATTRIBUTION, RCPatcher

__all__ = [
    "ATTRIBUTION",
    "PatchResult",
    "PatchStatus",
    "RCPatcher",
    "SkipReason",
]
