"""Tagged outcome of a publish.

Callers branch on the outcome type rather than catching exceptions. A
Cancelled outcome is a success: the operator chose not to proceed.
"""

from __future__ import annotations

from dataclasses import dataclass

from cpatch.core.model import ReleaseStatus
from cpatch.patch.errors import PatchError, UnpatchableChange

__all__ = ["Cancelled", "Failed", "PublishOutcome", "Published", "Rejected"]


@dataclass(frozen=True, slots=True)
class Published:
    """Every architecture is on the server (uploaded now or already present).

    For a dry run nothing was uploaded and final_status is None.
    """

    uploaded_architectures: tuple[str, ...]
    final_status: ReleaseStatus | None
    dry_run: bool = False


@dataclass(frozen=True, slots=True)
class Cancelled:
    stage: str


@dataclass(frozen=True, slots=True)
class Rejected:
    reason: UnpatchableChange


@dataclass(frozen=True, slots=True)
class Failed:
    error: PatchError


PublishOutcome = Published | Cancelled | Rejected | Failed
