"""Error presentation utilities.

Centralized outcome formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cpatch.build.errors import BuildFailed, OutputMissing
from cpatch.core.errors import ErrorCode
from cpatch.output.console import Style
from cpatch.patch.errors import (
    BuildError,
    DiffCheckFailed,
    IncompleteRelease,
    MissingBundle,
    PatchError,
    ReleaseArtifactMissing,
    ReleaseVersionUnknown,
    RevisionMismatch,
    StatusUpdateFailed,
    UploadFailed,
)
from cpatch.patch.outcome import Cancelled, Failed, Published, PublishOutcome, Rejected
from cpatch.store.errors import DownloadError, NotFoundError, RequestError

if TYPE_CHECKING:
    from cpatch.output.console import ConsoleProtocol

__all__ = [
    "outcome_exit_code",
    "patch_error_exit_code",
    "print_outcome",
    "print_patch_error",
]


def print_patch_error(error: PatchError, console: ConsoleProtocol) -> None:
    """Print a patch error with its remediation hint."""
    console.error(error.message)
    match error:
        case BuildFailed(diagnostics=output) | BuildError(diagnostics=output) if output:
            console.print(output, Style.DIM)
        case _:
            if error.hint:
                console.print(f"hint: {error.hint}", Style.DIM)


def patch_error_exit_code(error: PatchError) -> int:
    """Get exit code for a patch error."""
    match error:
        case IncompleteRelease():
            return int(ErrorCode.INCOMPLETE_RELEASE)
        case RevisionMismatch():
            return int(ErrorCode.REVISION_MISMATCH)
        case DiffCheckFailed():
            return int(ErrorCode.DIFF_CHECK_FAILED)
        case BuildError() | BuildFailed():
            return int(ErrorCode.BUILD_ERROR)
        case UploadFailed() | StatusUpdateFailed():
            return int(ErrorCode.UPLOAD_FAILED)
        case NotFoundError() | ReleaseArtifactMissing() | ReleaseVersionUnknown():
            return int(ErrorCode.USER_ERROR)
        case RequestError() | DownloadError():
            return int(ErrorCode.NETWORK_ERROR)
        case OutputMissing() | MissingBundle():
            return int(ErrorCode.IO_ERROR)


def print_outcome(outcome: PublishOutcome, console: ConsoleProtocol) -> None:
    match outcome:
        case Published(dry_run=True):
            pass
        case Published(uploaded_architectures=archs):
            console.print(f"Patch artifacts: {', '.join(archs)}", Style.DIM)
        case Cancelled():
            pass
        case Rejected(reason=reason):
            console.error(reason.message)
            if reason.hint:
                console.print(f"hint: {reason.hint}", Style.DIM)
        case Failed(error=error):
            print_patch_error(error, console)


def outcome_exit_code(outcome: PublishOutcome) -> int:
    """Map an outcome to a process exit code.

    Published and Cancelled share ErrorCode.OK: declining to proceed looks
    the same as having nothing left to do.
    """
    match outcome:
        case Published() | Cancelled():
            return int(ErrorCode.OK)
        case Rejected():
            return int(ErrorCode.UNPATCHABLE_CHANGE)
        case Failed(error=error):
            return patch_error_exit_code(error)
