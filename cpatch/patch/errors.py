"""Errors raised by the patch pipeline, as values.

Every fatal kind is its own dataclass so presentation can map it to a
distinct exit code. UserCancelled and UnpatchableChange are verdicts rather
than failures; the coordinator turns them into Cancelled / Rejected outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass

from cpatch.build.errors import ToolchainError
from cpatch.core.model import ReleasePlatform, ReleaseStatus
from cpatch.store.errors import DownloadError, NotFoundError, RequestError

__all__ = [
    "BuildError",
    "DiffCheckAbort",
    "DiffCheckFailed",
    "IncompleteRelease",
    "MissingBundle",
    "PatchError",
    "ReleaseArtifactMissing",
    "ReleaseVersionUnknown",
    "RevisionMismatch",
    "StatusUpdateFailed",
    "UnpatchableChange",
    "UploadFailed",
    "UserCancelled",
    "ValidationError",
]


@dataclass(frozen=True, slots=True)
class IncompleteRelease:
    """The release never finished publishing on this platform."""

    version: str
    platform: ReleasePlatform
    status: ReleaseStatus

    @property
    def message(self) -> str:
        if self.status == ReleaseStatus.TERMINATED:
            return (
                f"Release {self.version} was terminated for {self.platform} "
                "and cannot be patched."
            )
        return (
            f"Release {self.version} is in an incomplete state for {self.platform}. "
            "It's possible that the original release was terminated or failed to complete."
        )

    @property
    def hint(self) -> str | None:
        if self.status == ReleaseStatus.TERMINATED:
            return "Create a new release; a terminated release cannot be patched."
        return "Re-run the release command for this version or create a new release."


@dataclass(frozen=True, slots=True)
class RevisionMismatch:
    """The release was built with a different toolchain revision."""

    release_revision: str
    current_revision: str

    @property
    def message(self) -> str:
        return (
            "Flutter revision mismatch. The release you are trying to patch was built "
            "with a different version of Flutter.\n"
            f"Release Flutter Revision: {self.release_revision}\n"
            f"Current Flutter Revision: {self.current_revision}"
        )

    @property
    def hint(self) -> str | None:
        return (
            "Either create a new release, or switch your Flutter version to "
            f"{self.release_revision} and try again."
        )


@dataclass(frozen=True, slots=True)
class UnpatchableChange:
    """Changes that a patch cannot deliver, and nobody accepted the risk."""

    paths: tuple[str, ...]

    @property
    def message(self) -> str:
        return "The release contains changes that cannot be delivered by a patch."

    @property
    def hint(self) -> str | None:
        return "Create a new release, or re-run with --force to publish anyway."


@dataclass(frozen=True, slots=True)
class UserCancelled:
    """The operator declined to continue. A successful no-op, not a failure."""

    stage: str


@dataclass(frozen=True, slots=True)
class DiffCheckFailed:
    """Safety of the change could not be evaluated."""

    reason: str
    hint: str | None = None

    @property
    def message(self) -> str:
        return f"Unable to check for unpatchable changes: {self.reason}"


@dataclass(frozen=True, slots=True)
class BuildError:
    """Creating the diff for one architecture failed."""

    arch: str
    reason: str
    diagnostics: str = ""

    @property
    def message(self) -> str:
        return f"Failed to create patch artifact for {self.arch}: {self.reason}"

    @property
    def hint(self) -> str | None:
        return self.diagnostics or None


@dataclass(frozen=True, slots=True)
class UploadFailed:
    arch: str
    detail: str
    hint: str | None = None

    @property
    def message(self) -> str:
        return f"Failed to upload patch artifact for {self.arch}: {self.detail}"


@dataclass(frozen=True, slots=True)
class ReleaseArtifactMissing:
    arch: str
    hint: str | None = "Re-run the release command so every artifact is uploaded."

    @property
    def message(self) -> str:
        return f"Release has no {self.arch} artifact"


@dataclass(frozen=True, slots=True)
class MissingBundle:
    """A required architecture has no patch artifact."""

    arch: str
    hint: str | None = None

    @property
    def message(self) -> str:
        return f"No patch artifact was produced for {self.arch}"


@dataclass(frozen=True, slots=True)
class ReleaseVersionUnknown:
    hint: str | None = "Set `version:` in pubspec.yaml or pass --release-version."

    @property
    def message(self) -> str:
        return "Could not determine the release version of the build"


@dataclass(frozen=True, slots=True)
class StatusUpdateFailed:
    detail: str
    hint: str | None = "Re-run the command; uploaded artifacts are reused."

    @property
    def message(self) -> str:
        return f"Failed to mark release active: {self.detail}"


ValidationError = IncompleteRelease | RevisionMismatch

DiffCheckAbort = DiffCheckFailed | UnpatchableChange | UserCancelled

PatchError = (
    IncompleteRelease
    | RevisionMismatch
    | DiffCheckFailed
    | BuildError
    | UploadFailed
    | ReleaseArtifactMissing
    | ReleaseVersionUnknown
    | MissingBundle
    | StatusUpdateFailed
    | NotFoundError
    | RequestError
    | DownloadError
    | ToolchainError
)
