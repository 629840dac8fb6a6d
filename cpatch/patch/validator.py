from __future__ import annotations

from cpatch.core.model import Release, ReleasePlatform, ReleaseStatus
from cpatch.core.result import Err, Ok, Result
from cpatch.patch.errors import IncompleteRelease, RevisionMismatch, ValidationError

__all__ = ["ReleaseStateValidator"]

# Statuses that can never serve as a patch base.
_UNUSABLE = frozenset({ReleaseStatus.DRAFT, ReleaseStatus.TERMINATED})


class ReleaseStateValidator:
    """Checks that a release can serve as the base of a patch.

    The status check runs before the revision check: an incomplete release
    has to be re-released whatever toolchain it was built with.
    """

    def validate(
        self, release: Release, platform: ReleasePlatform, expected_revision: str
    ) -> Result[None, ValidationError]:
        status = release.status_for(platform)
        if status is not None and status in _UNUSABLE:
            return Err(IncompleteRelease(version=release.version, platform=platform, status=status))

        if release.flutter_revision != expected_revision:
            return Err(
                RevisionMismatch(
                    release_revision=release.flutter_revision,
                    current_revision=expected_revision,
                )
            )

        return Ok(None)
