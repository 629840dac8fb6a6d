"""Collaborator interface for the remote artifact store."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from cpatch.core.model import (
    App,
    Release,
    ReleaseArtifactMeta,
    ReleasePlatform,
    ReleaseStatus,
)
from cpatch.core.result import Result
from cpatch.store.errors import (
    ConflictError,
    DownloadError,
    NotFoundError,
    RequestError,
    UploadError,
)

__all__ = ["ArtifactStore"]


class ArtifactStore(Protocol):
    """Remote store of apps, releases and their artifacts.

    Implementations own transport retry and backoff and only return an
    error once it is terminal.
    """

    def get_app(self, app_id: str) -> Result[App, NotFoundError | RequestError]: ...

    def get_release(
        self, app_id: str, version: str
    ) -> Result[Release, NotFoundError | RequestError]: ...

    def get_release_artifacts(
        self, release_id: int, platform: ReleasePlatform
    ) -> Result[Mapping[str, ReleaseArtifactMeta], RequestError]:
        """Return the release's artifacts keyed by arch name."""
        ...

    def download_artifact(self, url: str, dest: Path) -> Result[Path, DownloadError]:
        """Download url to dest. Non-2xx responses are DownloadError."""
        ...

    def create_patch_artifact(
        self,
        release_id: int,
        arch: str,
        platform: ReleasePlatform,
        hash: str,
        path: Path,
        *,
        track: str,
    ) -> Result[None, ConflictError | UploadError]:
        """Upload one architecture's diff.

        Returns ConflictError when an artifact with this identity already
        exists.
        """
        ...

    def update_release_status(
        self, release_id: int, platform: ReleasePlatform, status: ReleaseStatus
    ) -> Result[None, RequestError]: ...
