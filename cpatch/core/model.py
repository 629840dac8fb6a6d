"""Release domain model shared by the store, the archive rules and the
patch pipeline."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from types import MappingProxyType

__all__ = [
    "App",
    "ArchMetadata",
    "PatchArtifactBundle",
    "PlatformSpec",
    "Release",
    "ReleaseArtifactMeta",
    "ReleasePlatform",
    "ReleaseStatus",
    "platform_spec",
]


class ReleasePlatform(Enum):
    ANDROID = "android"
    IOS = "ios"

    def __str__(self) -> str:
        return self.value


class ReleaseStatus(Enum):
    """Lifecycle of a release on one platform."""

    DRAFT = "draft"
    ACTIVE = "active"
    TERMINATED = "terminated"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ArchMetadata:
    """An architecture and the directory its build outputs live under."""

    arch: str
    path: str


@dataclass(frozen=True, slots=True)
class PlatformSpec:
    """Per-platform publishing facts.

    Attributes:
        platform: The release platform.
        architectures: Every architecture a patch must cover, keyed by name.
        archive_arch: Artifact name of the whole-app archive used for the
            safety diff (not an instruction set).
    """

    platform: ReleasePlatform
    architectures: Mapping[str, ArchMetadata]
    archive_arch: str

    @property
    def arch_names(self) -> tuple[str, ...]:
        return tuple(sorted(self.architectures))


_ANDROID = PlatformSpec(
    platform=ReleasePlatform.ANDROID,
    architectures=MappingProxyType(
        {
            "arm32": ArchMetadata(arch="arm32", path="armeabi-v7a"),
            "arm64": ArchMetadata(arch="arm64", path="arm64-v8a"),
            "x86_64": ArchMetadata(arch="x86_64", path="x86_64"),
        }
    ),
    archive_arch="aab",
)

_IOS = PlatformSpec(
    platform=ReleasePlatform.IOS,
    architectures=MappingProxyType({"aarch64": ArchMetadata(arch="aarch64", path="arm64")}),
    archive_arch="xcarchive",
)


def platform_spec(platform: ReleasePlatform) -> PlatformSpec:
    return {ReleasePlatform.ANDROID: _ANDROID, ReleasePlatform.IOS: _IOS}[platform]


@dataclass(frozen=True, slots=True)
class App:
    app_id: str
    display_name: str


def _empty_statuses() -> Mapping[ReleasePlatform, ReleaseStatus]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class Release:
    """A published, versioned build of an app.

    One release exists per (app_id, version); each platform has its own
    status.
    """

    id: int
    app_id: str
    version: str
    flutter_revision: str
    display_name: str | None = None
    platform_statuses: Mapping[ReleasePlatform, ReleaseStatus] = field(
        default_factory=_empty_statuses
    )
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def status_for(self, platform: ReleasePlatform) -> ReleaseStatus | None:
        return self.platform_statuses.get(platform)


@dataclass(frozen=True, slots=True)
class ReleaseArtifactMeta:
    """A previously uploaded release artifact. Immutable once uploaded."""

    arch: str
    platform: ReleasePlatform
    url: str
    hash: str
    size: int


@dataclass(frozen=True, slots=True)
class PatchArtifactBundle:
    """The binary diff for one architecture, ready for upload.

    `hash` and `size` describe the diff bytes at `diff_path`, not the
    rebuilt artifact.
    """

    arch: str
    diff_path: Path
    hash: str
    size: int
