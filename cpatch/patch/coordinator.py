"""Sequence a patch publish.

validate release -> build -> diff check -> build bundles -> confirm ->
upload -> mark release active. With an explicit release version the release
is validated before the toolchain runs; otherwise the build supplies the
version. Any failure before the upload stage leaves the server
untouched. Uploads are not rolled back; re-running is safe because existing
artifacts are reported as conflicts and counted as done.
"""

from __future__ import annotations

import tempfile
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from cpatch.archive.differ import ArchiveDiffer, differ_for
from cpatch.build.bindiff import BinaryDiffer
from cpatch.build.invoker import BuildInvoker
from cpatch.core.model import (
    App,
    PatchArtifactBundle,
    Release,
    ReleaseArtifactMeta,
    ReleasePlatform,
    ReleaseStatus,
    platform_spec,
)
from cpatch.core.result import Err
from cpatch.output.console import ConsoleProtocol, Style
from cpatch.output.format import format_bytes
from cpatch.patch.builder import DEFAULT_MAX_WORKERS, PatchArtifactBuilder
from cpatch.patch.diff_checker import PatchDiffChecker
from cpatch.patch.errors import (
    DiffCheckFailed,
    MissingBundle,
    ReleaseArtifactMissing,
    ReleaseVersionUnknown,
    StatusUpdateFailed,
    UnpatchableChange,
    UploadFailed,
    UserCancelled,
)
from cpatch.patch.outcome import Cancelled, Failed, Published, PublishOutcome, Rejected
from cpatch.patch.validator import ReleaseStateValidator
from cpatch.store.contracts import ArtifactStore
from cpatch.store.errors import ConflictError, UploadError

__all__ = [
    "PatchDeps",
    "PatchRequest",
    "PublishCoordinator",
    "PublishOptions",
]


@dataclass(frozen=True, slots=True)
class PublishOptions:
    force: bool = False
    dry_run: bool = False
    is_ci: bool = False

    @property
    def interactive(self) -> bool:
        return not self.is_ci


@dataclass(frozen=True, slots=True)
class PatchRequest:
    """Everything PublishPatch needs, resolved from config and flags."""

    app_id: str
    platform: ReleasePlatform
    flutter_revision: str
    track: str = "stable"
    flavor: str | None = None
    target: str | None = None
    release_version: str | None = None
    options: PublishOptions = field(default_factory=PublishOptions)


@dataclass(frozen=True, slots=True)
class PatchDeps:
    """Collaborators handed to the coordinator at construction."""

    store: ArtifactStore
    build_invoker: BuildInvoker
    binary_differ: BinaryDiffer
    console: ConsoleProtocol
    confirm: Callable[[str], bool]
    archive_differ_for: Callable[[ReleasePlatform], ArchiveDiffer] = differ_for
    max_workers: int = DEFAULT_MAX_WORKERS
    work_root: Path | None = None


class PublishCoordinator:
    def __init__(self, deps: PatchDeps) -> None:
        self._deps = deps
        self._store = deps.store
        self._console = deps.console
        self._validator = ReleaseStateValidator()
        self._builder = PatchArtifactBuilder(
            deps.binary_differ, deps.console, max_workers=deps.max_workers
        )

    def _diff_checker(self, options: PublishOptions) -> PatchDiffChecker:
        confirm = self._deps.confirm if options.interactive else None
        return PatchDiffChecker(self._store, self._console, confirm)

    def publish_patch(self, request: PatchRequest) -> PublishOutcome:
        """Build, check and publish a patch for the release the build targets."""
        options = request.options
        platform = request.platform
        spec = platform_spec(platform)

        app = self._store.get_app(request.app_id)
        if isinstance(app, Err):
            return Failed(app.error)

        # Validate before building when the version is already known.
        release: Release | None = None
        if request.release_version is not None:
            checked = self._checked_release(request, request.release_version)
            if isinstance(checked, Failed):
                return checked
            release = checked

        self._console.info("Building patch")
        build = self._deps.build_invoker.build_artifact(platform, request.flavor, request.target)
        if isinstance(build, Err):
            return Failed(build.error)

        if release is None:
            version = build.value.release_version
            if version is None:
                return Failed(ReleaseVersionUnknown())
            self._console.print(f"Detected release version {version}", Style.DIM)
            checked = self._checked_release(request, version)
            if isinstance(checked, Failed):
                return checked
            release = checked

        artifacts = self._store.get_release_artifacts(release.id, platform)
        if isinstance(artifacts, Err):
            return Failed(artifacts.error)
        for arch in (spec.archive_arch, *spec.arch_names):
            if arch not in artifacts.value:
                return Failed(ReleaseArtifactMissing(arch=arch))

        with tempfile.TemporaryDirectory(prefix="cpatch-", dir=self._deps.work_root) as tmp:
            work_dir = Path(tmp)

            diff_check = self._diff_checker(options).confirm_unpatchable_diffs_if_necessary(
                build.value.archive_path,
                artifacts.value[spec.archive_arch],
                self._deps.archive_differ_for(platform),
                force=options.force,
                work_dir=work_dir,
            )
            if isinstance(diff_check, Err):
                match diff_check.error:
                    case UserCancelled(stage=stage):
                        self._console.info("Aborting.")
                        return Cancelled(stage=stage)
                    case UnpatchableChange() as reason:
                        self._console.info("Exiting.")
                        return Rejected(reason=reason)
                    case DiffCheckFailed() as error:
                        return Failed(error)

            self._console.info("Downloading release artifacts")
            release_paths: dict[str, Path] = {}
            for arch in spec.arch_names:
                downloaded = self._download(artifacts.value[arch], work_dir / "release" / arch)
                if isinstance(downloaded, Failed):
                    return downloaded
                release_paths[arch] = downloaded

            self._console.info("Creating artifacts")
            bundles = self._builder.build_all(
                release_paths, build.value.arch_artifacts, work_dir=work_dir
            )
            if isinstance(bundles, Err):
                return Failed(bundles.error)

            return self.publish(
                release,
                platform,
                request.track,
                bundles.value,
                options,
                app=app.value,
                flavor=request.flavor,
            )

    def _checked_release(self, request: PatchRequest, version: str) -> Release | Failed:
        """Fetch the release for version and check it can be patched."""
        release = self._store.get_release(request.app_id, version)
        if isinstance(release, Err):
            return Failed(release.error)

        valid = self._validator.validate(
            release.value, request.platform, request.flutter_revision
        )
        if isinstance(valid, Err):
            return Failed(valid.error)
        return release.value

    def _download(self, meta: ReleaseArtifactMeta, dest_dir: Path) -> Path | Failed:
        name = Path(urlparse(meta.url).path).name or "release-artifact"
        downloaded = self._store.download_artifact(meta.url, dest_dir / name)
        if isinstance(downloaded, Err):
            return Failed(downloaded.error)
        return downloaded.value

    def publish(
        self,
        release: Release,
        platform: ReleasePlatform,
        track: str,
        bundles: Mapping[str, PatchArtifactBundle],
        options: PublishOptions,
        *,
        app: App,
        flavor: str | None = None,
    ) -> PublishOutcome:
        """Upload one bundle per architecture and mark the release active.

        A dry run stops before touching the server. A declined confirmation
        returns Cancelled with nothing uploaded.
        """
        arch_names = platform_spec(platform).arch_names
        for arch in arch_names:
            if arch not in bundles:
                return Failed(MissingBundle(arch=arch))

        if options.dry_run:
            self._console.info("No issues detected.")
            self._console.info("The server may enforce additional checks.")
            return Published(uploaded_architectures=(), final_status=None, dry_run=True)

        self._print_summary(release, platform, track, bundles, app=app, flavor=flavor)

        if not options.force and not options.is_ci:
            if not self._deps.confirm("Would you like to continue?"):
                self._console.info("Aborting.")
                return Cancelled(stage="publish confirmation")

        uploaded: list[str] = []
        for arch in arch_names:
            bundle = bundles[arch]
            created = self._store.create_patch_artifact(
                release.id, arch, platform, bundle.hash, bundle.diff_path, track=track
            )
            if isinstance(created, Err):
                match created.error:
                    case ConflictError():
                        self._console.info(f"{arch} patch artifact already exists, continuing...")
                    case UploadError(status=code, detail=detail):
                        reason = f"HTTP {code} {detail}" if code else detail
                        return Failed(UploadFailed(arch=arch, detail=reason))
            uploaded.append(arch)

        status = self._store.update_release_status(release.id, platform, ReleaseStatus.ACTIVE)
        if isinstance(status, Err):
            return Failed(StatusUpdateFailed(detail=status.error.message))

        self._console.success("Published Patch!")
        return Published(uploaded_architectures=tuple(uploaded), final_status=ReleaseStatus.ACTIVE)

    def _print_summary(
        self,
        release: Release,
        platform: ReleasePlatform,
        track: str,
        bundles: Mapping[str, PatchArtifactBundle],
        *,
        app: App,
        flavor: str | None,
    ) -> None:
        archs = ", ".join(
            f"{arch} ({format_bytes(bundles[arch].size)})" for arch in sorted(bundles)
        )
        self._console.header("Ready to publish a new patch!")
        self._console.print(f"App: {app.display_name} ({app.app_id})")
        if flavor is not None:
            self._console.print(f"Flavor: {flavor}")
        self._console.print(f"Release Version: {release.version}")
        self._console.print(f"Track: {track}")
        self._console.print(f"Platform: {platform} [{archs}]")
        self._console.newline()
