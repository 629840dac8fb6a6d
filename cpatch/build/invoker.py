"""Drive the platform toolchain to produce the artifacts a patch is built from."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Protocol

from cpatch.build.errors import BuildFailed, OutputMissing, ToolchainError
from cpatch.core.model import ReleasePlatform, platform_spec
from cpatch.core.result import Err, Ok, Result
from cpatch.platform.process import ProcessError
from cpatch.platform.process import run as run_process

__all__ = [
    "BuildInvoker",
    "BuildOutput",
    "FlutterBuildInvoker",
    "read_pubspec_version",
]

RunFn = Callable[[list[str], Path], Result[str, ProcessError]]

_PUBSPEC_VERSION = re.compile(r"^version:\s*['\"]?([^\s'\"#]+)", re.MULTILINE)


@dataclass(frozen=True, slots=True)
class BuildOutput:
    """What a local build produced.

    Attributes:
        archive_path: Whole-app archive compared against the release archive.
        arch_artifacts: Per-architecture input for the binary diff.
        release_version: Version the build declares, if it could be read.
    """

    archive_path: Path
    arch_artifacts: Mapping[str, Path]
    release_version: str | None


class BuildInvoker(Protocol):
    def build_artifact(
        self, platform: ReleasePlatform, flavor: str | None, target: str | None
    ) -> Result[BuildOutput, ToolchainError]: ...


def read_pubspec_version(project_root: Path) -> str | None:
    """Return the `version:` declared in pubspec.yaml, e.g. "1.2.0+3"."""
    try:
        content = (project_root / "pubspec.yaml").read_text(encoding="utf-8")
    except OSError:
        return None
    match = _PUBSPEC_VERSION.search(content)
    return match.group(1) if match else None


def _default_run(cmd: list[str], cwd: Path) -> Result[str, ProcessError]:
    return run_process(cmd, cwd=cwd)


class FlutterBuildInvoker:
    """Builds release artifacts with the flutter CLI."""

    def __init__(
        self,
        project_root: Path,
        *,
        flutter: str = "flutter",
        run: RunFn = _default_run,
    ) -> None:
        self._root = project_root
        self._flutter = flutter
        self._run = run

    def _command(self, subcommand: str, flavor: str | None, target: str | None) -> list[str]:
        cmd = [self._flutter, "build", subcommand, "--release"]
        if flavor is not None:
            cmd += ["--flavor", flavor]
        if target is not None:
            cmd += ["--target", target]
        return cmd

    def _android_outputs(self, flavor: str | None) -> tuple[Path, dict[str, Path]]:
        variant = f"{flavor}Release" if flavor is not None else "release"
        bundle_name = f"app-{flavor}-release.aab" if flavor is not None else "app-release.aab"
        archive = self._root / "build" / "app" / "outputs" / "bundle" / variant / bundle_name
        libs = (
            self._root / "build" / "app" / "intermediates" / "stripped_native_libs"
            / variant / "out" / "lib"
        )
        spec = platform_spec(ReleasePlatform.ANDROID)
        per_arch = {
            name: libs / meta.path / "libapp.so" for name, meta in spec.architectures.items()
        }
        return archive, per_arch

    def _ios_outputs(self) -> tuple[Path, dict[str, Path]]:
        archive = self._root / "build" / "ios" / "archive" / "Runner.xcarchive"
        app_binary = (
            archive / "Products" / "Applications" / "Runner.app"
            / "Frameworks" / "App.framework" / "App"
        )
        spec = platform_spec(ReleasePlatform.IOS)
        return archive, {name: app_binary for name in spec.architectures}

    def build_artifact(
        self, platform: ReleasePlatform, flavor: str | None, target: str | None
    ) -> Result[BuildOutput, ToolchainError]:
        match platform:
            case ReleasePlatform.ANDROID:
                cmd = self._command("appbundle", flavor, target)
                archive, per_arch = self._android_outputs(flavor)
            case ReleasePlatform.IOS:
                cmd = self._command("ipa", flavor, target)
                archive, per_arch = self._ios_outputs()

        built = self._run(cmd, self._root)
        if isinstance(built, Err):
            return Err(
                BuildFailed(
                    command=" ".join(cmd),
                    returncode=built.error.returncode,
                    diagnostics=built.error.diagnostics,
                )
            )

        for path in (archive, *per_arch.values()):
            if not path.exists():
                return Err(OutputMissing(path=path))

        return Ok(
            BuildOutput(
                archive_path=archive,
                arch_artifacts=MappingProxyType(per_arch),
                release_version=read_pubspec_version(self._root),
            )
        )
