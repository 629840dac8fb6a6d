"""Runtime environment resolved before entering the patch core.

The toolchain revision, CI detection and server override are read from the
process environment and the toolchain install once, then passed around as a
frozen value.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .result import Err, Ok, Result

__all__ = [
    "CI_ENV_VARS",
    "EnvLoadError",
    "RuntimeEnvironment",
    "is_running_on_ci",
    "load_environment",
]

REVISION_ENV = "CPATCH_FLUTTER_REVISION"
HOSTED_URL_ENV = "CPATCH_HOSTED_URL"

# Variables set by common CI providers.
CI_ENV_VARS: tuple[str, ...] = (
    "CI",
    "CONTINUOUS_INTEGRATION",
    "BUILD_NUMBER",
    "BOT",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "CIRRUS_CI",
    "TF_BUILD",
    "BUILDKITE",
    "APPVEYOR",
    "TRAVIS",
    "JENKINS_URL",
    "BITRISE_IO",
    "CODEMAGIC",
    "CODEBUILD_BUILD_ID",
)


@dataclass(frozen=True, slots=True)
class EnvLoadError:
    """The toolchain revision could not be determined."""

    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class RuntimeEnvironment:
    flutter_revision: str
    is_ci: bool
    hosted_url: str | None = None


def is_running_on_ci(environ: Mapping[str, str]) -> bool:
    """Return True if any well-known CI variable is set to a non-empty value."""
    for name in CI_ENV_VARS:
        value = environ.get(name, "").strip().lower()
        if value and value not in {"0", "false"}:
            return True
    return False


def read_flutter_revision(toolchain_root: Path) -> str | None:
    version_file = toolchain_root / "bin" / "internal" / "flutter.version"
    try:
        revision = version_file.read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return revision or None


def load_environment(
    environ: Mapping[str, str],
    *,
    toolchain_root: Path | None,
    base_url: str | None = None,
) -> Result[RuntimeEnvironment, EnvLoadError]:
    """Resolve the runtime environment.

    The revision comes from CPATCH_FLUTTER_REVISION when set, otherwise from
    the toolchain's flutter.version file. CPATCH_HOSTED_URL overrides the
    configured base_url.
    """
    revision = environ.get(REVISION_ENV, "").strip() or None
    if revision is None and toolchain_root is not None:
        revision = read_flutter_revision(toolchain_root)
    if revision is None:
        return Err(
            EnvLoadError(
                message="could not determine the Flutter revision",
                hint=f"Set {REVISION_ENV} or pass --toolchain-root.",
            )
        )

    hosted_url = environ.get(HOSTED_URL_ENV, "").strip() or base_url
    return Ok(
        RuntimeEnvironment(
            flutter_revision=revision,
            is_ci=is_running_on_ci(environ),
            hosted_url=hosted_url,
        )
    )
