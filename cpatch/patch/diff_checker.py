"""Decide whether a rebuilt archive may ship as a patch of a release."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from urllib.parse import urlparse

from cpatch.archive.differ import ArchiveDiffer
from cpatch.archive.model import ArchiveDiffResult, ChangeClassification
from cpatch.core.model import ReleaseArtifactMeta
from cpatch.core.result import Err, Ok, Result
from cpatch.output.console import ConsoleProtocol, Style
from cpatch.patch.errors import DiffCheckAbort, DiffCheckFailed, UnpatchableChange, UserCancelled
from cpatch.store.contracts import ArtifactStore

__all__ = ["PatchDiffChecker"]

ConfirmFn = Callable[[str], bool]


def _download_name(url: str) -> str:
    return Path(urlparse(url).path).name or "release-artifact"


class PatchDiffChecker:
    """Downloads the release archive, diffs it against the local build and
    asks the operator to confirm unpatchable changes.

    `confirm` is None when nobody can answer (CI); unpatchable changes are
    then rejected unless forced.
    """

    def __init__(
        self,
        store: ArtifactStore,
        console: ConsoleProtocol,
        confirm: ConfirmFn | None = None,
    ) -> None:
        self._store = store
        self._console = console
        self._confirm = confirm

    def confirm_unpatchable_diffs_if_necessary(
        self,
        local_artifact: Path,
        remote_artifact: ReleaseArtifactMeta,
        differ: ArchiveDiffer,
        *,
        force: bool,
        work_dir: Path,
    ) -> Result[ArchiveDiffResult, DiffCheckAbort]:
        self._console.info("Verifying patch can be applied to release")

        dest = work_dir / "release-archive" / _download_name(remote_artifact.url)
        downloaded = self._store.download_artifact(remote_artifact.url, dest)
        if isinstance(downloaded, Err):
            return Err(DiffCheckFailed(reason=downloaded.error.message))

        diffed = differ.diff(downloaded.value, local_artifact)
        if isinstance(diffed, Err):
            return Err(DiffCheckFailed(reason=diffed.error.message))

        result = diffed.value
        match result.classification:
            case ChangeClassification.NO_CHANGE:
                return Ok(result)
            case ChangeClassification.PATCHABLE_CHANGE:
                count = len(result.changed_paths)
                self._console.print(f"Detected {count} patchable change(s)", Style.DIM)
                return Ok(result)
            case ChangeClassification.UNPATCHABLE_CHANGE:
                return self._confirm_unpatchable(result, force=force)

    def _confirm_unpatchable(
        self, result: ArchiveDiffResult, *, force: bool
    ) -> Result[ArchiveDiffResult, DiffCheckAbort]:
        paths = result.paths_with(ChangeClassification.UNPATCHABLE_CHANGE)
        self._console.warning(
            "The local build contains changes that cannot be applied with a patch:"
        )
        for path in paths:
            self._console.print(f"  {path}", Style.DIM)
        self._console.print(
            "If you don't know why you're seeing this, create a new release instead.",
            Style.DIM,
        )

        if force:
            self._console.warning("Continuing because --force was passed.")
            return Ok(result)

        if self._confirm is None:
            return Err(UnpatchableChange(paths=paths))

        if not self._confirm("Continue anyway?"):
            return Err(UserCancelled(stage="diff check"))

        return Ok(result)
