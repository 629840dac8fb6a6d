"""Tests for cpatch.patch.diff_checker module."""

from __future__ import annotations

from pathlib import Path

import pytest

from cpatch.archive.differ import AndroidArchiveDiffer
from cpatch.archive.model import ChangeClassification
from cpatch.core.model import ReleaseArtifactMeta, ReleasePlatform
from cpatch.core.result import Err, Ok
from cpatch.output.console import MockConsole
from cpatch.patch.diff_checker import PatchDiffChecker
from cpatch.patch.errors import DiffCheckFailed, UnpatchableChange, UserCancelled
from cpatch.test.fakes import FakeArtifactStore, ScriptedConfirm, write_zip

AAB_URL = "https://cdn.test/releases/7/app-release.aab"

RELEASE_AAB = {
    "base/assets/flutter_assets/AssetManifest.json": b"{}",
    "base/dex/classes.dex": b"dex-1",
}


def _meta() -> ReleaseArtifactMeta:
    return ReleaseArtifactMeta(
        arch="aab", platform=ReleasePlatform.ANDROID, url=AAB_URL, hash="h", size=1
    )


def _store(tmp_path: Path) -> FakeArtifactStore:
    release_zip = write_zip(tmp_path / "served" / "app-release.aab", RELEASE_AAB)
    return FakeArtifactStore(files={AAB_URL: release_zip.read_bytes()})


def _local(tmp_path: Path, **changed: bytes) -> Path:
    entries = dict(RELEASE_AAB)
    if "asset" in changed:
        entries["base/assets/flutter_assets/AssetManifest.json"] = changed["asset"]
    if "dex" in changed:
        entries["base/dex/classes.dex"] = changed["dex"]
    return write_zip(tmp_path / "local" / "app-release.aab", entries)


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


class TestPatchDiffChecker:
    def test_no_change(self, tmp_path: Path, work_dir: Path) -> None:
        console = MockConsole()
        checker = PatchDiffChecker(_store(tmp_path), console, ScriptedConfirm())

        result = checker.confirm_unpatchable_diffs_if_necessary(
            _local(tmp_path), _meta(), AndroidArchiveDiffer(), force=False, work_dir=work_dir
        )

        assert isinstance(result, Ok)
        assert result.value.classification == ChangeClassification.NO_CHANGE
        assert console.messages[0] == "Verifying patch can be applied to release"
        assert (work_dir / "release-archive" / "app-release.aab").exists()

    def test_patchable_change_needs_no_confirmation(self, tmp_path: Path, work_dir: Path) -> None:
        console = MockConsole()
        checker = PatchDiffChecker(_store(tmp_path), console, ScriptedConfirm())

        result = checker.confirm_unpatchable_diffs_if_necessary(
            _local(tmp_path, asset=b'{"x": 1}'),
            _meta(),
            AndroidArchiveDiffer(),
            force=False,
            work_dir=work_dir,
        )

        assert isinstance(result, Ok)
        assert result.value.classification == ChangeClassification.PATCHABLE_CHANGE
        assert console.find("1 patchable change")

    def test_unpatchable_declined(self, tmp_path: Path, work_dir: Path) -> None:
        console = MockConsole()
        confirm = ScriptedConfirm(False)
        checker = PatchDiffChecker(_store(tmp_path), console, confirm)

        result = checker.confirm_unpatchable_diffs_if_necessary(
            _local(tmp_path, dex=b"dex-2"),
            _meta(),
            AndroidArchiveDiffer(),
            force=False,
            work_dir=work_dir,
        )

        assert result == Err(UserCancelled(stage="diff check"))
        assert confirm.prompts == ["Continue anyway?"]
        assert console.has_warning()
        assert console.find("base/dex/classes.dex")

    def test_unpatchable_accepted(self, tmp_path: Path, work_dir: Path) -> None:
        checker = PatchDiffChecker(_store(tmp_path), MockConsole(), ScriptedConfirm(True))

        result = checker.confirm_unpatchable_diffs_if_necessary(
            _local(tmp_path, dex=b"dex-2"),
            _meta(),
            AndroidArchiveDiffer(),
            force=False,
            work_dir=work_dir,
        )

        assert isinstance(result, Ok)
        assert result.value.classification == ChangeClassification.UNPATCHABLE_CHANGE

    def test_unpatchable_forced_skips_prompt(self, tmp_path: Path, work_dir: Path) -> None:
        console = MockConsole()
        checker = PatchDiffChecker(_store(tmp_path), console, ScriptedConfirm())

        result = checker.confirm_unpatchable_diffs_if_necessary(
            _local(tmp_path, dex=b"dex-2"),
            _meta(),
            AndroidArchiveDiffer(),
            force=True,
            work_dir=work_dir,
        )

        assert isinstance(result, Ok)
        assert console.find("Continuing because --force was passed.")

    def test_unpatchable_without_prompt_is_rejected(self, tmp_path: Path, work_dir: Path) -> None:
        checker = PatchDiffChecker(_store(tmp_path), MockConsole(), confirm=None)

        result = checker.confirm_unpatchable_diffs_if_necessary(
            _local(tmp_path, dex=b"dex-2"),
            _meta(),
            AndroidArchiveDiffer(),
            force=False,
            work_dir=work_dir,
        )

        assert result == Err(UnpatchableChange(paths=("base/dex/classes.dex",)))

    def test_download_failure(self, tmp_path: Path, work_dir: Path) -> None:
        checker = PatchDiffChecker(FakeArtifactStore(), MockConsole(), ScriptedConfirm())

        result = checker.confirm_unpatchable_diffs_if_necessary(
            _local(tmp_path), _meta(), AndroidArchiveDiffer(), force=False, work_dir=work_dir
        )

        assert isinstance(result, Err)
        assert isinstance(result.error, DiffCheckFailed)
        assert "404" in result.error.message

    def test_corrupt_release_archive(self, tmp_path: Path, work_dir: Path) -> None:
        store = FakeArtifactStore(files={AAB_URL: b"not a zip"})
        checker = PatchDiffChecker(store, MockConsole(), ScriptedConfirm())

        result = checker.confirm_unpatchable_diffs_if_necessary(
            _local(tmp_path), _meta(), AndroidArchiveDiffer(), force=True, work_dir=work_dir
        )

        assert isinstance(result, Err)
        assert isinstance(result.error, DiffCheckFailed)
