"""Produce one binary-diff bundle per architecture."""

from __future__ import annotations

import hashlib
import threading
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from cpatch.build.bindiff import BinaryDiffer
from cpatch.core.model import PatchArtifactBundle
from cpatch.core.result import Err, Ok, Result
from cpatch.output.console import ConsoleProtocol
from cpatch.patch.errors import BuildError

__all__ = ["PatchArtifactBuilder"]

DEFAULT_MAX_WORKERS = 4


def _sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


class PatchArtifactBuilder:
    """Diffs each architecture's release artifact against the local rebuild.

    Architectures are independent and built in a bounded thread pool. The
    first failure cancels pending work; a partial bundle set is never
    returned.
    """

    def __init__(
        self,
        differ: BinaryDiffer,
        console: ConsoleProtocol,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        self._differ = differ
        self._console = console
        self._max_workers = max(1, max_workers)

    def build(
        self,
        release_artifact: Path,
        local_artifact: Path,
        arch: str,
        *,
        work_dir: Path,
    ) -> Result[PatchArtifactBundle, BuildError]:
        self._console.detail(f"Creating artifact for {local_artifact}")
        if not local_artifact.exists():
            return Err(BuildError(arch=arch, reason=f"local artifact not found: {local_artifact}"))

        out = work_dir / "patches" / arch / "patch.bin"
        diff = self._differ.create_diff(release_artifact, local_artifact, out)
        if isinstance(diff, Err):
            return Err(
                BuildError(arch=arch, reason=diff.error.message, diagnostics=diff.error.diagnostics)
            )

        diff_path = diff.value
        try:
            # Hash and size describe the diff that is shipped, not the rebuilt artifact.
            digest = _sha256_file(diff_path)
            size = diff_path.stat().st_size
        except OSError as e:
            return Err(BuildError(arch=arch, reason=f"cannot read diff: {e}"))

        return Ok(PatchArtifactBundle(arch=arch, diff_path=diff_path, hash=digest, size=size))

    def build_all(
        self,
        release_artifacts: Mapping[str, Path],
        local_artifacts: Mapping[str, Path],
        *,
        work_dir: Path,
    ) -> Result[dict[str, PatchArtifactBundle], BuildError]:
        """Build every architecture in release_artifacts.

        Returns:
            Ok with one bundle per architecture, or Err naming the first
            architecture that failed.
        """
        archs = sorted(release_artifacts)
        for arch in archs:
            if arch not in local_artifacts:
                return Err(BuildError(arch=arch, reason="no local artifact for this architecture"))

        bundles: dict[str, PatchArtifactBundle] = {}
        lock = threading.Lock()

        def build_one(arch: str) -> Result[PatchArtifactBundle, BuildError]:
            result = self.build(
                release_artifacts[arch], local_artifacts[arch], arch, work_dir=work_dir
            )
            if isinstance(result, Ok):
                with lock:
                    bundles[arch] = result.value
            return result

        failure: BuildError | None = None
        workers = min(self._max_workers, len(archs)) or 1
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="patch_build") as pool:
            futures = [pool.submit(build_one, arch) for arch in archs]
            for future in as_completed(futures):
                result = future.result()
                if isinstance(result, Err):
                    failure = result.error
                    pool.shutdown(wait=False, cancel_futures=True)
                    break

        if failure is not None:
            return Err(failure)

        with lock:
            return Ok(dict(bundles))
