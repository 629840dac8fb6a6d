"""Binary-diff primitive.

Any deterministic delta algorithm satisfies the patch builder; the default
shells out to a delta executable invoked as `<tool> <base> <new> <out>`.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from cpatch.build.errors import DiffToolError
from cpatch.core.result import Err, Ok, Result
from cpatch.platform.process import ProcessError
from cpatch.platform.process import run as run_process

__all__ = ["BinaryDiffer", "ExternalDiffTool"]


class BinaryDiffer(Protocol):
    def create_diff(self, base: Path, new: Path, out: Path) -> Result[Path, DiffToolError]:
        """Write the delta turning base into new to out."""
        ...


class ExternalDiffTool:
    def __init__(
        self,
        executable: Path | str,
        *,
        run: Callable[[list[str], Path], Result[str, ProcessError]] | None = None,
    ) -> None:
        self._executable = str(executable)
        self._run = run or (lambda cmd, cwd: run_process(cmd, cwd=cwd))

    def create_diff(self, base: Path, new: Path, out: Path) -> Result[Path, DiffToolError]:
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Err(DiffToolError(reason=f"cannot create {out.parent}: {e}"))
        cmd = [self._executable, str(base), str(new), str(out)]
        result = self._run(cmd, out.parent)
        if isinstance(result, Err):
            return Err(
                DiffToolError(
                    reason=f"diff tool failed (exit {result.error.returncode})",
                    diagnostics=result.error.diagnostics,
                )
            )
        if not out.exists():
            return Err(DiffToolError(reason=f"diff tool produced no output at {out}"))
        return Ok(out)
