"""Subprocess execution for the external tools cpatch drives.

The platform toolchain (`flutter build ...`) and the binary-diff executable
both go through `run`. A non-zero exit, a missing executable or a timeout
comes back as a ProcessError value carrying the tool's own output:

    match run(["flutter", "--version"], cwd=project_root):
        case Ok(stdout):
            ...
        case Err(error):
            console.print(error.diagnostics, Style.DIM)
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from cpatch.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run"]

# Exit code recorded when the process never produced one.
NO_EXIT_CODE = -1


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A tool invocation that did not succeed.

    Attributes:
        command: argv of the invocation.
        returncode: Exit status, NO_EXIT_CODE if the tool never ran to completion.
        stdout: Captured standard output.
        stderr: Captured standard error, or the launch/timeout reason.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        shown = " ".join(self.command[:3])
        if len(self.command) > 3:
            shown += " ..."
        return f"{shown} failed (exit {self.returncode})"

    @property
    def diagnostics(self) -> str:
        """Tool output worth showing to the operator, stderr first."""
        return self.stderr.strip() or self.stdout.strip()


def _merged_env(overrides: Mapping[str, str] | None) -> dict[str, str] | None:
    if overrides is None:
        return None
    env = dict(os.environ)
    env.update(overrides)
    return env


def run(
    cmd: Sequence[str],
    cwd: Path,
    env: Mapping[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Run cmd in cwd and capture its output.

    Args:
        cmd: argv to execute.
        cwd: Working directory.
        env: Variables layered over the current environment, if any.
        timeout: Seconds before the process is killed (None waits forever).

    Returns:
        Ok(stdout) on exit status 0, Err(ProcessError) otherwise.
    """
    argv = tuple(cmd)

    def failure(returncode: int, stdout: str, stderr: str) -> Err[ProcessError]:
        return Err(ProcessError(command=argv, returncode=returncode, stdout=stdout, stderr=stderr))

    try:
        proc = subprocess.run(
            list(argv),
            cwd=str(cwd),
            env=_merged_env(env),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return failure(NO_EXIT_CODE, "", f"Command timed out after {timeout}s")
    except OSError as e:
        return failure(NO_EXIT_CODE, "", str(e))

    if proc.returncode != 0:
        return failure(proc.returncode, proc.stdout, proc.stderr)
    return Ok(proc.stdout)
