from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class BuildFailed:
    """The platform toolchain exited with an error."""

    command: str
    returncode: int
    diagnostics: str

    @property
    def message(self) -> str:
        return f"Failed to build: {self.command} (exit {self.returncode})"

    @property
    def hint(self) -> str | None:
        return self.diagnostics or None


@dataclass(frozen=True, slots=True)
class OutputMissing:
    path: Path

    @property
    def message(self) -> str:
        return f"build output not found: {self.path}"

    @property
    def hint(self) -> str | None:
        return "The build succeeded but did not produce the expected artifact."


@dataclass(frozen=True, slots=True)
class DiffToolError:
    """The binary-diff primitive failed."""

    reason: str
    diagnostics: str = ""

    @property
    def message(self) -> str:
        return self.reason


ToolchainError = BuildFailed | OutputMissing
