from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path


class ChangeClassification(IntEnum):
    """Verdict for a change set, ordered by severity."""

    NO_CHANGE = 0
    PATCHABLE_CHANGE = 1
    UNPATCHABLE_CHANGE = 2

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")


@dataclass(frozen=True, slots=True)
class ArchiveDiffResult:
    """Changed paths between two archives and their overall verdict.

    `classification` is the most severe verdict over all changed paths.
    """

    changed_paths: frozenset[str]
    classification: ChangeClassification
    path_classifications: Mapping[str, ChangeClassification]

    def paths_with(self, classification: ChangeClassification) -> tuple[str, ...]:
        """Sorted changed paths carrying the given verdict."""
        return tuple(
            sorted(p for p, c in self.path_classifications.items() if c == classification)
        )


@dataclass(frozen=True, slots=True)
class ExtractionError:
    """An archive could not be read."""

    archive: Path
    reason: str

    @property
    def message(self) -> str:
        return f"failed to read archive {self.archive}: {self.reason}"
