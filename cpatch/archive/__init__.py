"""Archive comparison and change classification."""

from .differ import (
    ANDROID_RULES,
    IOS_RULES,
    AndroidArchiveDiffer,
    ArchiveDiffer,
    ArchiveRules,
    IosArchiveDiffer,
    differ_for,
)
from .model import ArchiveDiffResult, ChangeClassification, ExtractionError
from .reader import canonical_path, read_archive

__all__ = [
    "ANDROID_RULES",
    "IOS_RULES",
    "AndroidArchiveDiffer",
    "ArchiveDiffResult",
    "ArchiveDiffer",
    "ArchiveRules",
    "ChangeClassification",
    "ExtractionError",
    "IosArchiveDiffer",
    "canonical_path",
    "differ_for",
    "read_archive",
]
