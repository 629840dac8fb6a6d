"""Compare two archive trees and decide whether the change is patchable.

A patch can only replace the compiled Dart snapshot and bundled assets.
Anything else that changed (native code, dex, manifests, plists, other
frameworks) only reaches users through a new release.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from cpatch.archive.model import ArchiveDiffResult, ChangeClassification, ExtractionError
from cpatch.archive.reader import read_archive
from cpatch.core.model import ReleasePlatform
from cpatch.core.result import Err, Ok, Result

__all__ = [
    "ANDROID_RULES",
    "IOS_RULES",
    "AndroidArchiveDiffer",
    "ArchiveDiffer",
    "ArchiveRules",
    "IosArchiveDiffer",
    "changed_paths",
    "differ_for",
]


@dataclass(frozen=True, slots=True)
class ArchiveRules:
    """Path rules for one platform, as regular expressions.

    Ignored paths never count as changes. Patchable paths yield
    PATCHABLE_CHANGE; every other changed path is UNPATCHABLE_CHANGE.
    """

    ignored: tuple[re.Pattern[str], ...]
    patchable: tuple[re.Pattern[str], ...]

    def is_ignored(self, path: str) -> bool:
        return any(p.search(path) for p in self.ignored)

    def classify(self, path: str) -> ChangeClassification:
        if any(p.search(path) for p in self.patchable):
            return ChangeClassification.PATCHABLE_CHANGE
        return ChangeClassification.UNPATCHABLE_CHANGE


def _compile(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p) for p in patterns)


# App bundles prefix modules with "base/"; plain APKs do not.
ANDROID_RULES = ArchiveRules(
    ignored=_compile(r"^META-INF/", r"^BUNDLE-METADATA/"),
    patchable=_compile(r"^(base/)?assets/", r"^(base/)?lib/[^/]+/libapp\.so$"),
)

IOS_RULES = ArchiveRules(
    ignored=_compile(
        r"(^|/)_CodeSignature/",
        r"(^|/)\.DS_Store$",
        r"(^|/)embedded\.mobileprovision$",
    ),
    patchable=_compile(r"(^|/)App\.framework/App$", r"(^|/)flutter_assets/"),
)


def changed_paths(base: dict[str, str], candidate: dict[str, str]) -> list[str]:
    """Sorted paths added, removed or modified between two hash maps."""
    return sorted(p for p in base.keys() | candidate.keys() if base.get(p) != candidate.get(p))


class ArchiveDiffer:
    """Platform-aware archive comparison.

    The result only depends on archive content: paths are canonicalized and
    sorted, so filesystem or member order never changes the verdict.
    """

    def __init__(self, rules: ArchiveRules) -> None:
        self._rules = rules

    @property
    def rules(self) -> ArchiveRules:
        return self._rules

    def diff(
        self, base_archive: Path, candidate_archive: Path
    ) -> Result[ArchiveDiffResult, ExtractionError]:
        base = read_archive(base_archive)
        if isinstance(base, Err):
            return base
        candidate = read_archive(candidate_archive)
        if isinstance(candidate, Err):
            return candidate

        classified: dict[str, ChangeClassification] = {}
        for path in changed_paths(base.value, candidate.value):
            if self._rules.is_ignored(path):
                continue
            classified[path] = self._rules.classify(path)

        verdict = max(classified.values(), default=ChangeClassification.NO_CHANGE)
        return Ok(
            ArchiveDiffResult(
                changed_paths=frozenset(classified),
                classification=verdict,
                path_classifications=MappingProxyType(classified),
            )
        )


class AndroidArchiveDiffer(ArchiveDiffer):
    def __init__(self) -> None:
        super().__init__(ANDROID_RULES)


class IosArchiveDiffer(ArchiveDiffer):
    def __init__(self) -> None:
        super().__init__(IOS_RULES)


def differ_for(platform: ReleasePlatform) -> ArchiveDiffer:
    match platform:
        case ReleasePlatform.ANDROID:
            return AndroidArchiveDiffer()
        case ReleasePlatform.IOS:
            return IosArchiveDiffer()
