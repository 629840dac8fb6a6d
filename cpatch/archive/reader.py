"""Read archives into canonical path -> content hash maps.

Supports zip containers (.aab, .apk, .ipa, .zip), tar files and plain
directories. The format is detected from content, not the file name.
Nothing is extracted to disk.
"""

from __future__ import annotations

import hashlib
import tarfile
import zipfile
import zlib
from pathlib import Path, PurePosixPath
from typing import IO

from cpatch.archive.model import ExtractionError
from cpatch.core.result import Err, Ok, Result

__all__ = ["canonical_path", "read_archive"]

_CHUNK = 1024 * 1024


def canonical_path(name: str) -> str | None:
    """Normalize an archive member name, or None for entries without a path.

    Backslashes become slashes and leading "./" or "/" are dropped, so the
    same tree built on different hosts compares equal.
    """
    normalized = name.replace("\\", "/").lstrip("/")
    parts = [p for p in PurePosixPath(normalized).parts if p not in ("", ".")]
    if not parts:
        return None
    return "/".join(parts)


def _sha256_stream(stream: IO[bytes]) -> str:
    h = hashlib.sha256()
    for chunk in iter(lambda: stream.read(_CHUNK), b""):
        h.update(chunk)
    return h.hexdigest()


class _DuplicateEntry(Exception):
    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name


def _put(out: dict[str, str], name: str, digest: str) -> None:
    # Normalized names must be unique within one archive.
    if name in out:
        raise _DuplicateEntry(name)
    out[name] = digest


def _read_zip(path: Path) -> dict[str, str]:
    out: dict[str, str] = {}
    with zipfile.ZipFile(path) as zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            name = canonical_path(info.filename)
            if name is None:
                continue
            with zf.open(info) as member:
                _put(out, name, _sha256_stream(member))
    return out


def _read_tar(path: Path) -> dict[str, str]:
    out: dict[str, str] = {}
    with tarfile.open(path, mode="r:*") as tf:
        for member in tf.getmembers():
            if not member.isfile():
                continue
            name = canonical_path(member.name)
            if name is None:
                continue
            handle = tf.extractfile(member)
            if handle is None:
                continue
            with handle:
                _put(out, name, _sha256_stream(handle))
    return out


def _read_dir(root: Path) -> dict[str, str]:
    out: dict[str, str] = {}
    for file in sorted(root.rglob("*")):
        if not file.is_file():
            continue
        name = canonical_path(file.relative_to(root).as_posix())
        if name is None:
            continue
        with file.open("rb") as f:
            out[name] = _sha256_stream(f)
    return out


def read_archive(path: Path) -> Result[dict[str, str], ExtractionError]:
    """Map every file in the archive to the sha256 of its content.

    Returns:
        Ok with {canonical path: hex digest}, or Err(ExtractionError) if the
        archive is missing, corrupt, of an unsupported format or holds two
        members with the same canonical path.
    """
    if not path.exists():
        return Err(ExtractionError(archive=path, reason="not found"))

    try:
        if path.is_dir():
            return Ok(_read_dir(path))
        if zipfile.is_zipfile(path):
            return Ok(_read_zip(path))
        if tarfile.is_tarfile(path):
            return Ok(_read_tar(path))
    except (
        zipfile.BadZipFile,
        tarfile.TarError,
        zlib.error,
        EOFError,
        NotImplementedError,
    ) as e:
        return Err(ExtractionError(archive=path, reason=f"corrupt archive ({e})"))
    except _DuplicateEntry as e:
        return Err(ExtractionError(archive=path, reason=f"duplicate entry {e.name}"))
    except OSError as e:
        return Err(ExtractionError(archive=path, reason=str(e)))

    return Err(ExtractionError(archive=path, reason="unsupported or corrupt archive"))
