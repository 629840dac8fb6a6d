"""Tests for cpatch.archive.reader module."""

from __future__ import annotations

import hashlib
import io
import tarfile
from pathlib import Path

import pytest

from cpatch.archive.reader import canonical_path, read_archive
from cpatch.core.result import Err, Ok
from cpatch.test.fakes import write_zip


class TestCanonicalPath:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("base/assets/a.txt", "base/assets/a.txt"),
            ("./base/assets/a.txt", "base/assets/a.txt"),
            ("/lib/arm64-v8a/libapp.so", "lib/arm64-v8a/libapp.so"),
            ("lib\\x86_64\\libapp.so", "lib/x86_64/libapp.so"),
            ("a//b", "a/b"),
            ("./", None),
            ("", None),
        ],
    )
    def test_normalizes(self, name: str, expected: str | None) -> None:
        assert canonical_path(name) == expected


class TestReadArchive:
    def test_zip(self, tmp_path: Path) -> None:
        archive = write_zip(tmp_path / "app.aab", {"base/assets/a.txt": b"hello", "dir/": b""})

        result = read_archive(archive)

        assert isinstance(result, Ok)
        assert result.value == {"base/assets/a.txt": hashlib.sha256(b"hello").hexdigest()}

    def test_tar(self, tmp_path: Path) -> None:
        archive = tmp_path / "app.tar.gz"
        with tarfile.open(archive, "w:gz") as tf:
            data = b"snapshot"
            info = tarfile.TarInfo("./App.framework/App")
            info.size = len(data)
            tf.addfile(info, io.BytesIO(data))

        result = read_archive(archive)

        assert isinstance(result, Ok)
        assert list(result.value) == ["App.framework/App"]

    def test_directory(self, tmp_path: Path) -> None:
        root = tmp_path / "Runner.xcarchive"
        binary = root / "Products" / "Applications" / "Runner.app" / "Info.plist"
        binary.parent.mkdir(parents=True)
        binary.write_bytes(b"plist")

        result = read_archive(root)

        assert isinstance(result, Ok)
        assert "Products/Applications/Runner.app/Info.plist" in result.value

    def test_format_detected_from_content(self, tmp_path: Path) -> None:
        archive = write_zip(tmp_path / "release.bin", {"a": b"1"})

        result = read_archive(archive)

        assert isinstance(result, Ok)
        assert "a" in result.value

    def test_missing(self, tmp_path: Path) -> None:
        result = read_archive(tmp_path / "nope.aab")

        assert isinstance(result, Err)
        assert "not found" in result.error.message

    def test_not_an_archive(self, tmp_path: Path) -> None:
        path = tmp_path / "garbage.aab"
        path.write_bytes(b"definitely not a zip file")

        result = read_archive(path)

        assert isinstance(result, Err)
        assert result.error.archive == path

    def test_corrupt_member(self, tmp_path: Path) -> None:
        archive = write_zip(tmp_path / "app.aab", {"base/assets/a.txt": b"x" * 4096})
        raw = bytearray(archive.read_bytes())
        # Flip bytes inside the stored member data; the CRC check then fails.
        start = raw.index(b"x" * 64)
        raw[start : start + 64] = b"y" * 64
        archive.write_bytes(bytes(raw))

        result = read_archive(archive)

        assert isinstance(result, Err)
        assert "corrupt" in result.error.reason

    @pytest.mark.parametrize("names", [("x", "./x"), ("./x", "x")])
    def test_zip_entries_normalizing_to_one_path(
        self, tmp_path: Path, names: tuple[str, str]
    ) -> None:
        first, second = names
        archive = write_zip(tmp_path / "app.aab", {first: b"1", second: b"2"})

        result = read_archive(archive)

        assert isinstance(result, Err)
        assert result.error.reason == "duplicate entry x"

    def test_tar_repeated_member(self, tmp_path: Path) -> None:
        archive = tmp_path / "app.tar"
        with tarfile.open(archive, "w") as tf:
            for name, data in (("lib/app.so", b"old"), ("/lib/app.so", b"new")):
                info = tarfile.TarInfo(name)
                info.size = len(data)
                tf.addfile(info, io.BytesIO(data))

        result = read_archive(archive)

        assert isinstance(result, Err)
        assert "duplicate entry lib/app.so" in result.error.message
