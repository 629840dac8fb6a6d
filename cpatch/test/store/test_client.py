"""Tests for cpatch.store.client module."""

from __future__ import annotations

from pathlib import Path

from cpatch.core.model import ReleasePlatform, ReleaseStatus
from cpatch.core.result import Err, Ok
from cpatch.store.client import CodePushArtifactStore, parse_release
from cpatch.store.errors import ConflictError, DownloadError, NotFoundError, UploadError
from cpatch.store.http import HttpError, MockHttpClient

BASE = "https://api.test"
API = f"{BASE}/api/v1"


def _store() -> tuple[CodePushArtifactStore, MockHttpClient]:
    http = MockHttpClient()
    return CodePushArtifactStore(http, BASE + "/"), http


def _release_json(version: str = "1.0.0", **extra: object) -> dict[str, object]:
    return {
        "id": 7,
        "app_id": "app-1",
        "version": version,
        "flutter_revision": "rev-a",
        "platform_statuses": {"android": "active", "ios": "draft"},
        **extra,
    }


class TestParseRelease:
    def test_full(self) -> None:
        release = parse_release(_release_json(created_at="2024-05-01T10:00:00+00:00"))

        assert release is not None
        assert release.id == 7
        assert release.status_for(ReleasePlatform.ANDROID) is ReleaseStatus.ACTIVE
        assert release.status_for(ReleasePlatform.IOS) is ReleaseStatus.DRAFT
        assert release.created_at is not None
        assert release.created_at.year == 2024

    def test_unknown_platform_and_status_skipped(self) -> None:
        release = parse_release(
            _release_json(platform_statuses={"windows": "active", "android": "archived"})
        )

        assert release is not None
        assert dict(release.platform_statuses) == {}

    def test_missing_required_field(self) -> None:
        data = _release_json()
        del data["flutter_revision"]
        assert parse_release(data) is None

    def test_bad_timestamp_ignored(self) -> None:
        release = parse_release(_release_json(updated_at="yesterday"))
        assert release is not None
        assert release.updated_at is None


class TestGetApp:
    def test_found(self) -> None:
        store, http = _store()
        http.set_json(f"{API}/apps/app-1", {"app_id": "app-1", "display_name": "Example"})

        result = store.get_app("app-1")

        assert isinstance(result, Ok)
        assert result.value.display_name == "Example"

    def test_not_found(self) -> None:
        store, _ = _store()

        result = store.get_app("app-1")

        assert isinstance(result, Err)
        assert isinstance(result.error, NotFoundError)
        assert result.error.hint == "Check app_id in cpatch.toml."


class TestGetRelease:
    def test_matches_version(self) -> None:
        store, http = _store()
        http.set_json(
            f"{API}/apps/app-1/releases?version=1.0.0",
            [_release_json("0.9.0"), _release_json("1.0.0")],
        )

        result = store.get_release("app-1", "1.0.0")

        assert isinstance(result, Ok)
        assert result.value.version == "1.0.0"

    def test_missing(self) -> None:
        store, http = _store()
        http.set_json(f"{API}/apps/app-1/releases?version=1.0.0", [])

        result = store.get_release("app-1", "1.0.0")

        assert isinstance(result, Err)
        assert result.error.message == "release 1.0.0 not found"


class TestGetReleaseArtifacts:
    def test_keyed_by_arch(self) -> None:
        store, http = _store()
        http.set_json(
            f"{API}/releases/7/artifacts?platform=android",
            [
                {"arch": "aab", "url": "https://cdn/a.aab", "hash": "h1", "size": 10},
                {"arch": "arm64", "url": "https://cdn/libapp.so", "hash": "h2", "size": 5},
                {"arch": "broken"},
            ],
        )

        result = store.get_release_artifacts(7, ReleasePlatform.ANDROID)

        assert isinstance(result, Ok)
        assert sorted(result.value) == ["aab", "arm64"]
        assert result.value["arm64"].platform is ReleasePlatform.ANDROID


class TestDownloadArtifact:
    def test_success(self, tmp_path: Path) -> None:
        store, http = _store()
        http.set_download("https://cdn/a.aab", b"zip-bytes")

        result = store.download_artifact("https://cdn/a.aab", tmp_path / "a.aab")

        assert isinstance(result, Ok)
        assert result.value.read_bytes() == b"zip-bytes"

    def test_failure_removes_partial_file(self, tmp_path: Path) -> None:
        store, http = _store()
        dest = tmp_path / "a.aab"
        dest.write_bytes(b"partial")
        http.set_download("https://cdn/a.aab", HttpError("https://cdn/a.aab", 403, "Forbidden"))

        result = store.download_artifact("https://cdn/a.aab", dest)

        assert isinstance(result, Err)
        assert isinstance(result.error, DownloadError)
        assert result.error.message == "Failed to download release artifact: 403 Forbidden"
        assert not dest.exists()


class TestCreatePatchArtifact:
    def _diff(self, tmp_path: Path) -> Path:
        path = tmp_path / "patch.bin"
        path.write_bytes(b"diff")
        return path

    def test_success_posts_metadata_then_uploads(self, tmp_path: Path) -> None:
        store, http = _store()
        http.set_send("POST", f"{API}/releases/7/patch-artifacts", {"upload_url": "https://up/1"})

        result = store.create_patch_artifact(
            7, "arm64", ReleasePlatform.ANDROID, "abc", self._diff(tmp_path), track="beta"
        )

        assert result == Ok(None)
        assert http.calls == [
            ("POST", f"{API}/releases/7/patch-artifacts"),
            ("PUT", "https://up/1"),
        ]
        assert http.payloads == [
            {"arch": "arm64", "platform": "android", "hash": "abc", "size": 4, "track": "beta"}
        ]

    def test_conflict(self, tmp_path: Path) -> None:
        store, http = _store()
        url = f"{API}/releases/7/patch-artifacts"
        http.set_send("POST", url, HttpError(url, 409, "Conflict"))

        result = store.create_patch_artifact(
            7, "arm64", ReleasePlatform.ANDROID, "abc", self._diff(tmp_path), track="stable"
        )

        assert result == Err(ConflictError(arch="arm64"))
        assert ("PUT", "https://up/1") not in http.calls

    def test_server_error(self, tmp_path: Path) -> None:
        store, http = _store()
        url = f"{API}/releases/7/patch-artifacts"
        http.set_send("POST", url, HttpError(url, 500, "Internal Server Error"))

        result = store.create_patch_artifact(
            7, "arm32", ReleasePlatform.ANDROID, "abc", self._diff(tmp_path), track="stable"
        )

        assert isinstance(result, Err)
        assert isinstance(result.error, UploadError)
        assert result.error.status == 500
        assert "arm32" in result.error.message

    def test_missing_upload_url(self, tmp_path: Path) -> None:
        store, http = _store()
        http.set_send("POST", f"{API}/releases/7/patch-artifacts", {})

        result = store.create_patch_artifact(
            7, "arm32", ReleasePlatform.ANDROID, "abc", self._diff(tmp_path), track="stable"
        )

        assert isinstance(result, Err)
        assert isinstance(result.error, UploadError)

    def test_put_failure(self, tmp_path: Path) -> None:
        store, http = _store()
        http.set_send("POST", f"{API}/releases/7/patch-artifacts", {"upload_url": "https://up/1"})
        http.fail_put("https://up/1", HttpError("https://up/1", 503, "Unavailable"))

        result = store.create_patch_artifact(
            7, "x86_64", ReleasePlatform.ANDROID, "abc", self._diff(tmp_path), track="stable"
        )

        assert isinstance(result, Err)
        assert isinstance(result.error, UploadError)
        assert result.error.status == 503


class TestUpdateReleaseStatus:
    def test_patch_request(self) -> None:
        store, http = _store()
        http.set_send("PATCH", f"{API}/releases/7", None)

        result = store.update_release_status(7, ReleasePlatform.IOS, ReleaseStatus.ACTIVE)

        assert result == Ok(None)
        assert http.payloads == [{"platform": "ios", "status": "active"}]

    def test_failure(self) -> None:
        store, _ = _store()

        result = store.update_release_status(7, ReleasePlatform.IOS, ReleaseStatus.ACTIVE)

        assert isinstance(result, Err)
        assert result.error.status == 404
