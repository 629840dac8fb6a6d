"""ArtifactStore backed by the code push HTTP API."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from types import MappingProxyType
from urllib.parse import quote, urlencode

from cpatch.core.model import (
    App,
    Release,
    ReleaseArtifactMeta,
    ReleasePlatform,
    ReleaseStatus,
)
from cpatch.core.result import Err, Ok, Result
from cpatch.core.structured import StrDict, as_str_dict, get_int, get_str, get_table
from cpatch.store.errors import (
    ConflictError,
    DownloadError,
    NotFoundError,
    RequestError,
    UploadError,
)
from cpatch.store.http import HttpClient, HttpError, JsonBody

__all__ = ["CodePushArtifactStore", "DEFAULT_BASE_URL", "parse_release"]

DEFAULT_BASE_URL = "https://api.cpatch.dev"

_HTTP_NOT_FOUND = 404
_HTTP_CONFLICT = 409


def _request_error(error: HttpError) -> RequestError:
    return RequestError(url=error.url, status=error.status, detail=error.message)


def _upload_error(arch: str, error: HttpError) -> UploadError:
    return UploadError(arch=arch, status=error.status, detail=error.message)


def _parse_datetime(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def parse_release(obj: StrDict) -> Release | None:
    """Build a Release from its JSON form, or None if it is malformed."""
    release_id = get_int(obj, "id")
    app_id = get_str(obj, "app_id")
    version = get_str(obj, "version")
    revision = get_str(obj, "flutter_revision")
    if release_id is None or app_id is None or version is None or revision is None:
        return None

    statuses: dict[ReleasePlatform, ReleaseStatus] = {}
    raw_statuses = get_table(obj, "platform_statuses") or {}
    for platform_name, status_name in raw_statuses.items():
        try:
            platform = ReleasePlatform(platform_name)
            status = ReleaseStatus(status_name)
        except ValueError:
            # Platforms/statuses this client does not know about.
            continue
        statuses[platform] = status

    return Release(
        id=release_id,
        app_id=app_id,
        version=version,
        flutter_revision=revision,
        display_name=get_str(obj, "display_name"),
        platform_statuses=MappingProxyType(statuses),
        created_at=_parse_datetime(get_str(obj, "created_at")),
        updated_at=_parse_datetime(get_str(obj, "updated_at")),
    )


def _parse_artifact(obj: StrDict, platform: ReleasePlatform) -> ReleaseArtifactMeta | None:
    arch = get_str(obj, "arch")
    url = get_str(obj, "url")
    hash_ = get_str(obj, "hash")
    size = get_int(obj, "size")
    if arch is None or url is None or hash_ is None or size is None:
        return None
    return ReleaseArtifactMeta(arch=arch, platform=platform, url=url, hash=hash_, size=size)


def _as_items(body: JsonBody) -> list[StrDict]:
    if not isinstance(body, list):
        return []
    items: list[StrDict] = []
    for item in body:
        obj = as_str_dict(item)
        if obj is not None:
            items.append(obj)
    return items


class CodePushArtifactStore:
    """Talks to the code push server through an injected HttpClient."""

    def __init__(self, http: HttpClient, base_url: str = DEFAULT_BASE_URL) -> None:
        self._http = http
        self._base = base_url.rstrip("/") + "/api/v1"

    def _url(self, *segments: str | int, query: dict[str, str] | None = None) -> str:
        path = "/".join(quote(str(s), safe="") for s in segments)
        url = f"{self._base}/{path}"
        if query:
            url += "?" + urlencode(query)
        return url

    def get_app(self, app_id: str) -> Result[App, NotFoundError | RequestError]:
        url = self._url("apps", app_id)
        body = self._http.get_json(url)
        if isinstance(body, Err):
            if body.error.status == _HTTP_NOT_FOUND:
                return Err(
                    NotFoundError(
                        resource=f'app "{app_id}"',
                        hint="Check app_id in cpatch.toml.",
                    )
                )
            return Err(_request_error(body.error))

        obj = as_str_dict(body.value)
        found_id = get_str(obj, "app_id") if obj is not None else None
        if obj is None or found_id is None:
            return Err(RequestError(url=url, status=0, detail="malformed app response"))
        return Ok(App(app_id=found_id, display_name=get_str(obj, "display_name") or found_id))

    def get_release(
        self, app_id: str, version: str
    ) -> Result[Release, NotFoundError | RequestError]:
        url = self._url("apps", app_id, "releases", query={"version": version})
        body = self._http.get_json(url)
        if isinstance(body, Err):
            return Err(_request_error(body.error))

        for item in _as_items(body.value):
            release = parse_release(item)
            if release is not None and release.version == version:
                return Ok(release)

        return Err(
            NotFoundError(
                resource=f"release {version}",
                hint="Create the release first, then patch it.",
            )
        )

    def get_release_artifacts(
        self, release_id: int, platform: ReleasePlatform
    ) -> Result[Mapping[str, ReleaseArtifactMeta], RequestError]:
        url = self._url("releases", release_id, "artifacts", query={"platform": platform.value})
        body = self._http.get_json(url)
        if isinstance(body, Err):
            return Err(_request_error(body.error))

        artifacts: dict[str, ReleaseArtifactMeta] = {}
        for item in _as_items(body.value):
            meta = _parse_artifact(item, platform)
            if meta is not None:
                artifacts[meta.arch] = meta
        return Ok(MappingProxyType(artifacts))

    def download_artifact(self, url: str, dest: Path) -> Result[Path, DownloadError]:
        result = self._http.download(url, dest)
        if isinstance(result, Err):
            if dest.exists():
                dest.unlink()
            error = result.error
            return Err(DownloadError(url=url, status=error.status, reason=error.message))
        return Ok(result.value)

    def create_patch_artifact(
        self,
        release_id: int,
        arch: str,
        platform: ReleasePlatform,
        hash: str,
        path: Path,
        *,
        track: str,
    ) -> Result[None, ConflictError | UploadError]:
        try:
            size = path.stat().st_size
        except OSError as e:
            return Err(UploadError(arch=arch, status=0, detail=str(e)))

        created = self._http.send_json(
            "POST",
            self._url("releases", release_id, "patch-artifacts"),
            {
                "arch": arch,
                "platform": platform.value,
                "hash": hash,
                "size": size,
                "track": track,
            },
        )
        if isinstance(created, Err):
            if created.error.status == _HTTP_CONFLICT:
                return Err(ConflictError(arch=arch))
            return Err(_upload_error(arch, created.error))

        obj = as_str_dict(created.value)
        upload_url = get_str(obj, "upload_url") if obj is not None else None
        if upload_url is None:
            return Err(UploadError(arch=arch, status=0, detail="no upload url in response"))

        uploaded = self._http.put_file(upload_url, path)
        if isinstance(uploaded, Err):
            return Err(_upload_error(arch, uploaded.error))
        return Ok(None)

    def update_release_status(
        self, release_id: int, platform: ReleasePlatform, status: ReleaseStatus
    ) -> Result[None, RequestError]:
        result = self._http.send_json(
            "PATCH",
            self._url("releases", release_id),
            {"platform": platform.value, "status": status.value},
        )
        if isinstance(result, Err):
            return Err(_request_error(result.error))
        return Ok(None)
