"""HTTP client abstraction for the code push API.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from cpatch.core.result import Err, Ok, Result
from cpatch.core.structured import StrDict, as_obj_list, as_str_dict

__all__ = [
    "HttpClient",
    "HttpError",
    "JsonBody",
    "MockHttpClient",
    "RealHttpClient",
]

# Decoded JSON response: an object, a list, or nothing (empty body).
JsonBody = StrDict | list[object] | None


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations, so tests never touch the network."""

    def get_json(self, url: str) -> Result[JsonBody, HttpError]:
        """GET url and decode the JSON body."""
        ...

    def send_json(self, method: str, url: str, payload: StrDict) -> Result[JsonBody, HttpError]:
        """Send payload as JSON with the given method and decode the reply."""
        ...

    def download(self, url: str, dest: Path) -> Result[Path, HttpError]:
        """Stream url to dest."""
        ...

    def put_file(self, url: str, path: Path) -> Result[None, HttpError]:
        """PUT the bytes of path to url."""
        ...


def _decode_json(url: str, raw: bytes) -> Result[JsonBody, HttpError]:
    if not raw.strip():
        return Ok(None)
    try:
        data: object = json.loads(raw.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))
    obj = as_str_dict(data)
    if obj is not None:
        return Ok(obj)
    items = as_obj_list(data)
    if items is not None:
        return Ok(items)
    return Err(HttpError(url=url, status=0, message="Expected JSON object or list"))


class RealHttpClient:
    """HTTP client using urllib.

    Handles HTTPS with system certificates, bearer auth, JSON bodies and
    chunked downloads. No retries: callers treat errors as terminal.
    """

    def __init__(
        self,
        *,
        token: str | None = None,
        timeout: float = 60.0,
        user_agent: str = "cpatch/0.3.0",
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._token = token
        self._ssl_context = ssl.create_default_context()

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        if extra:
            headers.update(extra)
        return headers

    def _request(
        self,
        url: str,
        *,
        method: str = "GET",
        data: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> Result[bytes, HttpError]:
        try:
            req = urllib.request.Request(
                url, data=data, method=method, headers=self._headers(headers)
            )
            with urllib.request.urlopen(
                req, timeout=self.timeout, context=self._ssl_context
            ) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def get_json(self, url: str) -> Result[JsonBody, HttpError]:
        result = self._request(url, headers={"Accept": "application/json"})
        if isinstance(result, Err):
            return result
        return _decode_json(url, result.value)

    def send_json(self, method: str, url: str, payload: StrDict) -> Result[JsonBody, HttpError]:
        result = self._request(
            url,
            method=method,
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )
        if isinstance(result, Err):
            return result
        return _decode_json(url, result.value)

    def download(self, url: str, dest: Path) -> Result[Path, HttpError]:
        try:
            req = urllib.request.Request(url, headers=self._headers())
            with urllib.request.urlopen(
                req, timeout=self.timeout, context=self._ssl_context
            ) as response:
                dest.parent.mkdir(parents=True, exist_ok=True)
                with open(dest, "wb") as f:
                    while True:
                        chunk = response.read(1024 * 1024)
                        if not chunk:
                            break
                        f.write(chunk)
                return Ok(dest)
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Download timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def put_file(self, url: str, path: Path) -> Result[None, HttpError]:
        try:
            data = path.read_bytes()
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=f"cannot read {path}: {e}"))
        result = self._request(
            url,
            method="PUT",
            data=data,
            headers={"Content-Type": "application/octet-stream"},
        )
        if isinstance(result, Err):
            return result
        return Ok(None)


class MockHttpClient:
    """Mock HTTP client for testing.

    Usage:
        client = MockHttpClient()
        client.set_json("https://api.example.dev/api/v1/apps/a", {"id": "a"})
        result = client.get_json("https://api.example.dev/api/v1/apps/a")
    """

    def __init__(self) -> None:
        self._json: dict[str, JsonBody | HttpError] = {}
        self._send: dict[tuple[str, str], JsonBody | HttpError] = {}
        self._downloads: dict[str, bytes | HttpError] = {}
        self._puts: dict[str, HttpError] = {}
        self.calls: list[tuple[str, str]] = []
        self.payloads: list[StrDict] = []

    def set_json(self, url: str, response: JsonBody | HttpError) -> None:
        self._json[url] = response

    def set_send(self, method: str, url: str, response: JsonBody | HttpError) -> None:
        self._send[(method, url)] = response

    def set_download(self, url: str, response: bytes | HttpError) -> None:
        self._downloads[url] = response

    def fail_put(self, url: str, error: HttpError) -> None:
        self._puts[url] = error

    def get_json(self, url: str) -> Result[JsonBody, HttpError]:
        self.calls.append(("GET", url))
        if url not in self._json:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        response = self._json[url]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def send_json(self, method: str, url: str, payload: StrDict) -> Result[JsonBody, HttpError]:
        self.calls.append((method, url))
        self.payloads.append(payload)
        if (method, url) not in self._send:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        response = self._send[(method, url)]
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def download(self, url: str, dest: Path) -> Result[Path, HttpError]:
        self.calls.append(("DOWNLOAD", url))
        if url not in self._downloads:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        response = self._downloads[url]
        if isinstance(response, HttpError):
            return Err(response)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(response)
        return Ok(dest)

    def put_file(self, url: str, path: Path) -> Result[None, HttpError]:
        self.calls.append(("PUT", url))
        if url in self._puts:
            return Err(self._puts[url])
        return Ok(None)
