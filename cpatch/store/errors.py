"""Errors surfaced by the artifact store.

The store owns transport retry policy; by the time one of these reaches the
patch pipeline it is terminal.
"""

from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "ConflictError",
    "DownloadError",
    "NotFoundError",
    "RequestError",
    "StoreError",
    "UploadError",
]


@dataclass(frozen=True, slots=True)
class NotFoundError:
    resource: str
    hint: str | None = None

    @property
    def message(self) -> str:
        return f"{self.resource} not found"


@dataclass(frozen=True, slots=True)
class RequestError:
    """Any other failed API call."""

    url: str
    status: int
    detail: str
    hint: str | None = None

    @property
    def message(self) -> str:
        if self.status:
            return f"request failed: HTTP {self.status} {self.detail} ({self.url})"
        return f"request failed: {self.detail} ({self.url})"


@dataclass(frozen=True, slots=True)
class DownloadError:
    url: str
    status: int
    reason: str
    hint: str | None = None

    @property
    def message(self) -> str:
        if self.status:
            return f"Failed to download release artifact: {self.status} {self.reason}"
        return f"Failed to download release artifact: {self.reason}"


@dataclass(frozen=True, slots=True)
class ConflictError:
    """An artifact with this identity already exists."""

    arch: str
    hint: str | None = None

    @property
    def message(self) -> str:
        return f"{self.arch} patch artifact already exists"


@dataclass(frozen=True, slots=True)
class UploadError:
    arch: str
    status: int
    detail: str
    hint: str | None = None

    @property
    def message(self) -> str:
        if self.status:
            return f"Error uploading {self.arch}: HTTP {self.status} {self.detail}"
        return f"Error uploading {self.arch}: {self.detail}"


StoreError = NotFoundError | RequestError | DownloadError | ConflictError | UploadError
