"""Remote artifact store: protocol, errors and the HTTP implementation."""

from .client import CodePushArtifactStore
from .contracts import ArtifactStore
from .errors import (
    ConflictError,
    DownloadError,
    NotFoundError,
    RequestError,
    StoreError,
    UploadError,
)
from .http import HttpClient, HttpError, MockHttpClient, RealHttpClient

__all__ = [
    "ArtifactStore",
    "CodePushArtifactStore",
    "ConflictError",
    "DownloadError",
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "NotFoundError",
    "RealHttpClient",
    "RequestError",
    "StoreError",
    "UploadError",
]
