"""Copy cloud storage backend implementation for blob storage."""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, BinaryIO

import requests
from requests.adapters import HTTPAdapter
from requests_oauthlib import OAuth1Session
from urllib3.util.retry import Retry

from ..blob import (
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBackend,
    BlobStorageError,
    read_data,
)

logger = logging.getLogger(__name__)

COPY_API_URL = "https://api.copy.com/rest"


def _session_with_retries(session: requests.Session, total: int = 3, backoff: float = 0.5) -> None:
    retries = Retry(
        total=total,
        read=total,
        connect=total,
        backoff_factor=backoff,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET", "DELETE"),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retries)
    session.mount("http://", adapter)
    session.mount("https://", adapter)


@dataclass
class CopyClient:
    """Thin OAuth1 client for the Copy REST API."""

    consumer_key: str
    consumer_secret: str
    access_token: str
    token_secret: str
    api_url: str = COPY_API_URL
    timeout: float = 30.0

    def __post_init__(self) -> None:
        self.session = OAuth1Session(
            self.consumer_key,
            client_secret=self.consumer_secret,
            resource_owner_key=self.access_token,
            resource_owner_secret=self.token_secret,
        )
        self.session.headers.update({"X-Api-Version": "1", "Accept": "application/json"})
        _session_with_retries(self.session)

    def request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.api_url}{path}"
        return self.session.request(method, url, timeout=self.timeout, **kwargs)

    def meta(self, path: str) -> dict[str, Any] | None:
        """Return the metadata document of ``path`` or None if it does not exist."""
        res = self.request("GET", f"/meta/copy{path}")
        if res.status_code == 404:
            return None
        res.raise_for_status()
        return res.json()

    def download(self, path: str) -> bytes | None:
        res = self.request("GET", f"/files{path}")
        if res.status_code == 404:
            return None
        res.raise_for_status()
        return res.content

    def upload(self, path: str, data: bytes) -> dict[str, Any]:
        directory, name = posixpath.split(path)
        res = self.request(
            "POST",
            f"/files{directory}",
            params={"overwrite": "true"},
            files={"file": (name, data)},
        )
        res.raise_for_status()
        payload = res.json()
        objects = payload.get("objects") if isinstance(payload, dict) else None
        return objects[0] if objects else payload

    def delete(self, path: str) -> bool:
        """Delete ``path``; returns False if it did not exist."""
        res = self.request("DELETE", f"/files{path}")
        if res.status_code == 404:
            return False
        res.raise_for_status()
        return True


class CopyBackend(BlobStorageBackend):
    """Copy implementation of blob storage backend.

    Copy keeps neither content type nor custom metadata for files.
    """

    def __init__(self, client: CopyClient, root: str | None = None):
        """Initialize Copy backend.

        Args:
            client: Authenticated Copy API client
            root: Folder that holds the blobs
        """
        self._client = client
        self._root = "/" + root.strip("/") if root and root.strip("/") else ""

    def _path(self, key: str) -> str:
        return f"{self._root}/{key.lstrip('/')}"

    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str | None:
        try:
            result = self._client.upload(self._path(key), read_data(data))
        except requests.RequestException as e:
            raise BlobStorageError(f"Failed to store blob {key}: {e}")

        logger.info(f"Stored blob: {key}")
        revision = result.get("revision") if isinstance(result, dict) else None
        return str(revision) if revision is not None else None

    def get(self, key: str) -> bytes:
        try:
            content = self._client.download(self._path(key))
        except requests.RequestException as e:
            raise BlobStorageError(f"Failed to retrieve blob {key}: {e}")

        if content is None:
            raise BlobNotFoundError(f"Blob not found: {key}")
        return content

    def delete(self, key: str) -> None:
        try:
            deleted = self._client.delete(self._path(key))
        except requests.RequestException as e:
            raise BlobStorageError(f"Failed to delete blob {key}: {e}")

        if not deleted:
            raise BlobNotFoundError(f"Blob not found: {key}")
        logger.info(f"Deleted blob: {key}")

    def exists(self, key: str) -> bool:
        try:
            entry = self._client.meta(self._path(key))
        except requests.RequestException as e:
            raise BlobStorageError(f"Failed to check blob existence {key}: {e}")
        return entry is not None and entry.get("type") == "file"

    def get_metadata(self, key: str) -> BlobMetadata:
        try:
            entry = self._client.meta(self._path(key))
        except requests.RequestException as e:
            raise BlobStorageError(f"Failed to get metadata for {key}: {e}")

        if entry is None or entry.get("type") != "file":
            raise BlobNotFoundError(f"Blob not found: {key}")
        return self._to_metadata(entry)

    def list_blobs(self, prefix: str | None = None) -> list[BlobMetadata]:
        blobs: list[BlobMetadata] = []
        try:
            self._walk(self._root or "/", blobs)
        except requests.RequestException as e:
            raise BlobStorageError(f"Failed to list blobs: {e}")

        return sorted(
            (blob for blob in blobs if not prefix or blob.key.startswith(prefix)),
            key=lambda blob: blob.key,
        )

    def _walk(self, path: str, blobs: list[BlobMetadata]) -> None:
        entry = self._client.meta(path)
        for child in (entry or {}).get("children", []):
            if child.get("type") == "dir":
                self._walk(child["path"], blobs)
            elif child.get("type") == "file":
                blobs.append(self._to_metadata(child))

    def _to_metadata(self, entry: dict[str, Any]) -> BlobMetadata:
        modified = entry.get("modified_time")
        return BlobMetadata(
            key=posixpath.relpath(entry["path"], self._root or "/"),
            size=int(entry.get("size") or 0),
            content_type=entry.get("mime_type"),
            last_modified=datetime.fromtimestamp(modified, UTC) if modified else None,
            etag=str(entry["revision"]) if entry.get("revision") is not None else None,
        )
