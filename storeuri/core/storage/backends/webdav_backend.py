"""WebDAV backend implementation for blob storage."""

from __future__ import annotations

import logging
import posixpath
from datetime import datetime
from io import BytesIO
from typing import Any, BinaryIO

from webdav4.client import Client, ClientError, ResourceNotFound

from ..blob import (
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBackend,
    BlobStorageError,
    read_data,
)

logger = logging.getLogger(__name__)


class WebDAVBackend(BlobStorageBackend):
    """WebDAV implementation of blob storage backend.

    WebDAV keeps no custom metadata; content type is whatever the server reports.
    """

    def __init__(self, client: Client, prefix: str | None = None):
        """Initialize WebDAV backend.

        Args:
            client: WebDAV client bound to the server base URL
            prefix: Collection below the base URL that holds the blobs
        """
        self._client = client
        self._prefix = prefix.strip("/") if prefix else ""

    def _path(self, key: str) -> str:
        return posixpath.join(self._prefix, key.lstrip("/"))

    def _key(self, path: str) -> str:
        path = path.strip("/")
        return posixpath.relpath(path, self._prefix) if self._prefix else path

    def _ensure_collections(self, directory: str) -> None:
        current = ""
        for part in directory.split("/"):
            if not part:
                continue
            current = posixpath.join(current, part)
            if not self._client.exists(current):
                self._client.mkdir(current)

    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str | None:
        path = self._path(key)
        try:
            self._ensure_collections(posixpath.dirname(path))
            self._client.upload_fileobj(BytesIO(read_data(data)), path, overwrite=True)
            logger.info(f"Stored blob: {key}")
            return self._client.info(path).get("etag")
        except ClientError as e:
            raise BlobStorageError(f"Failed to store blob {key}: {e}")

    def get(self, key: str) -> bytes:
        buffer = BytesIO()
        try:
            self._client.download_fileobj(self._path(key), buffer)
        except ResourceNotFound:
            raise BlobNotFoundError(f"Blob not found: {key}") from None
        except ClientError as e:
            raise BlobStorageError(f"Failed to retrieve blob {key}: {e}")
        return buffer.getvalue()

    def delete(self, key: str) -> None:
        try:
            self._client.remove(self._path(key))
            logger.info(f"Deleted blob: {key}")
        except ResourceNotFound:
            raise BlobNotFoundError(f"Blob not found: {key}") from None
        except ClientError as e:
            raise BlobStorageError(f"Failed to delete blob {key}: {e}")

    def exists(self, key: str) -> bool:
        try:
            return self._client.isfile(self._path(key))
        except ClientError as e:
            raise BlobStorageError(f"Failed to check blob existence {key}: {e}")

    def get_metadata(self, key: str) -> BlobMetadata:
        try:
            info = self._client.info(self._path(key))
        except ResourceNotFound:
            raise BlobNotFoundError(f"Blob not found: {key}") from None
        except ClientError as e:
            raise BlobStorageError(f"Failed to get metadata for {key}: {e}")

        if info.get("type") != "file":
            raise BlobNotFoundError(f"Blob not found: {key}")
        return self._to_metadata(info)

    def list_blobs(self, prefix: str | None = None) -> list[BlobMetadata]:
        blobs: list[BlobMetadata] = []
        try:
            self._walk(self._prefix, blobs)
        except ResourceNotFound:
            return []
        except ClientError as e:
            raise BlobStorageError(f"Failed to list blobs: {e}")

        return sorted(
            (blob for blob in blobs if not prefix or blob.key.startswith(prefix)),
            key=lambda blob: blob.key,
        )

    def _walk(self, path: str, blobs: list[BlobMetadata]) -> None:
        for info in self._client.ls(path, detail=True):
            if info.get("type") == "directory":
                self._walk(info["name"], blobs)
            else:
                blobs.append(self._to_metadata(info))

    def _to_metadata(self, info: dict[str, Any]) -> BlobMetadata:
        modified = info.get("modified")
        return BlobMetadata(
            key=self._key(info["name"]),
            size=int(info.get("content_length") or 0),
            content_type=info.get("content_type"),
            last_modified=modified if isinstance(modified, datetime) else None,
            etag=info.get("etag"),
        )
