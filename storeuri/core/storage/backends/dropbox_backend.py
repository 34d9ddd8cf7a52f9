"""Dropbox backend implementation for blob storage."""

from __future__ import annotations

import logging
import posixpath
from typing import BinaryIO

import dropbox
from dropbox.exceptions import ApiError, DropboxException
from dropbox.files import FileMetadata, WriteMode

from ..blob import (
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBackend,
    BlobStorageError,
    read_data,
)

logger = logging.getLogger(__name__)


def _is_not_found(error: ApiError) -> bool:
    """Return True if a Dropbox API error means the path does not exist."""
    return "not_found" in str(error.error)


class DropboxBackend(BlobStorageBackend):
    """Dropbox implementation of blob storage backend.

    Dropbox keeps neither content type nor custom metadata for files.
    """

    def __init__(self, client: dropbox.Dropbox, root: str | None = None):
        """Initialize Dropbox backend.

        Args:
            client: Authenticated Dropbox client
            root: Folder that holds the blobs, the app root by default
        """
        self._client = client
        self._root = "/" + root.strip("/") if root and root.strip("/") else ""

    def _path(self, key: str) -> str:
        return f"{self._root}/{key.lstrip('/')}"

    def _key(self, path: str) -> str:
        return posixpath.relpath(path, self._root or "/")

    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        try:
            result = self._client.files_upload(
                read_data(data), self._path(key), mode=WriteMode.overwrite
            )
            logger.info(f"Stored blob: {key} (rev: {result.rev})")
            return result.rev
        except DropboxException as e:
            raise BlobStorageError(f"Failed to store blob {key}: {e}")

    def get(self, key: str) -> bytes:
        try:
            _, response = self._client.files_download(self._path(key))
            return response.content
        except ApiError as e:
            if _is_not_found(e):
                raise BlobNotFoundError(f"Blob not found: {key}")
            raise BlobStorageError(f"Failed to retrieve blob {key}: {e}")
        except DropboxException as e:
            raise BlobStorageError(f"Failed to retrieve blob {key}: {e}")

    def delete(self, key: str) -> None:
        try:
            self._client.files_delete_v2(self._path(key))
            logger.info(f"Deleted blob: {key}")
        except ApiError as e:
            if _is_not_found(e):
                raise BlobNotFoundError(f"Blob not found: {key}")
            raise BlobStorageError(f"Failed to delete blob {key}: {e}")
        except DropboxException as e:
            raise BlobStorageError(f"Failed to delete blob {key}: {e}")

    def exists(self, key: str) -> bool:
        try:
            self.get_metadata(key)
        except BlobNotFoundError:
            return False
        return True

    def get_metadata(self, key: str) -> BlobMetadata:
        try:
            entry = self._client.files_get_metadata(self._path(key))
        except ApiError as e:
            if _is_not_found(e):
                raise BlobNotFoundError(f"Blob not found: {key}")
            raise BlobStorageError(f"Failed to get metadata for {key}: {e}")
        except DropboxException as e:
            raise BlobStorageError(f"Failed to get metadata for {key}: {e}")

        if not isinstance(entry, FileMetadata):
            raise BlobNotFoundError(f"Blob not found: {key}")
        return self._to_metadata(entry)

    def list_blobs(self, prefix: str | None = None) -> list[BlobMetadata]:
        try:
            result = self._client.files_list_folder(self._root, recursive=True)
            entries = list(result.entries)
            while result.has_more:
                result = self._client.files_list_folder_continue(result.cursor)
                entries.extend(result.entries)
        except ApiError as e:
            if _is_not_found(e):
                return []
            raise BlobStorageError(f"Failed to list blobs: {e}")
        except DropboxException as e:
            raise BlobStorageError(f"Failed to list blobs: {e}")

        blobs = [self._to_metadata(entry) for entry in entries if isinstance(entry, FileMetadata)]
        return sorted(
            (blob for blob in blobs if not prefix or blob.key.startswith(prefix)),
            key=lambda blob: blob.key,
        )

    def _to_metadata(self, entry: FileMetadata) -> BlobMetadata:
        return BlobMetadata(
            key=self._key(entry.path_display),
            size=entry.size,
            last_modified=entry.server_modified,
            etag=entry.rev,
        )
