"""MongoDB GridFS backend implementation for blob storage."""

from __future__ import annotations

import logging
import re
from typing import BinaryIO

import gridfs
from gridfs.errors import NoFile
from pymongo.errors import PyMongoError

from ..blob import (
    DEFAULT_CONTENT_TYPE,
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBackend,
    BlobStorageError,
    read_data,
)

logger = logging.getLogger(__name__)


class GridFSBackend(BlobStorageBackend):
    """GridFS implementation of blob storage backend.

    Blobs are GridFS files keyed by filename. Writing a key again stores a new
    version and removes the older ones. Content type and custom metadata live
    in the file's ``metadata`` document.
    """

    def __init__(self, fs: gridfs.GridFS):
        """Initialize GridFS backend.

        Args:
            fs: GridFS handle on an open database
        """
        self._fs = fs

    def _versions(self, key: str) -> list:
        return list(self._fs.find({"filename": key}))

    def _latest(self, key: str):
        try:
            return self._fs.get_last_version(filename=key)
        except NoFile:
            raise BlobNotFoundError(f"Blob not found: {key}") from None

    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Store a blob as a new GridFS file and drop older versions."""
        try:
            previous = [grid_out._id for grid_out in self._versions(key)]
            file_id = self._fs.put(
                read_data(data),
                filename=key,
                metadata={
                    "content_type": content_type or DEFAULT_CONTENT_TYPE,
                    "custom_metadata": metadata or {},
                },
            )
            for old_id in previous:
                self._fs.delete(old_id)

            logger.info(f"Stored blob: {key} (id: {file_id})")
            return str(file_id)

        except PyMongoError as e:
            raise BlobStorageError(f"Failed to store blob {key}: {e}")

    def get(self, key: str) -> bytes:
        try:
            return self._latest(key).read()
        except PyMongoError as e:
            raise BlobStorageError(f"Failed to retrieve blob {key}: {e}")

    def get_stream(self, key: str) -> BinaryIO:
        return self._latest(key)

    def delete(self, key: str) -> None:
        try:
            versions = self._versions(key)
            if not versions:
                raise BlobNotFoundError(f"Blob not found: {key}")

            for grid_out in versions:
                self._fs.delete(grid_out._id)
            logger.info(f"Deleted blob: {key}")

        except PyMongoError as e:
            raise BlobStorageError(f"Failed to delete blob {key}: {e}")

    def exists(self, key: str) -> bool:
        try:
            return self._fs.exists(filename=key)
        except PyMongoError as e:
            raise BlobStorageError(f"Failed to check blob existence {key}: {e}")

    def get_metadata(self, key: str) -> BlobMetadata:
        try:
            return self._to_metadata(self._latest(key))
        except PyMongoError as e:
            raise BlobStorageError(f"Failed to get metadata for {key}: {e}")

    def list_blobs(self, prefix: str | None = None) -> list[BlobMetadata]:
        query = {"filename": {"$regex": f"^{re.escape(prefix)}"}} if prefix else {}

        try:
            latest: dict[str, BlobMetadata] = {}
            for grid_out in self._fs.find(query).sort("uploadDate", 1):
                latest[grid_out.filename] = self._to_metadata(grid_out)
        except PyMongoError as e:
            raise BlobStorageError(f"Failed to list blobs: {e}")

        return [latest[name] for name in sorted(latest)]

    @staticmethod
    def _to_metadata(grid_out) -> BlobMetadata:
        extra = grid_out.metadata or {}
        return BlobMetadata(
            key=grid_out.filename,
            size=grid_out.length,
            content_type=extra.get("content_type"),
            last_modified=grid_out.upload_date,
            etag=str(grid_out._id),
            custom_metadata=extra.get("custom_metadata", {}),
        )
