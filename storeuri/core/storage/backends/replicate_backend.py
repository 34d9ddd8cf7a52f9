"""Replicating backend wrapper that mirrors writes onto a second backend."""

from __future__ import annotations

import logging
from typing import BinaryIO

from ..blob import BlobMetadata, BlobNotFoundError, BlobStorageBackend, read_data

logger = logging.getLogger(__name__)


class ReplicateBackend(BlobStorageBackend):
    """Wrapper that writes to a source and a replica backend.

    Reads, listings and metadata come from the source. Writes go to the source
    first, then to the replica; deletes remove the blob from both:
        source = FilesystemBackend("/data")
        replicated = ReplicateBackend(source, MinIOBackend(client, "backup"))
        replicated.put("report.csv", data)  # Stored in /data and in the bucket
    """

    def __init__(self, source: BlobStorageBackend, replica: BlobStorageBackend):
        """Initialize replicating backend.

        Args:
            source: Backend that serves reads
            replica: Backend that receives a copy of every write
        """
        self._source = source
        self._replica = replica

    @property
    def source(self) -> BlobStorageBackend:
        return self._source

    @property
    def replica(self) -> BlobStorageBackend:
        return self._replica

    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str | None:
        """Store a blob on both backends, returning the source etag."""
        payload = read_data(data)
        etag = self._source.put(key, payload, content_type, metadata)
        self._replica.put(key, payload, content_type, metadata)
        return etag

    def get(self, key: str) -> bytes:
        return self._source.get(key)

    def get_stream(self, key: str) -> BinaryIO:
        return self._source.get_stream(key)

    def delete(self, key: str) -> None:
        """Delete a blob from the source and, if present there, the replica."""
        self._source.delete(key)
        try:
            self._replica.delete(key)
        except BlobNotFoundError:
            logger.warning(f"Blob {key} was missing from the replica")

    def exists(self, key: str) -> bool:
        return self._source.exists(key)

    def get_metadata(self, key: str) -> BlobMetadata:
        return self._source.get_metadata(key)

    def list_blobs(self, prefix: str | None = None) -> list[BlobMetadata]:
        return self._source.list_blobs(prefix)

    def copy(self, source_key: str, dest_key: str) -> None:
        self._source.copy(source_key, dest_key)
        self._replica.copy(source_key, dest_key)
