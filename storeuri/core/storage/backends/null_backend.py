"""Null backend that accepts writes and stores nothing."""

from __future__ import annotations

from typing import BinaryIO

from ..blob import BlobMetadata, BlobNotFoundError, BlobStorageBackend


class NullBackend(BlobStorageBackend):
    """Blob storage that discards every write and never finds anything."""

    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> None:
        return None

    def get(self, key: str) -> bytes:
        raise BlobNotFoundError(f"Blob not found: {key}")

    def delete(self, key: str) -> None:
        raise BlobNotFoundError(f"Blob not found: {key}")

    def exists(self, key: str) -> bool:
        return False

    def get_metadata(self, key: str) -> BlobMetadata:
        raise BlobNotFoundError(f"Blob not found: {key}")

    def list_blobs(self, prefix: str | None = None) -> list[BlobMetadata]:
        return []
