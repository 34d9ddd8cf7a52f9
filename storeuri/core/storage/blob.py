"""Blob storage abstraction shared by every adapter kind.

Each backend produced by the adapter factory implements :class:`BlobStorageBackend`,
which covers the read / write / list / delete / metadata capability set. Only the
primitive operations are abstract; batch deletion, copying and size lookups are
derived from them and may be overridden where a backend has a native call.
"""

from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class BlobMetadata:
    """Metadata for a stored blob."""

    key: str
    size: int
    content_type: str | None = None
    last_modified: datetime | None = None
    etag: str | None = None
    custom_metadata: dict[str, str] = field(default_factory=dict)


def read_data(data: bytes | BinaryIO) -> bytes:
    """Return the payload of ``data`` as bytes, draining streams."""
    if isinstance(data, bytes | bytearray):
        return bytes(data)
    if hasattr(data, "read"):
        return data.read()
    raise BlobStorageError(f"Unsupported data type: {type(data).__name__}")


class BlobStorageBackend(ABC):
    """Abstract base class for blob storage backends.

    Keys are ``/`` separated paths relative to the backend's own root, bucket or
    container.
    """

    @abstractmethod
    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str | None:
        """Store a blob.

        Args:
            key: Object key (path) for the blob
            data: Binary data or file-like object
            content_type: MIME type of the content
            metadata: Custom metadata key-value pairs

        Returns:
            ETag or version ID of the stored blob, if the backend has one
        """

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Retrieve a blob.

        Raises:
            BlobNotFoundError: If the blob doesn't exist
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete a blob.

        Raises:
            BlobNotFoundError: If the blob doesn't exist
        """

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check if a blob exists."""

    @abstractmethod
    def get_metadata(self, key: str) -> BlobMetadata:
        """Get metadata for a blob without downloading it.

        Raises:
            BlobNotFoundError: If the blob doesn't exist
        """

    @abstractmethod
    def list_blobs(self, prefix: str | None = None) -> list[BlobMetadata]:
        """List blobs recursively, optionally restricted to keys starting with ``prefix``."""

    def get_stream(self, key: str) -> BinaryIO:
        """Retrieve a blob as a stream."""
        return BytesIO(self.get(key))

    def delete_many(self, keys: list[str]) -> dict[str, bool]:
        """Delete multiple blobs.

        Returns:
            Dictionary mapping keys to success status
        """
        results = {}

        for key in keys:
            try:
                self.delete(key)
                results[key] = True
            except BlobStorageError as e:
                logger.warning(f"Failed to delete {key}: {e}")
                results[key] = False

        logger.info(f"Deleted {sum(results.values())} of {len(keys)} blobs")
        return results

    def copy(self, source_key: str, dest_key: str) -> None:
        """Copy a blob to a new location."""
        metadata = self.get_metadata(source_key)
        self.put(dest_key, self.get(source_key), metadata.content_type, metadata.custom_metadata)

    def get_size(self, key: str) -> int:
        """Get the size of a blob in bytes."""
        return self.get_metadata(key).size


class BlobStorage:
    """High-level blob storage interface over any backend the factory builds."""

    def __init__(self, backend: BlobStorageBackend):
        self._backend = backend

    @classmethod
    def from_uri(cls, uri: str) -> BlobStorage:
        """Create storage for a URI such as ``local:///var/data`` or ``memory:///``."""
        from storeuri.core.storage.factory import create_backend_from_uri

        return cls(create_backend_from_uri(uri))

    @classmethod
    def from_name(cls, name: str) -> BlobStorage:
        """Create storage for a backend configured under ``name``."""
        from storeuri.core.storage.registry import get_storage_backend

        return cls(get_storage_backend(name))

    @property
    def backend(self) -> BlobStorageBackend:
        return self._backend

    def put(
        self,
        key: str,
        data: bytes | BinaryIO | Path,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str | None:
        """Store a blob from bytes, a stream or a local file path."""
        if isinstance(data, Path):
            with open(data, "rb") as f:
                return self._backend.put(key, f, content_type, metadata)
        return self._backend.put(key, data, content_type, metadata)

    def get(self, key: str) -> bytes:
        return self._backend.get(key)

    def get_stream(self, key: str) -> BinaryIO:
        return self._backend.get_stream(key)

    def download_to_file(self, key: str, file_path: Path) -> None:
        """Download a blob to a local file."""
        with self._backend.get_stream(key) as stream, open(file_path, "wb") as f:
            shutil.copyfileobj(stream, f)

    def delete(self, key: str) -> None:
        self._backend.delete(key)

    def delete_many(self, keys: list[str]) -> dict[str, bool]:
        return self._backend.delete_many(keys)

    def exists(self, key: str) -> bool:
        return self._backend.exists(key)

    def get_metadata(self, key: str) -> BlobMetadata:
        return self._backend.get_metadata(key)

    def get_size(self, key: str) -> int:
        return self._backend.get_size(key)

    def list(self, prefix: str | None = None) -> Iterator[BlobMetadata]:
        yield from self._backend.list_blobs(prefix)

    def copy(self, source_key: str, dest_key: str) -> None:
        self._backend.copy(source_key, dest_key)


# Custom exceptions


class BlobStorageError(Exception):
    """Base exception for blob storage errors."""

    pass


class BlobNotFoundError(BlobStorageError):
    """Raised when a blob is not found."""

    pass


class BlobStorageConnectionError(BlobStorageError):
    """Raised when connection to storage backend fails."""

    pass
