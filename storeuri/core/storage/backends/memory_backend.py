"""In-memory backend implementation for blob storage."""

from __future__ import annotations

import hashlib
import logging
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import BinaryIO

from ..blob import (
    DEFAULT_CONTENT_TYPE,
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBackend,
    read_data,
)

logger = logging.getLogger(__name__)


@dataclass
class _StoredBlob:
    data: bytes
    content_type: str
    last_modified: datetime
    custom_metadata: dict[str, str] = field(default_factory=dict)

    @property
    def etag(self) -> str:
        return hashlib.md5(self.data).hexdigest()


class MemoryBackend(BlobStorageBackend):
    """Blob storage held in a dict, lost when the backend is discarded.

    Each instance owns its own store.
    """

    def __init__(self):
        self._blobs: dict[str, _StoredBlob] = {}
        self._lock = threading.Lock()

    def _lookup(self, key: str) -> _StoredBlob:
        try:
            return self._blobs[key]
        except KeyError:
            raise BlobNotFoundError(f"Blob not found: {key}") from None

    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        blob = _StoredBlob(
            data=read_data(data),
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            last_modified=datetime.now(UTC),
            custom_metadata=dict(metadata or {}),
        )
        with self._lock:
            self._blobs[key] = blob
        logger.debug(f"Stored blob in memory: {key} ({len(blob.data)} bytes)")
        return blob.etag

    def get(self, key: str) -> bytes:
        return self._lookup(key).data

    def delete(self, key: str) -> None:
        with self._lock:
            self._lookup(key)
            del self._blobs[key]

    def exists(self, key: str) -> bool:
        return key in self._blobs

    def get_metadata(self, key: str) -> BlobMetadata:
        blob = self._lookup(key)
        return BlobMetadata(
            key=key,
            size=len(blob.data),
            content_type=blob.content_type,
            last_modified=blob.last_modified,
            etag=blob.etag,
            custom_metadata=dict(blob.custom_metadata),
        )

    def list_blobs(self, prefix: str | None = None) -> list[BlobMetadata]:
        with self._lock:
            keys = sorted(k for k in self._blobs if not prefix or k.startswith(prefix))
        return [self.get_metadata(key) for key in keys]
