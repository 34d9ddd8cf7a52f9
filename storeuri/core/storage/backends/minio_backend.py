"""MinIO backend implementation for S3-compatible blob storage."""

from __future__ import annotations

import logging
from io import BytesIO
from typing import BinaryIO

from minio import Minio
from minio.commonconfig import CopySource
from minio.error import S3Error

from ..blob import (
    DEFAULT_CONTENT_TYPE,
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBackend,
    BlobStorageError,
)

logger = logging.getLogger(__name__)

_MISSING_CODES = {"NoSuchKey", "NoSuchObject"}


class MinIOBackend(BlobStorageBackend):
    """S3-compatible implementation of blob storage backend.

    The ``minio`` client is built by the adapter factory from the same
    configuration (endpoint, access_key, secret_key, secure, region) and handed
    in ready to use. The bucket is not created implicitly.
    """

    def __init__(self, client: Minio, bucket: str, prefix: str | None = None):
        """Initialize MinIO backend.

        Args:
            client: Configured ``minio.Minio`` client
            bucket: Bucket name to use
            prefix: Optional prefix to prepend to all keys
        """
        self._client = client
        self._bucket = bucket
        self._prefix = prefix.strip("/") + "/" if prefix and prefix.strip("/") else ""

    def _full_key(self, key: str) -> str:
        """Prepend prefix to key."""
        return f"{self._prefix}{key.lstrip('/')}"

    def _strip_prefix(self, full_key: str) -> str:
        """Remove prefix from key."""
        if self._prefix and full_key.startswith(self._prefix):
            return full_key[len(self._prefix) :]
        return full_key

    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Store a blob in MinIO."""
        try:
            if isinstance(data, bytes):
                stream = BytesIO(data)
                length = len(data)
            else:
                # Measure the remaining stream without consuming it
                start_pos = data.tell()
                data.seek(0, 2)
                length = data.tell() - start_pos
                data.seek(start_pos)
                stream = data

            result = self._client.put_object(
                bucket_name=self._bucket,
                object_name=self._full_key(key),
                data=stream,
                length=length,
                content_type=content_type or DEFAULT_CONTENT_TYPE,
                metadata=metadata,
            )

            logger.info(f"Stored blob: {key} (etag: {result.etag})")
            return result.etag

        except S3Error as e:
            raise BlobStorageError(f"Failed to store blob {key}: {e}")

    def get(self, key: str) -> bytes:
        """Retrieve a blob from MinIO."""
        try:
            response = self._client.get_object(self._bucket, self._full_key(key))
            try:
                return response.read()
            finally:
                response.close()
                response.release_conn()

        except S3Error as e:
            if e.code in _MISSING_CODES:
                raise BlobNotFoundError(f"Blob not found: {key}")
            raise BlobStorageError(f"Failed to retrieve blob {key}: {e}")

    def get_stream(self, key: str) -> BinaryIO:
        """Retrieve a blob as a stream from MinIO."""
        try:
            return self._client.get_object(self._bucket, self._full_key(key))

        except S3Error as e:
            if e.code in _MISSING_CODES:
                raise BlobNotFoundError(f"Blob not found: {key}")
            raise BlobStorageError(f"Failed to retrieve blob stream {key}: {e}")

    def delete(self, key: str) -> None:
        """Delete a blob from MinIO."""
        if not self.exists(key):
            raise BlobNotFoundError(f"Blob not found: {key}")

        try:
            self._client.remove_object(self._bucket, self._full_key(key))
            logger.info(f"Deleted blob: {key}")

        except S3Error as e:
            raise BlobStorageError(f"Failed to delete blob {key}: {e}")

    def delete_many(self, keys: list[str]) -> dict[str, bool]:
        """Delete multiple blobs from MinIO in one request."""
        from minio.deleteobjects import DeleteObject

        try:
            errors = self._client.remove_objects(
                self._bucket, [DeleteObject(self._full_key(key)) for key in keys]
            )
            # remove_objects is lazy; consuming it performs the deletion
            error_keys = {err.name for err in errors}
            results = {key: self._full_key(key) not in error_keys for key in keys}

            logger.info(f"Deleted {sum(results.values())} of {len(keys)} blobs")
            return results

        except S3Error as e:
            raise BlobStorageError(f"Failed to delete multiple blobs: {e}")

    def exists(self, key: str) -> bool:
        """Check if a blob exists in MinIO."""
        try:
            self._client.stat_object(self._bucket, self._full_key(key))
            return True
        except S3Error as e:
            if e.code in _MISSING_CODES:
                return False
            raise BlobStorageError(f"Failed to check blob existence {key}: {e}")

    def get_metadata(self, key: str) -> BlobMetadata:
        """Get metadata for a blob in MinIO."""
        try:
            stat = self._client.stat_object(self._bucket, self._full_key(key))

            return BlobMetadata(
                key=key,
                size=stat.size,
                content_type=stat.content_type,
                last_modified=stat.last_modified,
                etag=stat.etag,
                custom_metadata=dict(stat.metadata or {}),
            )

        except S3Error as e:
            if e.code in _MISSING_CODES:
                raise BlobNotFoundError(f"Blob not found: {key}")
            raise BlobStorageError(f"Failed to get metadata for {key}: {e}")

    def list_blobs(self, prefix: str | None = None) -> list[BlobMetadata]:
        """List blobs in the bucket below the backend prefix."""
        try:
            full_prefix = self._full_key(prefix) if prefix else self._prefix
            objects = self._client.list_objects(
                bucket_name=self._bucket,
                prefix=full_prefix or None,
                recursive=True,
            )

            return [
                BlobMetadata(
                    key=self._strip_prefix(obj.object_name),
                    size=obj.size,
                    last_modified=obj.last_modified,
                    etag=obj.etag,
                )
                for obj in objects
                if not obj.is_dir
            ]

        except S3Error as e:
            raise BlobStorageError(f"Failed to list blobs: {e}")

    def copy(self, source_key: str, dest_key: str) -> None:
        """Copy a blob server side."""
        try:
            self._client.copy_object(
                bucket_name=self._bucket,
                object_name=self._full_key(dest_key),
                source=CopySource(self._bucket, self._full_key(source_key)),
            )
            logger.info(f"Copied blob: {source_key} -> {dest_key}")

        except S3Error as e:
            if e.code in _MISSING_CODES:
                raise BlobNotFoundError(f"Source blob not found: {source_key}")
            raise BlobStorageError(f"Failed to copy blob: {e}")
