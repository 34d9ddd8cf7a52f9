"""Filesystem backend implementation for blob storage."""

from __future__ import annotations

import json
import logging
import shutil
from datetime import UTC, datetime
from pathlib import Path
from typing import BinaryIO

from ..blob import (
    DEFAULT_CONTENT_TYPE,
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBackend,
    BlobStorageError,
)

logger = logging.getLogger(__name__)

META_SUFFIX = ".meta"


class FilesystemBackend(BlobStorageBackend):
    """Filesystem implementation of blob storage backend.

    Stores blobs as files below ``root`` with metadata stored in accompanying
    JSON files.
    """

    def __init__(self, root: str | Path = "/"):
        """Initialize filesystem backend.

        Args:
            root: Base directory path for storing blobs, created if missing
        """
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initialized filesystem backend at: {self._root}")

    @property
    def root(self) -> Path:
        return self._root

    def _get_blob_path(self, key: str) -> Path:
        """Get the full path for a blob file."""
        return self._root / Path(key.lstrip("/")).as_posix()

    def _get_metadata_path(self, key: str) -> Path:
        """Get the path for metadata file associated with a blob."""
        blob_path = self._get_blob_path(key)
        return blob_path.with_suffix(blob_path.suffix + META_SUFFIX)

    def _save_metadata(
        self,
        key: str,
        size: int,
        content_type: str | None = None,
        custom_metadata: dict[str, str] | None = None,
    ) -> None:
        metadata = {
            "key": key,
            "size": size,
            "content_type": content_type or DEFAULT_CONTENT_TYPE,
            "last_modified": datetime.now(UTC).isoformat(),
            "custom_metadata": custom_metadata or {},
        }

        with open(self._get_metadata_path(key), "w") as f:
            json.dump(metadata, f, indent=2)

    def _load_metadata(self, key: str) -> dict:
        metadata_path = self._get_metadata_path(key)
        blob_path = self._get_blob_path(key)

        if not blob_path.is_file():
            raise BlobNotFoundError(f"Blob not found: {key}")

        if not metadata_path.exists():
            # Files written by other tools have no metadata file
            stat = blob_path.stat()
            return {
                "key": key,
                "size": stat.st_size,
                "content_type": DEFAULT_CONTENT_TYPE,
                "last_modified": datetime.fromtimestamp(stat.st_mtime, UTC).isoformat(),
                "custom_metadata": {},
            }

        with open(metadata_path) as f:
            return json.load(f)

    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Store a blob in the filesystem."""
        try:
            blob_path = self._get_blob_path(key)
            blob_path.parent.mkdir(parents=True, exist_ok=True)

            if isinstance(data, bytes):
                blob_path.write_bytes(data)
                size = len(data)
            elif hasattr(data, "read"):
                with open(blob_path, "wb") as f:
                    size = 0
                    while chunk := data.read(8192):
                        f.write(chunk)
                        size += len(chunk)
            else:
                raise BlobStorageError(f"Invalid data type for key {key}")

            self._save_metadata(key, size, content_type, metadata)

            # Use file modification time as etag equivalent
            etag = str(int(blob_path.stat().st_mtime * 1000000))
            logger.info(f"Stored blob: {key} ({size} bytes)")
            return etag

        except BlobStorageError:
            raise
        except OSError as e:
            raise BlobStorageError(f"Failed to store blob {key}: {e}")

    def get(self, key: str) -> bytes:
        """Retrieve a blob from the filesystem."""
        blob_path = self._get_blob_path(key)

        if not blob_path.is_file():
            raise BlobNotFoundError(f"Blob not found: {key}")

        try:
            return blob_path.read_bytes()
        except OSError as e:
            raise BlobStorageError(f"Failed to retrieve blob {key}: {e}")

    def get_stream(self, key: str) -> BinaryIO:
        """Retrieve a blob as an open file."""
        blob_path = self._get_blob_path(key)

        if not blob_path.is_file():
            raise BlobNotFoundError(f"Blob not found: {key}")

        return open(blob_path, "rb")

    def delete(self, key: str) -> None:
        """Delete a blob from the filesystem."""
        blob_path = self._get_blob_path(key)
        metadata_path = self._get_metadata_path(key)

        if not blob_path.is_file():
            raise BlobNotFoundError(f"Blob not found: {key}")

        try:
            blob_path.unlink()
            if metadata_path.exists():
                metadata_path.unlink()
        except OSError as e:
            raise BlobStorageError(f"Failed to delete blob {key}: {e}")

        self._cleanup_empty_dirs(blob_path.parent)
        logger.info(f"Deleted blob: {key}")

    def _cleanup_empty_dirs(self, path: Path) -> None:
        """Remove empty parent directories up to the root."""
        try:
            while path != self._root and path.exists() and not any(path.iterdir()):
                path.rmdir()
                path = path.parent
        except OSError as e:
            logger.debug(f"Stopped directory cleanup at {path}: {e}")

    def exists(self, key: str) -> bool:
        """Check if a blob exists in the filesystem."""
        return self._get_blob_path(key).is_file()

    def get_metadata(self, key: str) -> BlobMetadata:
        """Get metadata for a blob in the filesystem."""
        metadata_dict = self._load_metadata(key)

        return BlobMetadata(
            key=key,
            size=metadata_dict["size"],
            content_type=metadata_dict.get("content_type"),
            last_modified=datetime.fromisoformat(metadata_dict["last_modified"]),
            etag=None,  # Filesystem doesn't have etags
            custom_metadata=metadata_dict.get("custom_metadata", {}),
        )

    def list_blobs(self, prefix: str | None = None) -> list[BlobMetadata]:
        """List blobs below the root, skipping metadata files."""
        blobs = []

        try:
            for path in sorted(self._root.rglob("*")):
                if path.is_dir() or path.suffix == META_SUFFIX:
                    continue

                rel_path = path.relative_to(self._root).as_posix()
                if prefix and not rel_path.startswith(prefix):
                    continue

                stat = path.stat()
                blobs.append(
                    BlobMetadata(
                        key=rel_path,
                        size=stat.st_size,
                        last_modified=datetime.fromtimestamp(stat.st_mtime, UTC),
                    )
                )
        except OSError as e:
            raise BlobStorageError(f"Failed to list blobs: {e}")

        return blobs

    def copy(self, source_key: str, dest_key: str) -> None:
        """Copy a blob and its metadata file."""
        source_path = self._get_blob_path(source_key)
        dest_path = self._get_blob_path(dest_key)

        if not source_path.is_file():
            raise BlobNotFoundError(f"Source blob not found: {source_key}")

        try:
            dest_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source_path, dest_path)

            source_meta = self._get_metadata_path(source_key)
            if source_meta.exists():
                with open(source_meta) as f:
                    metadata = json.load(f)
                self._save_metadata(
                    dest_key,
                    metadata["size"],
                    metadata.get("content_type"),
                    metadata.get("custom_metadata"),
                )
        except OSError as e:
            raise BlobStorageError(f"Failed to copy blob: {e}")

        logger.info(f"Copied blob: {source_key} -> {dest_key}")
