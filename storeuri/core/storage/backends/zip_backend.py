"""Zip archive backend implementation for blob storage."""

from __future__ import annotations

import json
import logging
import os
import tempfile
import zipfile
from datetime import datetime
from pathlib import Path
from typing import BinaryIO

from ..blob import (
    DEFAULT_CONTENT_TYPE,
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBackend,
    BlobStorageError,
    read_data,
)

logger = logging.getLogger(__name__)


class ZipArchiveBackend(BlobStorageBackend):
    """Blob storage inside a single zip file.

    The archive at ``root`` is created on the first write. Content type and
    custom metadata are kept as JSON in each member's comment. Replacing or
    deleting a member rewrites the archive.
    """

    def __init__(self, root: str | Path):
        """Initialize zip backend.

        Args:
            root: Path of the zip archive
        """
        self._path = Path(root)
        logger.info(f"Initialized zip archive backend at: {self._path}")

    @property
    def path(self) -> Path:
        return self._path

    @staticmethod
    def _member(key: str) -> str:
        return key.lstrip("/")

    def _open(self, mode: str = "r") -> zipfile.ZipFile:
        if mode == "r" and not self._path.exists():
            raise BlobNotFoundError(f"Archive not found: {self._path}")
        try:
            return zipfile.ZipFile(self._path, mode, compression=zipfile.ZIP_DEFLATED)
        except (OSError, zipfile.BadZipFile) as e:
            raise BlobStorageError(f"Failed to open archive {self._path}: {e}")

    def _rewrite_without(self, member: str) -> None:
        """Rewrite the archive leaving out ``member``."""
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, suffix=".zip")
        os.close(fd)
        try:
            with self._open("r") as source, zipfile.ZipFile(
                tmp_name, "w", compression=zipfile.ZIP_DEFLATED
            ) as target:
                for info in source.infolist():
                    if info.filename != member:
                        target.writestr(info, source.read(info.filename))
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _info(self, key: str) -> zipfile.ZipInfo:
        with self._open("r") as archive:
            try:
                return archive.getinfo(self._member(key))
            except KeyError:
                raise BlobNotFoundError(f"Blob not found: {key}") from None

    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> None:
        """Store a blob as an archive member, replacing any previous version."""
        member = self._member(key)
        payload = read_data(data)

        if self.exists(key):
            self._rewrite_without(member)
        else:
            self._path.parent.mkdir(parents=True, exist_ok=True)

        info = zipfile.ZipInfo(member, date_time=datetime.now().timetuple()[:6])
        info.compress_type = zipfile.ZIP_DEFLATED
        info.comment = json.dumps(
            {"content_type": content_type or DEFAULT_CONTENT_TYPE, "metadata": metadata or {}}
        ).encode()

        with self._open("a") as archive:
            archive.writestr(info, payload)
        logger.info(f"Stored blob: {key} ({len(payload)} bytes) in {self._path.name}")

    def get(self, key: str) -> bytes:
        with self._open("r") as archive:
            try:
                return archive.read(self._member(key))
            except KeyError:
                raise BlobNotFoundError(f"Blob not found: {key}") from None

    def delete(self, key: str) -> None:
        self._info(key)
        self._rewrite_without(self._member(key))
        logger.info(f"Deleted blob: {key} from {self._path.name}")

    def exists(self, key: str) -> bool:
        try:
            self._info(key)
        except BlobNotFoundError:
            return False
        return True

    def get_metadata(self, key: str) -> BlobMetadata:
        return self._to_metadata(self._info(key))

    def list_blobs(self, prefix: str | None = None) -> list[BlobMetadata]:
        if not self._path.exists():
            return []

        with self._open("r") as archive:
            return [
                self._to_metadata(info)
                for info in sorted(archive.infolist(), key=lambda i: i.filename)
                if not info.is_dir() and (not prefix or info.filename.startswith(prefix))
            ]

    @staticmethod
    def _to_metadata(info: zipfile.ZipInfo) -> BlobMetadata:
        try:
            extra = json.loads(info.comment) if info.comment else {}
        except ValueError:
            extra = {}

        return BlobMetadata(
            key=info.filename,
            size=info.file_size,
            content_type=extra.get("content_type"),
            last_modified=datetime(*info.date_time),
            etag=f"{info.CRC:08x}",
            custom_metadata=extra.get("metadata", {}),
        )
