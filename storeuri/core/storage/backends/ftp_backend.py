"""FTP backend implementation for blob storage."""

from __future__ import annotations

import ftplib
import logging
import posixpath
from datetime import UTC, datetime
from io import BytesIO
from typing import BinaryIO

from ..blob import (
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBackend,
    BlobStorageConnectionError,
    BlobStorageError,
    read_data,
)

logger = logging.getLogger(__name__)


class FtpBackend(BlobStorageBackend):
    """FTP implementation of blob storage backend.

    The connection is opened on first use and reused afterwards. Listing relies
    on ``MLSD`` support on the server.
    """

    def __init__(
        self,
        endpoint: str,
        port: int = 21,
        username: str = "anonymous",
        password: str = "",
        root: str = "/",
        passive: bool = True,
        ssl: bool = False,
        timeout: float = 30.0,
    ):
        """Initialize FTP backend.

        Args:
            endpoint: FTP server host name
            port: FTP server port
            username: Login user
            password: Login password
            root: Remote directory that holds the blobs
            passive: Use passive mode transfers
            ssl: Use explicit FTP over TLS
            timeout: Socket timeout in seconds
        """
        self._endpoint = endpoint
        self._port = int(port)
        self._username = username
        self._password = password
        self._root = "/" + root.strip("/") if root else "/"
        self._passive = passive
        self._ssl = ssl
        self._timeout = float(timeout)
        self._ftp: ftplib.FTP | None = None

    def _connection(self) -> ftplib.FTP:
        if self._ftp is not None:
            return self._ftp

        ftp = ftplib.FTP_TLS() if self._ssl else ftplib.FTP()
        try:
            ftp.connect(self._endpoint, self._port, timeout=self._timeout)
            ftp.login(self._username, self._password)
            if self._ssl:
                ftp.prot_p()
            ftp.set_pasv(self._passive)
        except (OSError, ftplib.Error) as e:
            ftp.close()
            raise BlobStorageConnectionError(
                f"Failed to connect to FTP server {self._endpoint}:{self._port}: {e}"
            )

        logger.info(f"Connected to FTP server {self._endpoint}:{self._port}")
        self._ftp = ftp
        return ftp

    def close(self) -> None:
        """Close the FTP connection if one is open."""
        if self._ftp is not None:
            try:
                self._ftp.quit()
            except (OSError, ftplib.Error):
                self._ftp.close()
            self._ftp = None

    def _path(self, key: str) -> str:
        return posixpath.join(self._root, key.lstrip("/"))

    def _ensure_dirs(self, ftp: ftplib.FTP, directory: str) -> None:
        current = ""
        for part in directory.strip("/").split("/"):
            if not part:
                continue
            current += "/" + part
            try:
                ftp.mkd(current)
            except ftplib.error_perm:
                pass  # Directory already exists

    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> None:
        """Store a blob. FTP keeps neither content type nor custom metadata."""
        path = self._path(key)
        ftp = self._connection()
        try:
            self._ensure_dirs(ftp, posixpath.dirname(path))
            ftp.storbinary(f"STOR {path}", BytesIO(read_data(data)))
            logger.info(f"Stored blob: {key}")
        except ftplib.all_errors as e:
            raise BlobStorageError(f"Failed to store blob {key}: {e}")

    def get(self, key: str) -> bytes:
        buffer = BytesIO()
        try:
            self._connection().retrbinary(f"RETR {self._path(key)}", buffer.write)
        except ftplib.error_perm as e:
            if str(e).startswith("550"):
                raise BlobNotFoundError(f"Blob not found: {key}")
            raise BlobStorageError(f"Failed to retrieve blob {key}: {e}")
        except ftplib.all_errors as e:
            raise BlobStorageError(f"Failed to retrieve blob {key}: {e}")
        return buffer.getvalue()

    def delete(self, key: str) -> None:
        try:
            self._connection().delete(self._path(key))
            logger.info(f"Deleted blob: {key}")
        except ftplib.error_perm as e:
            if str(e).startswith("550"):
                raise BlobNotFoundError(f"Blob not found: {key}")
            raise BlobStorageError(f"Failed to delete blob {key}: {e}")
        except ftplib.all_errors as e:
            raise BlobStorageError(f"Failed to delete blob {key}: {e}")

    def exists(self, key: str) -> bool:
        try:
            self.get_metadata(key)
        except BlobNotFoundError:
            return False
        return True

    def get_metadata(self, key: str) -> BlobMetadata:
        path = self._path(key)
        ftp = self._connection()
        try:
            ftp.voidcmd("TYPE I")
            size = ftp.size(path)
            modified = ftp.voidcmd(f"MDTM {path}")[4:].strip()
        except ftplib.error_perm as e:
            if str(e).startswith("550"):
                raise BlobNotFoundError(f"Blob not found: {key}")
            raise BlobStorageError(f"Failed to get metadata for {key}: {e}")
        except ftplib.all_errors as e:
            raise BlobStorageError(f"Failed to get metadata for {key}: {e}")

        return BlobMetadata(key=key, size=size or 0, last_modified=_parse_timestamp(modified))

    def list_blobs(self, prefix: str | None = None) -> list[BlobMetadata]:
        blobs: list[BlobMetadata] = []
        try:
            self._walk(self._connection(), self._root, blobs)
        except ftplib.all_errors as e:
            raise BlobStorageError(f"Failed to list blobs: {e}")

        return sorted(
            (blob for blob in blobs if not prefix or blob.key.startswith(prefix)),
            key=lambda blob: blob.key,
        )

    def _walk(self, ftp: ftplib.FTP, directory: str, blobs: list[BlobMetadata]) -> None:
        for name, facts in ftp.mlsd(directory, facts=["type", "size", "modify"]):
            path = posixpath.join(directory, name)
            if facts.get("type") == "dir":
                self._walk(ftp, path, blobs)
            elif facts.get("type") == "file":
                blobs.append(
                    BlobMetadata(
                        key=posixpath.relpath(path, self._root),
                        size=int(facts.get("size", 0)),
                        last_modified=_parse_timestamp(facts.get("modify", "")),
                    )
                )


def _parse_timestamp(value: str) -> datetime | None:
    """Parse an FTP ``YYYYMMDDHHMMSS[.sss]`` timestamp (always UTC)."""
    try:
        return datetime.strptime(value[:14], "%Y%m%d%H%M%S").replace(tzinfo=UTC)
    except ValueError:
        return None
