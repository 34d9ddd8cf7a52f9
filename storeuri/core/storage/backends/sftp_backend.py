"""SFTP backend implementation for blob storage."""

from __future__ import annotations

import logging
import posixpath
import stat
from datetime import UTC, datetime
from io import BytesIO
from typing import BinaryIO

import paramiko

from ..blob import (
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBackend,
    BlobStorageConnectionError,
    BlobStorageError,
    read_data,
)

logger = logging.getLogger(__name__)


class SftpBackend(BlobStorageBackend):
    """SFTP implementation of blob storage backend.

    The SSH session is opened on first use. Without a password or private key
    the SSH agent and default keys are tried.
    """

    def __init__(
        self,
        endpoint: str,
        port: int = 22,
        username: str | None = None,
        password: str | None = None,
        private_key: str | None = None,
        root: str = "/",
        timeout: float = 10.0,
    ):
        """Initialize SFTP backend.

        Args:
            endpoint: SSH host name
            port: SSH port
            username: SSH username
            password: SSH password
            private_key: Path to a private key file
            root: Remote directory that holds the blobs
            timeout: Connection timeout in seconds
        """
        self._endpoint = endpoint
        self._port = int(port)
        self._username = username
        self._password = password
        self._private_key = private_key
        self._root = "/" + root.strip("/") if root else "/"
        self._timeout = float(timeout)
        self._ssh_client: paramiko.SSHClient | None = None
        self._sftp_client: paramiko.SFTPClient | None = None

    def _sftp(self) -> paramiko.SFTPClient:
        if self._sftp_client is not None:
            return self._sftp_client

        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        connect_kwargs = {
            "hostname": self._endpoint,
            "port": self._port,
            "username": self._username,
            "timeout": self._timeout,
            "look_for_keys": True,
        }
        if self._password:
            connect_kwargs["password"] = self._password
        if self._private_key:
            connect_kwargs["key_filename"] = self._private_key

        try:
            client.connect(**connect_kwargs)
            self._sftp_client = client.open_sftp()
        except (OSError, paramiko.SSHException) as e:
            client.close()
            raise BlobStorageConnectionError(
                f"Failed to connect to {self._username}@{self._endpoint}:{self._port}: {e}"
            )

        self._ssh_client = client
        logger.info(f"Connected to SFTP server {self._endpoint}:{self._port}")
        return self._sftp_client

    def close(self) -> None:
        """Close SFTP and SSH connections."""
        if self._sftp_client is not None:
            self._sftp_client.close()
            self._sftp_client = None
        if self._ssh_client is not None:
            self._ssh_client.close()
            self._ssh_client = None

    def _path(self, key: str) -> str:
        return posixpath.join(self._root, key.lstrip("/"))

    def _mkdir_p(self, sftp: paramiko.SFTPClient, directory: str) -> None:
        """Create remote directory (like mkdir -p)."""
        current = ""
        for part in directory.strip("/").split("/"):
            if not part:
                continue
            current += "/" + part
            try:
                sftp.stat(current)
            except FileNotFoundError:
                sftp.mkdir(current)

    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> None:
        """Store a blob. SFTP keeps neither content type nor custom metadata."""
        path = self._path(key)
        sftp = self._sftp()
        try:
            self._mkdir_p(sftp, posixpath.dirname(path))
            sftp.putfo(BytesIO(read_data(data)), path)
            logger.info(f"Stored blob: {key}")
        except (OSError, paramiko.SSHException) as e:
            raise BlobStorageError(f"Failed to store blob {key}: {e}")

    def get(self, key: str) -> bytes:
        buffer = BytesIO()
        try:
            self._sftp().getfo(self._path(key), buffer)
        except FileNotFoundError:
            raise BlobNotFoundError(f"Blob not found: {key}") from None
        except (OSError, paramiko.SSHException) as e:
            raise BlobStorageError(f"Failed to retrieve blob {key}: {e}")
        return buffer.getvalue()

    def delete(self, key: str) -> None:
        try:
            self._sftp().remove(self._path(key))
            logger.info(f"Deleted blob: {key}")
        except FileNotFoundError:
            raise BlobNotFoundError(f"Blob not found: {key}") from None
        except (OSError, paramiko.SSHException) as e:
            raise BlobStorageError(f"Failed to delete blob {key}: {e}")

    def exists(self, key: str) -> bool:
        try:
            return stat.S_ISREG(self._sftp().stat(self._path(key)).st_mode or 0)
        except FileNotFoundError:
            return False
        except (OSError, paramiko.SSHException) as e:
            raise BlobStorageError(f"Failed to check blob existence {key}: {e}")

    def get_metadata(self, key: str) -> BlobMetadata:
        try:
            attrs = self._sftp().stat(self._path(key))
        except FileNotFoundError:
            raise BlobNotFoundError(f"Blob not found: {key}") from None
        except (OSError, paramiko.SSHException) as e:
            raise BlobStorageError(f"Failed to get metadata for {key}: {e}")

        return self._to_metadata(key, attrs)

    def list_blobs(self, prefix: str | None = None) -> list[BlobMetadata]:
        blobs: list[BlobMetadata] = []
        try:
            self._walk(self._sftp(), self._root, blobs)
        except FileNotFoundError:
            return []
        except (OSError, paramiko.SSHException) as e:
            raise BlobStorageError(f"Failed to list blobs: {e}")

        return sorted(
            (blob for blob in blobs if not prefix or blob.key.startswith(prefix)),
            key=lambda blob: blob.key,
        )

    def _walk(self, sftp: paramiko.SFTPClient, directory: str, blobs: list[BlobMetadata]) -> None:
        for attrs in sftp.listdir_attr(directory):
            path = posixpath.join(directory, attrs.filename)
            if stat.S_ISDIR(attrs.st_mode or 0):
                self._walk(sftp, path, blobs)
            elif stat.S_ISREG(attrs.st_mode or 0):
                blobs.append(self._to_metadata(posixpath.relpath(path, self._root), attrs))

    @staticmethod
    def _to_metadata(key: str, attrs: paramiko.SFTPAttributes) -> BlobMetadata:
        modified = datetime.fromtimestamp(attrs.st_mtime, UTC) if attrs.st_mtime else None
        return BlobMetadata(key=key, size=attrs.st_size or 0, last_modified=modified)
