"""Rackspace Cloud Files / OpenStack Swift backend implementation for blob storage."""

from __future__ import annotations

import logging
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any, BinaryIO

from openstack import exceptions as os_exceptions
from openstack.connection import Connection

from ..blob import (
    DEFAULT_CONTENT_TYPE,
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBackend,
    BlobStorageError,
    read_data,
)

logger = logging.getLogger(__name__)

RACKSPACE_US_IDENTITY_ENDPOINT = "https://identity.api.rackspacecloud.com/v2.0/"
RACKSPACE_UK_IDENTITY_ENDPOINT = "https://lon.identity.api.rackspacecloud.com/v2.0/"


def connect_identity(
    url: str = RACKSPACE_UK_IDENTITY_ENDPOINT,
    username: str | None = None,
    password: str | None = None,
    project_name: str | None = None,
    region: str | None = None,
) -> Connection:
    """Open an identity-authenticated OpenStack connection.

    Authentication happens lazily, on the first service call.
    """
    auth = {"auth_url": url, "username": username, "password": password}
    if project_name:
        auth["project_name"] = project_name
    return Connection(auth=auth, region_name=region)


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None


class RackspaceBackend(BlobStorageBackend):
    """Object store implementation of blob storage backend."""

    def __init__(self, client: Connection, container: Any, prefix: str | None = None):
        """Initialize object store backend.

        Args:
            client: Authenticated OpenStack connection
            container: Container resource (or container name) holding the blobs
            prefix: Optional prefix to prepend to all object names
        """
        self._store = client.object_store
        self._container = container
        self._container_name = getattr(container, "name", container)
        self._prefix = prefix.strip("/") + "/" if prefix and prefix.strip("/") else ""

    def _name(self, key: str) -> str:
        return f"{self._prefix}{key.lstrip('/')}"

    def _strip_prefix(self, name: str) -> str:
        return name[len(self._prefix) :] if name.startswith(self._prefix) else name

    def put(
        self,
        key: str,
        data: bytes | BinaryIO,
        content_type: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> str | None:
        try:
            obj = self._store.upload_object(
                container=self._container_name,
                name=self._name(key),
                data=read_data(data),
                metadata=metadata or {},
                content_type=content_type or DEFAULT_CONTENT_TYPE,
            )
        except os_exceptions.SDKException as e:
            raise BlobStorageError(f"Failed to store blob {key}: {e}")

        logger.info(f"Stored blob: {key} in container {self._container_name}")
        return getattr(obj, "etag", None)

    def get(self, key: str) -> bytes:
        try:
            return self._store.download_object(self._name(key), container=self._container_name)
        except os_exceptions.ResourceNotFound:
            raise BlobNotFoundError(f"Blob not found: {key}") from None
        except os_exceptions.SDKException as e:
            raise BlobStorageError(f"Failed to retrieve blob {key}: {e}")

    def delete(self, key: str) -> None:
        try:
            self._store.delete_object(
                self._name(key), ignore_missing=False, container=self._container_name
            )
            logger.info(f"Deleted blob: {key} from container {self._container_name}")
        except os_exceptions.ResourceNotFound:
            raise BlobNotFoundError(f"Blob not found: {key}") from None
        except os_exceptions.SDKException as e:
            raise BlobStorageError(f"Failed to delete blob {key}: {e}")

    def exists(self, key: str) -> bool:
        try:
            self.get_metadata(key)
        except BlobNotFoundError:
            return False
        return True

    def get_metadata(self, key: str) -> BlobMetadata:
        try:
            obj = self._store.get_object_metadata(self._name(key), container=self._container_name)
        except os_exceptions.ResourceNotFound:
            raise BlobNotFoundError(f"Blob not found: {key}") from None
        except os_exceptions.SDKException as e:
            raise BlobStorageError(f"Failed to get metadata for {key}: {e}")

        return BlobMetadata(
            key=key,
            size=int(obj.content_length or 0),
            content_type=obj.content_type,
            last_modified=_parse_time(obj.last_modified_at),
            etag=obj.etag,
            custom_metadata=dict(obj.metadata or {}),
        )

    def list_blobs(self, prefix: str | None = None) -> list[BlobMetadata]:
        try:
            objects = self._store.objects(self._container_name, prefix=self._name(prefix or ""))
            return [
                BlobMetadata(
                    key=self._strip_prefix(obj.name),
                    size=int(obj.content_length or 0),
                    content_type=obj.content_type,
                    last_modified=_parse_time(obj.last_modified_at),
                    etag=obj.etag,
                )
                for obj in objects
            ]
        except os_exceptions.SDKException as e:
            raise BlobStorageError(f"Failed to list blobs: {e}")
