"""Azure Blob Storage backend implementation for blob storage."""

from __future__ import annotations

import logging
from typing import BinaryIO

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient, ContentSettings

from ..blob import (
    DEFAULT_CONTENT_TYPE,
    BlobMetadata,
    BlobNotFoundError,
    BlobStorageBackend,
    BlobStorageError,
    read_data,
)

logger = logging.getLogger(__name__)


class AzureBlobBackend(BlobStorageBackend):
    """Azure Blob Storage implementation of blob storage backend."""

    def __init__(self, service: BlobServiceClient, container: str, prefix: str | None = None):
        """Initialize Azure backend.

        Args:
            service: Blob service client for the storage account
            container: Container name
            prefix: Optional prefix to prepend to all blob names
        """
        self._service = service
        self._container_name = container
        self._container = service.get_container_client(container)
        self._prefix = prefix.strip("/") + "/" if prefix and prefix.strip("/") else ""

    @property
    def container(self) -> str:
        return self._container_name

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
    ) -> str:
        try:
            result = self._container.get_blob_client(self._name(key)).upload_blob(
                read_data(data),
                overwrite=True,
                content_settings=ContentSettings(content_type=content_type or DEFAULT_CONTENT_TYPE),
                metadata=metadata,
            )
            logger.info(f"Stored blob: {key} in azure://{self._container_name}")
            return result.get("etag")
        except AzureError as e:
            raise BlobStorageError(f"Failed to store blob {key}: {e}")

    def get(self, key: str) -> bytes:
        try:
            return self._container.get_blob_client(self._name(key)).download_blob().readall()
        except ResourceNotFoundError:
            raise BlobNotFoundError(f"Blob not found: {key}") from None
        except AzureError as e:
            raise BlobStorageError(f"Failed to retrieve blob {key}: {e}")

    def delete(self, key: str) -> None:
        try:
            self._container.delete_blob(self._name(key))
            logger.info(f"Deleted blob: {key} from azure://{self._container_name}")
        except ResourceNotFoundError:
            raise BlobNotFoundError(f"Blob not found: {key}") from None
        except AzureError as e:
            raise BlobStorageError(f"Failed to delete blob {key}: {e}")

    def exists(self, key: str) -> bool:
        try:
            return self._container.get_blob_client(self._name(key)).exists()
        except AzureError as e:
            raise BlobStorageError(f"Failed to check blob existence {key}: {e}")

    def get_metadata(self, key: str) -> BlobMetadata:
        try:
            props = self._container.get_blob_client(self._name(key)).get_blob_properties()
        except ResourceNotFoundError:
            raise BlobNotFoundError(f"Blob not found: {key}") from None
        except AzureError as e:
            raise BlobStorageError(f"Failed to get metadata for {key}: {e}")

        return BlobMetadata(
            key=key,
            size=props.size,
            content_type=props.content_settings.content_type,
            last_modified=props.last_modified,
            etag=props.etag,
            custom_metadata=dict(props.metadata or {}),
        )

    def list_blobs(self, prefix: str | None = None) -> list[BlobMetadata]:
        try:
            return [
                BlobMetadata(
                    key=self._strip_prefix(props.name),
                    size=props.size,
                    content_type=props.content_settings.content_type,
                    last_modified=props.last_modified,
                    etag=props.etag,
                )
                for props in self._container.list_blobs(
                    name_starts_with=self._name(prefix or "") or None
                )
            ]
        except AzureError as e:
            raise BlobStorageError(f"Failed to list blobs: {e}")
