"""Storage backends built from URIs and adapter configurations."""

from storeuri.core.storage.availability import (
    AvailabilityChecker,
    ImportAvailability,
    StaticAvailability,
)
from storeuri.core.storage.blob import (
    BlobMetadata,
    BlobNotFoundError,
    BlobStorage,
    BlobStorageBackend,
    BlobStorageConnectionError,
    BlobStorageError,
)
from storeuri.core.storage.errors import (
    AdapterConfigError,
    AdapterNotSupportedError,
    InvalidUriError,
    PackageRequiredError,
    StorageFactoryError,
)
from storeuri.core.storage.factory import (
    AdapterFactory,
    AdapterSpec,
    Requirement,
    create_backend,
    create_backend_from_uri,
    get_default_factory,
)
from storeuri.core.storage.instantiator import Instantiator
from storeuri.core.storage.registry import (
    BackendNotFoundError,
    StorageRegistry,
    get_default_registry,
    get_storage_backend,
)
from storeuri.core.storage.uri import parse_uri

__all__ = [
    # Blob storage
    "BlobStorage",
    "BlobStorageBackend",
    "BlobMetadata",
    "BlobStorageError",
    "BlobNotFoundError",
    "BlobStorageConnectionError",
    # Factory
    "AdapterFactory",
    "AdapterSpec",
    "Requirement",
    "Instantiator",
    "AvailabilityChecker",
    "ImportAvailability",
    "StaticAvailability",
    "parse_uri",
    "create_backend",
    "create_backend_from_uri",
    "get_default_factory",
    # Errors
    "StorageFactoryError",
    "InvalidUriError",
    "AdapterNotSupportedError",
    "PackageRequiredError",
    "AdapterConfigError",
    # Registry
    "StorageRegistry",
    "BackendNotFoundError",
    "get_default_registry",
    "get_storage_backend",
]
