"""Adapter factory turning configurations and URIs into storage backends.

Every adapter kind is an :class:`AdapterSpec` in :data:`ADAPTERS`: the modules
it needs, and a build function that shapes the configuration (creating
clients, resolving containers, building sub-backends) and constructs the
backend. The factory looks the kind up, checks that the required modules are
installed and only then runs the build function, so no client is created for
an adapter that cannot be built.

Examples:
    >>> factory = AdapterFactory()
    >>> backend = factory.create_from_uri("memory:///")
    >>> backend = factory.create({"adapter": "local", "root": "/var/data"})
    >>> backend = factory.create(
    ...     {"adapter": "replicate", "source": "local:///var/data", "replica": {"adapter": "memory"}}
    ... )
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from storeuri.core.storage.availability import AvailabilityChecker, ImportAvailability
from storeuri.core.storage.blob import BlobStorageBackend
from storeuri.core.storage.errors import (
    AdapterConfigError,
    AdapterNotSupportedError,
    PackageRequiredError,
)
from storeuri.core.storage.instantiator import Instantiator
from storeuri.core.storage.uri import parse_uri

logger = logging.getLogger(__name__)

DEFAULT_ADAPTER = "local"
DEFAULT_AZURE_CONTAINER = "my-container"
AZURE_CONNECTION_STRING = "DefaultEndpointsProtocol=https;AccountName={account};AccountKey={key}"
BACKENDS_PACKAGE = "storeuri.core.storage.backends"

BuildFunction = Callable[["AdapterFactory", dict[str, Any]], BlobStorageBackend]


@dataclass(frozen=True)
class Requirement:
    """A module that must be importable, and the package that provides it."""

    module: str
    package: str


@dataclass(frozen=True)
class AdapterSpec:
    """Registry entry for one adapter kind.

    An entry without a build function is a known but unimplemented kind.
    """

    name: str
    build: BuildFunction | None
    requires: tuple[Requirement, ...] = ()


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _build_local(factory: AdapterFactory, config: dict[str, Any]) -> BlobStorageBackend:
    from storeuri.core.storage.backends.filesystem_backend import FilesystemBackend

    return factory.instantiator.instantiate(FilesystemBackend, {"root": "/", **config})


def _build_s3(factory: AdapterFactory, config: dict[str, Any]) -> BlobStorageBackend:
    from minio import Minio

    from storeuri.core.storage.backends.minio_backend import MinIOBackend

    client_config = dict(config)
    if "endpoint" in config and "port" in config:
        client_config["endpoint"] = f"{config['endpoint']}:{config['port']}"
    if "secure" in config:
        client_config["secure"] = _as_bool(config["secure"])

    config["client"] = factory.instantiator.instantiate(Minio, client_config)
    return factory.instantiator.instantiate(MinIOBackend, config)


def _build_azure(factory: AdapterFactory, config: dict[str, Any]) -> BlobStorageBackend:
    from azure.storage.blob import BlobServiceClient

    from storeuri.core.storage.backends.azure_backend import AzureBlobBackend

    connection_string = AZURE_CONNECTION_STRING.format(
        account=config.get("account-name", ""),
        key=config.get("api-key", ""),
    )
    service = BlobServiceClient.from_connection_string(connection_string)

    return AzureBlobBackend(
        service,
        config.get("container", DEFAULT_AZURE_CONTAINER),
        prefix=config.get("prefix"),
    )


def _build_copy(factory: AdapterFactory, config: dict[str, Any]) -> BlobStorageBackend:
    from storeuri.core.storage.backends.copy_backend import CopyBackend, CopyClient

    config["client"] = factory.instantiator.instantiate(CopyClient, config)
    return factory.instantiator.instantiate(CopyBackend, config)


def _build_dropbox(factory: AdapterFactory, config: dict[str, Any]) -> BlobStorageBackend:
    from dropbox import Dropbox

    from storeuri.core.storage.backends.dropbox_backend import DropboxBackend

    config["client"] = factory.instantiator.instantiate(Dropbox, config)
    return factory.instantiator.instantiate(DropboxBackend, config)


def _build_ftp(factory: AdapterFactory, config: dict[str, Any]) -> BlobStorageBackend:
    from storeuri.core.storage.backends.ftp_backend import FtpBackend

    for flag in ("passive", "ssl"):
        if flag in config:
            config[flag] = _as_bool(config[flag])

    return factory.instantiator.instantiate(FtpBackend, config)


def _build_sftp(factory: AdapterFactory, config: dict[str, Any]) -> BlobStorageBackend:
    from storeuri.core.storage.backends.sftp_backend import SftpBackend

    return factory.instantiator.instantiate(SftpBackend, config)


def _build_gridfs(factory: AdapterFactory, config: dict[str, Any]) -> BlobStorageBackend:
    import gridfs
    from pymongo import MongoClient

    from storeuri.core.storage.backends.gridfs_backend import GridFSBackend

    # The GridFS handle is opened here rather than through the instantiator
    client = MongoClient(config.get("endpoint"), config.get("port"))
    return GridFSBackend(gridfs.GridFS(client[config.get("dbName", "")]))


def _build_memory(factory: AdapterFactory, config: dict[str, Any]) -> BlobStorageBackend:
    from storeuri.core.storage.backends.memory_backend import MemoryBackend

    return MemoryBackend()


def _build_null(factory: AdapterFactory, config: dict[str, Any]) -> BlobStorageBackend:
    from storeuri.core.storage.backends.null_backend import NullBackend

    return NullBackend()


def _build_rackspace(factory: AdapterFactory, config: dict[str, Any]) -> BlobStorageBackend:
    from storeuri.core.storage.backends.rackspace_backend import (
        RACKSPACE_UK_IDENTITY_ENDPOINT,
        RackspaceBackend,
        connect_identity,
    )

    identity_config = {"url": RACKSPACE_UK_IDENTITY_ENDPOINT, **config}
    config["client"] = factory.instantiator.instantiate(connect_identity, identity_config)

    object_store = config["client"].object_store
    config["container"] = object_store.get_container_metadata(config.get("container", ""))

    return factory.instantiator.instantiate(RackspaceBackend, config)


def _build_webdav(factory: AdapterFactory, config: dict[str, Any]) -> BlobStorageBackend:
    from webdav4.client import Client

    from storeuri.core.storage.backends.webdav_backend import WebDAVBackend

    if "base_url" not in config and "endpoint" in config:
        port = f":{config['port']}" if "port" in config else ""
        config["base_url"] = f"https://{config['endpoint']}{port}"
    if "auth" not in config and "username" in config:
        config["auth"] = (config["username"], config.get("password", ""))

    config["client"] = factory.instantiator.instantiate(Client, config)
    return factory.instantiator.instantiate(WebDAVBackend, config)


def _build_zip(factory: AdapterFactory, config: dict[str, Any]) -> BlobStorageBackend:
    from storeuri.core.storage.backends.zip_backend import ZipArchiveBackend

    return factory.instantiator.instantiate(ZipArchiveBackend, config)


def _build_replicate(factory: AdapterFactory, config: dict[str, Any]) -> BlobStorageBackend:
    from storeuri.core.storage.backends.replicate_backend import ReplicateBackend

    members = {}
    for role in ("source", "replica"):
        member = config.get(role)
        if member is None:
            raise AdapterConfigError("replicate", f"'{role}' configuration is required")
        if not isinstance(member, str | Mapping):
            raise AdapterConfigError(
                "replicate", f"'{role}' must be a configuration mapping or a URI"
            )
        members[role] = member

    source = factory.create_any(members["source"])
    replica = factory.create_any(members["replica"])
    return ReplicateBackend(source, replica)


ADAPTERS: dict[str, AdapterSpec] = {
    spec.name: spec
    for spec in (
        AdapterSpec("local", _build_local),
        AdapterSpec("s3", _build_s3, (Requirement("minio", "minio"),)),
        AdapterSpec(
            "azure", _build_azure, (Requirement("azure.storage.blob", "azure-storage-blob"),)
        ),
        AdapterSpec("copy", _build_copy, (Requirement("requests_oauthlib", "requests-oauthlib"),)),
        AdapterSpec("dropbox", _build_dropbox, (Requirement("dropbox", "dropbox"),)),
        AdapterSpec("ftp", _build_ftp),
        AdapterSpec("sftp", _build_sftp, (Requirement("paramiko", "paramiko"),)),
        AdapterSpec("gridfs", _build_gridfs, (Requirement("gridfs", "pymongo"),)),
        AdapterSpec(
            "memory",
            _build_memory,
            (Requirement(f"{BACKENDS_PACKAGE}.memory_backend", "storeuri"),),
        ),
        AdapterSpec("null", _build_null),
        AdapterSpec("rackspace", _build_rackspace, (Requirement("openstack", "openstacksdk"),)),
        AdapterSpec("webdav", _build_webdav, (Requirement("webdav4", "webdav4"),)),
        AdapterSpec("phpcr", None),
        AdapterSpec("zip", _build_zip, (Requirement("zlib", "zlib"),)),
        AdapterSpec(
            "replicate",
            _build_replicate,
            (Requirement(f"{BACKENDS_PACKAGE}.replicate_backend", "storeuri"),),
        ),
    )
}


class AdapterFactory:
    """Create storage backends from adapter configurations or URIs.

    The factory keeps no state between calls; the same instance can serve
    concurrent callers as long as its instantiator and availability checker can.
    """

    def __init__(
        self,
        instantiator: Instantiator | None = None,
        availability: AvailabilityChecker | None = None,
        adapters: Mapping[str, AdapterSpec] | None = None,
    ):
        """Initialize the factory.

        Args:
            instantiator: Builds objects from configuration entries
            availability: Reports which optional modules are installed
            adapters: Adapter registry, :data:`ADAPTERS` by default
        """
        self.instantiator = instantiator or Instantiator()
        self.availability = availability or ImportAvailability()
        self._adapters = dict(ADAPTERS if adapters is None else adapters)

    def supported_adapters(self) -> list[str]:
        """List the adapter names this factory can build."""
        return sorted(name for name, spec in self._adapters.items() if spec.build is not None)

    def is_supported(self, name: str) -> bool:
        spec = self._adapters.get(name)
        return spec is not None and spec.build is not None

    def create_from_uri(self, uri: str) -> BlobStorageBackend:
        """Create a backend from a URI such as ``s3://host/prefix?bucket=data``.

        Raises:
            InvalidUriError: If the URI cannot be parsed
            AdapterNotSupportedError: If the scheme names no supported adapter
            PackageRequiredError: If the adapter's package is not installed
        """
        return self.create(parse_uri(uri))

    def create(self, config: Mapping[str, Any]) -> BlobStorageBackend:
        """Create a backend from an adapter configuration.

        Args:
            config: Adapter configuration; ``adapter`` defaults to ``"local"``.
                    The mapping is copied, never modified.

        Returns:
            Constructed backend

        Raises:
            AdapterNotSupportedError: If the adapter is unknown or not implemented
            PackageRequiredError: If the adapter's package is not installed
            AdapterConfigError: If a composite configuration is malformed
        """
        config = dict(config)
        name = config.get("adapter", DEFAULT_ADAPTER)

        spec = self._adapters.get(name)
        if spec is None or spec.build is None:
            raise AdapterNotSupportedError(name)

        for requirement in spec.requires:
            if not self.availability.is_available(requirement.module):
                raise PackageRequiredError(name, requirement.package)

        logger.debug(f"Shaping '{name}' adapter configuration with keys: {sorted(config)}")
        backend = spec.build(self, config)

        logger.info(f"Created '{name}' adapter backend: {type(backend).__name__}")
        return backend

    def create_any(self, target: str | Mapping[str, Any]) -> BlobStorageBackend:
        """Create a backend from either a URI or a configuration mapping."""
        if isinstance(target, str):
            return self.create_from_uri(target)
        return self.create(target)


# Global factory instance
_default_factory: AdapterFactory | None = None


def get_default_factory() -> AdapterFactory:
    """Get the default global factory instance."""
    global _default_factory
    if _default_factory is None:
        _default_factory = AdapterFactory()
    return _default_factory


def create_backend(config: Mapping[str, Any]) -> BlobStorageBackend:
    """Create a backend from a configuration with the default factory."""
    return get_default_factory().create(config)


def create_backend_from_uri(uri: str) -> BlobStorageBackend:
    """Create a backend from a URI with the default factory.

    Examples:
        >>> from storeuri.core.storage.factory import create_backend_from_uri
        >>> backend = create_backend_from_uri("local:///tmp/blobs")
    """
    return get_default_factory().create_from_uri(uri)
