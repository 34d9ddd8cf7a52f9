"""Registry of named storage backends."""

from __future__ import annotations

import logging
from typing import Any

from storeuri.core.storage.blob import BlobStorageBackend
from storeuri.core.storage.factory import AdapterFactory, get_default_factory
from storeuri.core.utils.config import ConfigEntry, load_and_resolve_config

logger = logging.getLogger(__name__)

CONFIG_MODULE = "configs.storage_backends"
FALLBACK_CONFIG_MODULE = "storeuri.core.storage.backend_config"


class BackendNotFoundError(Exception):
    """Raised when a named backend is not found in configuration."""

    pass


class StorageRegistry:
    """Registry resolving backend names to freshly built backends.

    Each name maps to an adapter configuration dict or a storage URI. Every
    lookup builds a new backend through the adapter factory; nothing is cached.

    Examples:
        >>> registry = StorageRegistry({"scratch": "memory:///"})
        >>> backend = registry.get_backend("scratch")
    """

    def __init__(
        self,
        configuration: dict[str, ConfigEntry] | None = None,
        factory: AdapterFactory | None = None,
    ):
        """Initialize the registry.

        Args:
            configuration: Named backend entries. If None, loads and resolves
                          ``configs.storage_backends``, falling back to the
                          built-in ``storeuri.core.storage.backend_config``
            factory: Adapter factory, the default factory if None
        """
        if configuration is None:
            configuration = load_and_resolve_config(
                CONFIG_MODULE,
                config_name="CONFIGURATION",
                default={},
                fallback_modules=[FALLBACK_CONFIG_MODULE],
            )

        self._config = dict(configuration)
        self._factory = factory or get_default_factory()

    def get_config(self, name: str) -> ConfigEntry:
        """Return the configuration entry registered under ``name``.

        Raises:
            BackendNotFoundError: If ``name`` is not configured
        """
        if name not in self._config:
            available = ", ".join(self._config) or "none"
            raise BackendNotFoundError(
                f"Backend '{name}' not found in configuration. Available backends: {available}"
            )
        return self._config[name]

    def get_backend(self, name: str) -> BlobStorageBackend:
        """Build the backend registered under ``name``.

        Raises:
            BackendNotFoundError: If ``name`` is not configured
            StorageFactoryError: If the adapter factory rejects the entry
        """
        backend = self._factory.create_any(self.get_config(name))

        logger.info(f"Created backend for '{name}': {type(backend).__name__}")
        return backend

    def list_backends(self) -> list[str]:
        """List all configured backend names."""
        return list(self._config)

    def register(self, name: str, config: dict[str, Any] | str) -> None:
        """Register or replace a backend entry.

        Args:
            name: Backend name
            config: Adapter configuration dict or storage URI
        """
        self._config[name] = config if isinstance(config, str) else dict(config)


# Global registry instance
_default_registry: StorageRegistry | None = None


def get_default_registry() -> StorageRegistry:
    """Get the default global registry instance."""
    global _default_registry
    if _default_registry is None:
        _default_registry = StorageRegistry()
    return _default_registry


def get_storage_backend(name: str) -> BlobStorageBackend:
    """Get a storage backend by name from the default registry.

    Examples:
        >>> from storeuri.core.storage.registry import get_storage_backend
        >>> backend = get_storage_backend("local")
    """
    return get_default_registry().get_backend(name)
